from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

from komaribot.normalizer import (
    EmptySnapshot,
    NodeArraySnapshot,
    OnlineMapSnapshot,
    apply_freshness,
    backfill,
    candidate_nodes,
    derive_fields,
    format_speed,
    format_traffic,
    format_uptime,
    is_number,
    normalize_nodes,
    parse_snapshot,
    parse_timestamp,
)

NOW = datetime(2026, 10, 16, 12, 0, 0, tzinfo=timezone.utc)


class TestParseSnapshot:
    def test_array_inside_envelope(self):
        snapshot = parse_snapshot({"status": "success", "data": [{"name": "n1"}]})
        assert snapshot == NodeArraySnapshot(nodes=[{"name": "n1"}])

    def test_online_map(self):
        message = {"data": {"online": ["a"], "data": {"a": {"cpu": {"usage": 1}}}}}
        snapshot = parse_snapshot(message)
        assert isinstance(snapshot, OnlineMapSnapshot)
        assert snapshot.online == ["a"]

    def test_online_map_with_bad_fields(self):
        snapshot = parse_snapshot({"online": "a", "data": None})
        assert snapshot == OnlineMapSnapshot(online=[], details={})

    def test_scalar_is_empty(self):
        assert parse_snapshot("nope") == EmptySnapshot()


class TestCandidates:
    def test_array_capped_at_ten(self):
        nodes = [{"name": f"n{i}"} for i in range(15)]
        assert len(candidate_nodes(NodeArraySnapshot(nodes))) == 10

    def test_missing_detail_becomes_identifier_record(self):
        snapshot = OnlineMapSnapshot(online=["a", "b"], details={"a": {"name": "alpha"}})
        assert candidate_nodes(snapshot) == [{"name": "alpha", "uuid": "a"}, {"uuid": "b"}]

    def test_online_list_capped_at_ten(self):
        snapshot = OnlineMapSnapshot(online=[str(i) for i in range(12)], details={})
        assert len(candidate_nodes(snapshot)) == 10


def test_backfill_never_overwrites():
    merged = backfill({"name": "A"}, {"name": "B", "os": "linux"}, ("name", "os"))
    assert merged == {"name": "A", "os": "linux"}


def test_backfill_replaces_falsy_values():
    merged = backfill({"name": "", "cpu_cores": 0}, {"name": "B", "cpu_cores": 4}, ("name", "cpu_cores"))
    assert merged == {"name": "B", "cpu_cores": 4}


class TestFormatting:
    def test_speed_threshold(self):
        assert format_speed(1048576) == "1.0 MB/s"
        assert format_speed(1048575).endswith("KB/s")
        assert format_speed(2048) == "2.0 KB/s"

    def test_traffic_threshold(self):
        assert format_traffic(1073741824) == "1.00 GB"
        assert format_traffic(1073741823).endswith(" MB")

    def test_uptime(self):
        assert format_uptime(90061) == "1天 1小时"
        assert format_uptime(59) == "0天 0小时"


class TestDeriveFields:
    def test_full_readings(self):
        node = derive_fields({
            "cpu": {"usage": 12.3},
            "ram": {"used": 536870912, "total": 1073741824},
            "disk": {"used": 0, "total": 2147483648},
            "network": {"up": 1048576, "down": 512, "totalUp": 1073741824, "totalDown": 1048576},
            "uptime": 172800,
            "load": {"load1": 0.5, "load5": 0.25, "load15": 0.1},
        })
        assert node["cpu_usage_percent"] == 12.3
        assert node["ram_total_gb"] == 1.0
        assert node["ram_used_gb"] == 0.5
        assert node["ram_usage_percent"] == 50.0
        assert node["disk_total_gb"] == 2.0
        assert node["net_up_str"] == "1.0 MB/s"
        assert node["net_down_str"] == "0.5 KB/s"
        assert node["traffic_up_str"] == "1.00 GB"
        assert node["traffic_down_str"] == "1.00 MB"
        assert node["uptime_str"] == "2天 0小时"
        assert (node["load_1"], node["load_5"], node["load_15"]) == (0.5, 0.25, 0.1)

    def test_static_totals_fallback(self):
        node = derive_fields({"mem_total": 1073741824, "disk_total": 3221225472})
        assert node["ram_total_gb"] == 1.0
        assert node["disk_total_gb"] == 3.0
        assert "ram_used_gb" not in node

    def test_wrong_types_are_skipped(self):
        node = derive_fields({
            "cpu": {"usage": "12"},
            "ram": {"used": 1, "total": 0},
            "network": "fast",
            "uptime": True,
        })
        for key in ("cpu_usage_percent", "ram_total_gb", "net_up_str", "uptime_str"):
            assert key not in node


class TestNormalizeNodes:
    def test_array_payload(self):
        nodes = normalize_nodes([{"name": "n1", "cpu": {"usage": 12.3}}])
        assert nodes[0]["cpu_usage_percent"] == 12.3

    def test_malformed_string_element_does_not_abort(self):
        payload = ["{not json", json.dumps({"name": "n2"}), {"name": "n3"}]
        nodes = normalize_nodes(payload)
        assert [n["name"] for n in nodes] == ["n2", "n3"]

    def test_static_lookup_by_uuid_then_id(self):
        static = {
            "u-1": {"name": "tokyo", "os": "debian", "mem_total": 1073741824},
            "7": {"name": "osaka", "region": "JP"},
        }
        nodes = normalize_nodes([{"uuid": "u-1", "name": ""}, {"id": 7}], static)
        assert nodes[0]["name"] == "tokyo"
        assert nodes[0]["os"] == "debian"
        assert nodes[0]["ram_total_gb"] == 1.0
        assert nodes[1]["name"] == "osaka"
        assert nodes[1]["region"] == "JP"

    def test_online_map_uses_identifier_for_lookup(self):
        message = {"data": {"online": ["u-1"], "data": {"u-1": {"cpu": {"usage": 3}}}}}
        nodes = normalize_nodes(message, {"u-1": {"name": "tokyo"}})
        assert nodes == [{"cpu": {"usage": 3}, "uuid": "u-1", "name": "tokyo", "cpu_usage_percent": 3.0}]

    def test_input_is_not_mutated(self):
        original = {"name": "n1", "cpu": {"usage": 1}}
        normalize_nodes([original])
        assert "cpu_usage_percent" not in original


class TestFreshness:
    def test_recent_node_is_online(self):
        node = apply_freshness({"updated_at": "2026-10-16T11:55:00Z"}, NOW)
        assert node["is_online"] is True
        assert node["updated_at_cn"] == "2026-10-16 19:55:00"

    def test_exactly_600_seconds_is_offline(self):
        updated = (NOW - timedelta(seconds=600)).isoformat()
        assert apply_freshness({"updated_at": updated}, NOW)["is_online"] is False

    def test_599_seconds_is_online(self):
        updated = (NOW - timedelta(seconds=599)).isoformat()
        assert apply_freshness({"updated_at": updated}, NOW)["is_online"] is True

    def test_missing_or_bad_timestamp_is_offline(self):
        assert apply_freshness({}, NOW) == {"is_online": False}
        assert apply_freshness({"updated_at": "yesterday"}, NOW) == {"updated_at": "yesterday", "is_online": False}

    def test_offset_and_nanoseconds(self):
        parsed = parse_timestamp("2026-10-16T19:59:00.123456789+08:00")
        assert parsed == datetime(2026, 10, 16, 11, 59, 0, 123456, tzinfo=timezone.utc)

    def test_naive_timestamp_is_utc(self):
        assert parse_timestamp("2026-10-16T11:59:00") == datetime(2026, 10, 16, 11, 59, tzinfo=timezone.utc)

    def test_short_fraction_is_padded(self):
        parsed = parse_timestamp("2026-10-16T11:59:00.12345Z")
        assert parsed == datetime(2026, 10, 16, 11, 59, 0, 123450, tzinfo=timezone.utc)

    def test_timestamp_at_datetime_limit_keeps_raw_value(self):
        node = apply_freshness({"updated_at": "9999-12-31T23:00:00Z"}, NOW)
        assert "updated_at_cn" not in node
        assert "is_online" in node


class TestNonFiniteNumbers:
    def test_nan_and_infinity_are_not_numbers(self):
        assert is_number(float("nan")) is False
        assert is_number(float("inf")) is False
        assert is_number(10 ** 400) is False
        assert is_number(3) is True

    def test_non_finite_readings_are_skipped(self):
        node = derive_fields({"uptime": float("nan"), "network": {"up": float("inf"), "down": 2048}})
        assert "uptime_str" not in node
        assert "net_up_str" not in node
        assert node["net_down_str"] == "2.0 KB/s"

    def test_string_candidate_with_nan_is_dropped(self):
        assert normalize_nodes(['{"name": "n1", "uptime": NaN}', '{"name": "n2"}']) == [{"name": "n2"}]
