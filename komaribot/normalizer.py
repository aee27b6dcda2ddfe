"""实时快照解析与节点字段整理

实时接口返回的数据有两种形态：节点数组，或 {online: [...], data: {uuid: 节点}}。
先把消息分类为对应的快照类型，再逐个节点补全静态信息、计算展示字段。
"""

import json
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

MAX_NODES = 10
GIB = 1024 ** 3
MIB = 1024 ** 2
KIB = 1024
ONLINE_WINDOW_SECONDS = 600
DISPLAY_OFFSET = timedelta(hours=8)

STATIC_FIELDS = ("name", "region", "os", "cpu_name", "cpu_cores", "mem_total", "disk_total")


@dataclass
class NodeArraySnapshot:
    nodes: List[Any]


@dataclass
class OnlineMapSnapshot:
    online: List[Any]
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class EmptySnapshot:
    pass


Snapshot = Union[NodeArraySnapshot, OnlineMapSnapshot, EmptySnapshot]


def is_number(value: Any) -> bool:
    """有限数值，bool 不算"""
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def _reject_constant(token: str) -> Any:
    raise ValueError(f"非标准JSON常量: {token}")


def loads_json(text: Any) -> Any:
    """严格JSON解析，NaN/Infinity 视为格式错误"""
    return json.loads(text, parse_constant=_reject_constant)


def parse_snapshot(message: Any) -> Snapshot:
    """解开外层信封并按数据形态分类"""
    payload = message
    if isinstance(message, dict) and message.get("data") is not None:
        payload = message["data"]

    if isinstance(payload, list):
        return NodeArraySnapshot(nodes=payload)
    if isinstance(payload, dict):
        online = payload.get("online")
        details = payload.get("data")
        return OnlineMapSnapshot(
            online=online if isinstance(online, list) else [],
            details=details if isinstance(details, dict) else {},
        )
    return EmptySnapshot()


def candidate_nodes(snapshot: Snapshot) -> List[Any]:
    """按快照类型取出最多 MAX_NODES 个候选节点（元素可能仍是JSON字符串）"""
    if isinstance(snapshot, NodeArraySnapshot):
        return list(snapshot.nodes[:MAX_NODES])
    if isinstance(snapshot, OnlineMapSnapshot):
        candidates = []
        for uuid in snapshot.online[:MAX_NODES]:
            detail = snapshot.details.get(str(uuid))
            if not detail:
                candidates.append({"uuid": uuid})
            elif isinstance(detail, dict):
                detail = dict(detail)
                detail.setdefault("uuid", uuid)
                candidates.append(detail)
            else:
                candidates.append(detail)
        return candidates
    return []


def decode_node(candidate: Any) -> Optional[dict]:
    """JSON字符串先解析；解析失败或不是对象时返回 None"""
    if isinstance(candidate, str):
        try:
            candidate = loads_json(candidate)
        except ValueError:
            return None
    if not isinstance(candidate, dict):
        return None
    return dict(candidate)


def backfill(target: dict, source: dict, fields: Iterable[str]) -> dict:
    """target 中缺失（假值）的字段用 source 中的值补齐，已有值不覆盖"""
    for key in fields:
        if not target.get(key) and source.get(key):
            target[key] = source[key]
    return target


def lookup_static(node: dict, static_index: Dict[str, dict]) -> Optional[dict]:
    for key in ("uuid", "id"):
        value = node.get(key)
        if value and str(value) in static_index:
            return static_index[str(value)]
    return None


def format_speed(bytes_per_sec: float) -> str:
    if bytes_per_sec >= MIB:
        return f"{bytes_per_sec / MIB:.1f} MB/s"
    return f"{bytes_per_sec / KIB:.1f} KB/s"


def format_traffic(total_bytes: float) -> str:
    if total_bytes >= GIB:
        return f"{total_bytes / GIB:.2f} GB"
    return f"{total_bytes / MIB:.2f} MB"


def format_uptime(seconds: float) -> str:
    days = int(seconds // 86400)
    hours = int((seconds % 86400) // 3600)
    return f"{days}天 {hours}小时"


def _derive_usage(node: dict, reading_key: str, static_key: str, prefix: str) -> None:
    """内存/磁盘：优先用实时 used/total，否则退回静态总量"""
    reading = node.get(reading_key)
    if isinstance(reading, dict):
        used, total = reading.get("used"), reading.get("total")
        if is_number(used) and is_number(total) and total > 0:
            node[f"{prefix}_total_gb"] = total / GIB
            node[f"{prefix}_used_gb"] = used / GIB
            node[f"{prefix}_usage_percent"] = used / total * 100
            return
    if is_number(node.get(static_key)):
        node[f"{prefix}_total_gb"] = node[static_key] / GIB


def derive_fields(node: dict) -> dict:
    """根据嵌套的实时读数计算展示字段，缺失或类型不对的项直接跳过"""
    cpu = node.get("cpu")
    if isinstance(cpu, dict) and is_number(cpu.get("usage")):
        node["cpu_usage_percent"] = float(cpu["usage"])

    _derive_usage(node, "ram", "mem_total", "ram")
    _derive_usage(node, "disk", "disk_total", "disk")

    network = node.get("network")
    if isinstance(network, dict):
        if is_number(network.get("up")):
            node["net_up_str"] = format_speed(network["up"])
        if is_number(network.get("down")):
            node["net_down_str"] = format_speed(network["down"])
        if is_number(network.get("totalUp")):
            node["traffic_up_str"] = format_traffic(network["totalUp"])
        if is_number(network.get("totalDown")):
            node["traffic_down_str"] = format_traffic(network["totalDown"])

    if is_number(node.get("uptime")):
        node["uptime_str"] = format_uptime(node["uptime"])

    load = node.get("load")
    if isinstance(load, dict):
        node["load_1"] = load.get("load1")
        node["load_5"] = load.get("load5")
        node["load_15"] = load.get("load15")
    return node


def normalize_nodes(message: Any, static_index: Optional[Dict[str, dict]] = None) -> List[dict]:
    """实时消息 -> 补全并计算好展示字段的节点列表（最多 MAX_NODES 个）"""
    static_index = static_index or {}
    nodes = []
    for candidate in candidate_nodes(parse_snapshot(message)):
        node = decode_node(candidate)
        if node is None:
            continue
        static = lookup_static(node, static_index)
        if static:
            backfill(node, static, STATIC_FIELDS)
        nodes.append(derive_fields(node))
    return nodes


# ========== 静态节点：在线状态与更新时间 ==========
_FRACTION_RE = re.compile(r'\.(\d+)')


def _fix_fraction(match: re.Match) -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """解析ISO 8601时间；无时区信息按UTC处理，无法解析返回 None"""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    # 小数秒统一为6位：纳秒截断到微秒，不足6位补零
    text = _FRACTION_RE.sub(_fix_fraction, text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_online(updated: Optional[datetime], now: datetime) -> bool:
    if updated is None:
        return False
    return (now - updated).total_seconds() < ONLINE_WINDOW_SECONDS


def apply_freshness(node: dict, now: Optional[datetime] = None) -> dict:
    """计算 is_online，并生成东八区的 updated_at_cn"""
    now = now or datetime.now(timezone.utc)
    updated = parse_timestamp(node.get("updated_at"))
    node["is_online"] = is_online(updated, now)
    if updated is not None:
        try:
            local = updated.astimezone(timezone.utc) + DISPLAY_OFFSET
        except OverflowError:
            # 超出 datetime 范围，展示时退回原始时间字符串
            return node
        node["updated_at_cn"] = local.strftime("%Y-%m-%d %H:%M:%S")
    return node
