"""文本报告格式化

所有函数只处理已整理好的数据，缺失字段用占位符代替，不抛异常。
"""

from datetime import datetime
from typing import Any, Iterable, Optional

from .normalizer import GIB, apply_freshness, is_number

NO_REALTIME_DATA = "未获取到数据，请检查服务状态。"


def _or(value: Any, default: Any) -> Any:
    return default if value is None else value


def _number(value: Any, default: float = 0) -> float:
    return value if is_number(value) else default


def _raw_timestamp(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.replace("T", " ", 1).replace("Z", "", 1)


def format_nodes_report(nodes: Iterable[dict], now: Optional[datetime] = None) -> str:
    """节点列表报告：在线状态、系统、CPU、内存、磁盘、更新时间"""
    lines = ["🖥️ Komari 服务器状态"]
    for node in nodes:
        if not isinstance(node, dict):
            continue
        node = apply_freshness(dict(node), now)
        status_icon = "🟢" if node["is_online"] else "🔴"
        mem_gb = _number(node.get("mem_total")) / GIB
        disk_gb = _number(node.get("disk_total")) / GIB

        lines.append("")
        lines.append(f"📌 {status_icon} {_or(node.get('region'), '')} {_or(node.get('name'), '未知')}")
        lines.append(f"   系统: {_or(node.get('os'), '未知')}")
        lines.append(f"   CPU: {_or(node.get('cpu_name'), '未知')} ({_or(node.get('cpu_cores'), 0)} C)")
        lines.append(f"   内存: {mem_gb:.2f} GB")
        lines.append(f"   磁盘: {disk_gb:.2f} GB")
        updated = node.get("updated_at_cn") or _raw_timestamp(node.get("updated_at"))
        if updated:
            lines.append(f"   更新: {updated}")
    return "\n".join(lines)


def format_realtime_report(nodes: Iterable[dict]) -> str:
    """实时状态报告，只输出节点上实际存在的读数"""
    lines = ["📊 Komari 实时状态"]
    for node in nodes:
        lines.append("")
        lines.append(f"📌 {_or(node.get('region'), '')} {_or(node.get('name'), '未知节点')}")
        lines.append(f"   OS: {_or(node.get('os'), '-')}")
        if is_number(node.get("cpu_usage_percent")):
            lines.append(f"   CPU: {node['cpu_usage_percent']:.2f}%")
        if is_number(node.get("ram_total_gb")):
            lines.append(f"   内存: {node['ram_total_gb']:.2f} GB")
        if is_number(node.get("disk_total_gb")):
            lines.append(f"   磁盘: {node['disk_total_gb']:.2f} GB")
        if node.get("net_up_str") or node.get("net_down_str"):
            lines.append(f"   网络: ↑{node.get('net_up_str') or '-'} ↓{node.get('net_down_str') or '-'}")
        if node.get("uptime_str"):
            lines.append(f"   运行: {node['uptime_str']}")
        if is_number(node.get("load_1")):
            lines.append(
                f"   负载: {node['load_1']:.2f} / {_number(node.get('load_5')):.2f} / {_number(node.get('load_15')):.2f}"
            )

    if len(lines) == 1:
        lines.append(NO_REALTIME_DATA)
    return "\n".join(lines)


def format_public_settings(settings: Any) -> str:
    if not isinstance(settings, dict):
        settings = {}
    return "\n".join([
        f"站点名称: {_or(settings.get('sitename'), '未知')}",
        f"描述: {_or(settings.get('description'), '')}",
        f"主题: {_or(settings.get('theme'), '默认')}",
    ])


def format_version(info: Any) -> str:
    if not isinstance(info, dict):
        info = {}
    return f"Komari 版本: {_or(info.get('version'), '-')} ({_or(info.get('hash'), '-')})"
