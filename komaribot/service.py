"""Komari 查询入口

四个入口函数都不会抛出异常：版本和公开设置返回字符串（报告或错误信息），
节点状态和实时状态返回 {"text": ...} 或 {"error": ...}。
"""

from datetime import datetime
from typing import Dict, Optional

from .client import fetch_api
from .errors import ErrorKind, KomariError
from .formatters import format_nodes_report, format_public_settings, format_realtime_report, format_version
from .normalizer import normalize_nodes
from .realtime import REALTIME_TIMEOUT, collect_realtime, fetch_static_index
from .utils import logger


def get_version_info() -> str:
    try:
        data = fetch_api("/api/version").data
    except KomariError as e:
        return e.message
    return format_version(data)


def get_public_settings() -> str:
    try:
        data = fetch_api("/api/public").data
    except KomariError as e:
        return e.message
    return format_public_settings(data)


def load_nodes() -> list:
    """
    拉取节点列表
    :raises KomariError: 请求失败 / status 非 success（ApiFailure）/ 列表为空（EmptyResult）
    """
    raw = fetch_api("/api/nodes").raw
    if not isinstance(raw, dict) or raw.get("status") != "success":
        message = raw.get("message") if isinstance(raw, dict) else None
        raise KomariError(ErrorKind.API_FAILURE, f"API 调用失败: {message or '未知错误'}")
    nodes = raw.get("data") or []
    if not isinstance(nodes, list) or not nodes:
        raise KomariError(ErrorKind.EMPTY_RESULT, "未找到任何节点。")
    return nodes


def get_nodes_status(now: Optional[datetime] = None) -> Dict[str, str]:
    try:
        nodes = load_nodes()
    except KomariError as e:
        logger.warning(f"[Komari] 节点状态查询失败: {e.kind.value}")
        return {"error": e.message}
    logger.info(f"[Komari] 获取到 {len(nodes)} 个节点")
    return {"text": format_nodes_report(nodes, now)}


def get_realtime_status(timeout: float = REALTIME_TIMEOUT) -> Dict[str, str]:
    try:
        # 静态信息仅用于补全字段，fetch_static_index 内部吞掉失败
        static_index = fetch_static_index()
        message = collect_realtime(timeout)
    except KomariError as e:
        logger.warning(f"[Komari] 实时状态查询失败: {e.kind.value}")
        if e.kind is ErrorKind.CONFIG_MISSING:
            return {"error": e.message}
        return {"error": f"连接失败: {e.message}"}

    nodes = normalize_nodes(message, static_index)
    logger.info(f"[Komari] 实时数据整理完成，共 {len(nodes)} 个节点")
    return {"text": format_realtime_report(nodes)}
