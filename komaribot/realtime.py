"""Komari 实时数据采集

连接 /api/clients，发送 get，只读取第一条消息。连接、发送、接收整体
受一个超时约束，任何退出路径都会关闭连接。
"""

import asyncio
from typing import Any, Dict

import websockets

from .client import build_headers, fetch_api
from .config import get_base_url
from .errors import ErrorKind, KomariError, config_missing
from .normalizer import loads_json
from .utils import http_logger

REALTIME_PATH = "/api/clients"
REALTIME_COMMAND = "get"
REALTIME_TIMEOUT = 3.0  # 秒


def to_ws_url(base: str) -> str:
    """http(s) 地址转换为 ws(s) 地址"""
    if base.startswith("https://"):
        return "wss://" + base[len("https://"):]
    if base.startswith("http://"):
        return "ws://" + base[len("http://"):]
    return base


def fetch_static_index() -> Dict[str, dict]:
    """拉取静态节点信息，按 id 和 uuid 建索引；失败时返回空字典"""
    index = {}
    try:
        raw = fetch_api("/api/nodes").raw
    except KomariError as e:
        # 仅用于补全字段，失败不影响实时查询
        http_logger.debug(f"[Komari] 静态节点信息获取失败，已忽略: {e.message}")
        return index

    nodes = raw.get("data") if isinstance(raw, dict) else None
    if not isinstance(nodes, list):
        return index
    for node in nodes:
        if not isinstance(node, dict):
            continue
        if node.get("id"):
            index[str(node["id"])] = node
        if node.get("uuid"):
            index[str(node["uuid"])] = node
    return index


def decode_message(message: Any) -> Any:
    """消息不是合法JSON时按空对象处理"""
    try:
        return loads_json(message)
    except (TypeError, ValueError):
        return {}


async def receive_snapshot(ws_url: str, headers: Dict[str, str]) -> Any:
    async with websockets.connect(ws_url, additional_headers=headers) as ws:
        await ws.send(REALTIME_COMMAND)
        message = await ws.recv()
    return decode_message(message)


def collect_realtime(timeout: float = REALTIME_TIMEOUT) -> Any:
    """
    采集一次实时快照
    :param timeout: 从发起连接到收到第一条消息的总时限（秒）
    :return: 解析后的消息
    :raises KomariError: ConfigMissing / Transport / Timeout
    """
    base = get_base_url()
    if not base:
        raise config_missing()

    ws_url = to_ws_url(base) + REALTIME_PATH
    http_logger.info(f"[Komari] 连接实时接口 {ws_url}")
    try:
        return asyncio.run(asyncio.wait_for(receive_snapshot(ws_url, build_headers()), timeout))
    except asyncio.TimeoutError:
        http_logger.warning(f"[Komari] 实时数据超时（{timeout}秒）")
        raise KomariError(ErrorKind.TIMEOUT, "实时数据超时")
    except (OSError, websockets.exceptions.WebSocketException) as e:
        http_logger.warning(f"[Komari] 实时接口连接失败: {type(e).__name__}")
        raise KomariError(ErrorKind.TRANSPORT, str(e) or type(e).__name__) from e
