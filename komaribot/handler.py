import re
from typing import Callable, Dict, Optional

from .config import get_triggers, is_group_enabled
from .config_manager import config_manager
from .service import get_nodes_status, get_public_settings, get_realtime_status, get_version_info
from .utils import logger, send_http_msg


def _as_text(result) -> str:
    """统一入口返回值：字符串原样返回，字典取 text 或 error"""
    if isinstance(result, dict):
        return result.get("text") or result.get("error") or ""
    return str(result)


# 指令名 -> 查询函数（与 config.get_triggers 的键一致）
COMMANDS: Dict[str, Callable[[], object]] = {
    "nodes": get_nodes_status,
    "realtime": get_realtime_status,
    "public": get_public_settings,
    "version": get_version_info,
}


def match_command(raw_msg: str) -> Optional[str]:
    """按 节点 > 实时 > 公开设置 > 版本 的顺序匹配触发正则（忽略大小写）"""
    if not raw_msg:
        return None
    for name, pattern in get_triggers().items():
        if not pattern:
            continue
        try:
            if re.search(pattern, raw_msg, re.IGNORECASE):
                return name
        except re.error as e:
            logger.error(f"[指令匹配] 触发正则无效（{name}）：{str(e)}")
    return None


def run_command(name: str) -> str:
    logger.info(f"[Komari] 执行指令: {name}")
    return _as_text(COMMANDS[name]())


def parse_event(data: dict) -> Optional[dict]:
    """从 OneBot 消息事件中取出分发所需字段，非消息事件返回 None"""
    if not isinstance(data, dict) or data.get("post_type") != "message":
        return None

    chat_type = data.get("message_type")
    sender_id = str(data.get("user_id", ""))
    target_id = str(data.get("user_id" if chat_type == "private" else "group_id", ""))
    raw_msg = str(data.get("raw_message", "")).strip()

    robot_qq = str(config_manager.get("robot_qq") or "")
    if robot_qq and sender_id == robot_qq:
        logger.debug("[过滤] 机器人自身消息，跳过处理")
        return None
    if robot_qq:
        raw_msg = raw_msg.replace(f"[CQ:at,qq={robot_qq}]", "").replace(f"@{robot_qq}", "").strip()

    return {
        "chat_type": chat_type,
        "sender_id": sender_id,
        "target_id": target_id,
        "raw_msg": raw_msg,
    }


def handle_message(parsed: dict) -> Optional[str]:
    """匹配指令并生成回复文本；未启用、未匹配时返回 None"""
    if not config_manager.get("enabled", True):
        return None
    if parsed["chat_type"] == "group" and not is_group_enabled(parsed["target_id"]):
        logger.debug("[指令分发] 当前群已关闭 Komari 查询")
        return None

    name = match_command(parsed["raw_msg"])
    if name is None:
        return None
    return run_command(name)


def dispatch_event(data: dict, sender: Callable[..., bool] = send_http_msg) -> bool:
    """处理一个 NapCat 回调事件，有回复时发送并返回 True"""
    parsed = parse_event(data)
    if parsed is None:
        return False

    reply = handle_message(parsed)
    if not reply:
        return False

    sent = sender(parsed["target_id"], reply, parsed["chat_type"])
    logger.info(f"[指令分发] 指令「{parsed['raw_msg'][:20]}」处理完成（发送：{sent}）")
    return True
