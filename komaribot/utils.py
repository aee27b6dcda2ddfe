import json
import logging
from typing import Optional, Dict, Any

import requests

from .config_manager import config_manager
from .logger_manager import logger_manager

# 全局日志实例
logger = logger_manager.get_logger('KomariBot')
http_logger = logger_manager.get_logger('KomariBot-HTTP')


# ========== 通用消息发送工具（全局唯一实现，所有模块复用） ==========
def send_http_msg(target: str, content: str, chat_type: str = "private",
                  context: Optional[Dict[str, Any]] = None) -> bool:
    """
    统一处理私聊/群聊消息发送，适配Napcat接口
    :param target: 目标ID（私聊=用户ID，群聊=群ID）
    :param content: 消息内容
    :param chat_type: 聊天类型（private/group）
    :param context: 附加上下文信息
    :return: 发送成功返回True，失败返回False
    """
    log_context = {
        "target": target,
        "chat_type": chat_type,
        "content_preview": content[:50] + ("..." if len(content) > 50 else "")
    }
    if context:
        log_context.update(context)

    if not target or not content:
        logger_manager.log_with_context(logger, logging.ERROR, "[消息发送] 目标或内容不能为空", context=log_context)
        return False

    napcat_url = (config_manager.get("napcat_http_url") or "").rstrip("/")
    try:
        if chat_type == "private":
            url = f"{napcat_url}/send_private_msg"
            params = {"user_id": int(target), "message": content}
        else:
            url = f"{napcat_url}/send_group_msg"
            params = {"group_id": int(target), "message": content}

        headers = {"Content-Type": "application/json; charset=utf-8"}
        response = requests.post(
            url,
            data=json.dumps(params, ensure_ascii=False).encode("utf-8"),
            headers=headers,
            timeout=10
        )
        response.raise_for_status()
        result = response.json()

        if result.get("retcode") == 0:
            logger_manager.log_with_context(logger, logging.INFO, f"[消息发送] 成功发送{chat_type}消息", context=log_context)
            return True

        log_context['error_msg'] = result.get('msg', '未知错误')
        logger_manager.log_with_context(logger, logging.ERROR, f"[消息发送] {chat_type}消息发送失败", context=log_context)
        return False

    # 细分异常捕获（精准定位问题）
    except requests.exceptions.Timeout:
        logger_manager.log_with_context(logger, logging.ERROR, "[消息发送] 请求超时（10秒）", context=log_context)
        return False
    except requests.exceptions.HTTPError as e:
        log_context['status_code'] = e.response.status_code if e.response is not None else None
        logger_manager.log_with_context(logger, logging.ERROR, f"[消息发送] HTTP错误: {str(e)}", context=log_context)
        return False
    except requests.exceptions.ConnectionError:
        logger_manager.log_with_context(logger, logging.ERROR, "[消息发送] 连接失败，可能Napcat服务未运行", context=log_context)
        return False
    except ValueError as e:
        logger_manager.log_with_context(logger, logging.ERROR, f"[消息发送] 参数格式错误: {str(e)}", context=log_context)
        return False
    except requests.exceptions.RequestException as e:
        logger_manager.log_with_context(logger, logging.ERROR, f"[消息发送] 请求异常: {type(e).__name__}", context=log_context, exc_info=True)
        return False
