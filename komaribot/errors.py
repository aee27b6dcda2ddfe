"""Komari 查询异常定义

所有查询失败都以 KomariError 抛出，由 service 模块的入口函数统一捕获，
转换为可直接发送给用户的文本。
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """错误类型"""
    CONFIG_MISSING = "ConfigMissing"  # 未配置服务器地址
    HTTP_STATUS = "HttpStatus"        # 非 2xx 响应
    TRANSPORT = "Transport"           # 网络/解析异常
    TIMEOUT = "Timeout"               # 实时数据超时
    API_FAILURE = "ApiFailure"        # HTTP 200 但 status 非 success
    EMPTY_RESULT = "EmptyResult"      # 节点列表为空


class KomariError(Exception):
    """Komari 查询异常，message 即面向用户的错误文本"""

    def __init__(self, kind: ErrorKind, message: str, status_code: Optional[int] = None):
        self.kind = kind
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def __repr__(self) -> str:
        return f"KomariError({self.kind.value}, {self.message!r})"


CONFIG_MISSING_MESSAGE = "请在配置中设置 Komari 服务器地址"


def config_missing() -> KomariError:
    return KomariError(ErrorKind.CONFIG_MISSING, CONFIG_MISSING_MESSAGE)
