"""Komari HTTP 接口访问

每次调用只发一次 GET，不设超时、不重试；所有失败以 KomariError 抛出。
"""

from typing import Any, Dict, NamedTuple

import requests

from .config import get_base_url, get_token
from .errors import ErrorKind, KomariError, config_missing
from .utils import http_logger


class ApiResponse(NamedTuple):
    """data 为信封中的 data 字段（没有时为整个响应体），raw 为原始信封"""
    data: Any
    raw: Any


def build_headers() -> Dict[str, str]:
    """配置了 Token 时同时携带 Bearer 和 session_token Cookie"""
    headers = {}
    token = get_token()
    if token:
        headers["Authorization"] = f"Bearer {token}"
        headers["Cookie"] = f"session_token={token}"
    return headers


def extract_payload(body: Any) -> Any:
    if isinstance(body, dict) and body.get("data") is not None:
        return body["data"]
    return body


def fetch_api(endpoint: str) -> ApiResponse:
    """
    GET 一个 Komari 接口
    :param endpoint: 接口路径，如 /api/nodes
    :return: ApiResponse(data, raw)
    :raises KomariError: ConfigMissing / HttpStatus / Transport
    """
    base = get_base_url()
    if not base:
        raise config_missing()

    url = f"{base}{endpoint}"
    http_logger.info(f"[Komari] GET {url}")
    try:
        resp = requests.get(url, headers=build_headers())
        if not 200 <= resp.status_code < 300:
            http_logger.warning(f"[Komari] {endpoint} 返回状态码 {resp.status_code}")
            raise KomariError(ErrorKind.HTTP_STATUS, f"API 请求错误: {resp.status_code}",
                              status_code=resp.status_code)
        body = resp.json()
    except requests.exceptions.RequestException as e:
        http_logger.warning(f"[Komari] {endpoint} 请求失败: {type(e).__name__}")
        raise KomariError(ErrorKind.TRANSPORT, str(e)) from e
    except ValueError as e:
        # 响应体不是合法JSON
        http_logger.warning(f"[Komari] {endpoint} 响应解析失败: {str(e)}")
        raise KomariError(ErrorKind.TRANSPORT, str(e)) from e

    return ApiResponse(data=extract_payload(body), raw=body)
