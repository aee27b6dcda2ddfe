"""KomariBot 核心模块统一导入文件

查询 Komari 监控面板并以文本形式回复到 QQ（NapCat）。
"""

from . import config  # noqa: F401  注册配置项
from .service import get_nodes_status, get_public_settings, get_realtime_status, get_version_info
from .handler import dispatch_event, match_command
from .errors import ErrorKind, KomariError

__version__ = "1.0.0"
__all__ = [
    "get_nodes_status",
    "get_realtime_status",
    "get_public_settings",
    "get_version_info",
    "dispatch_event",
    "match_command",
    "ErrorKind",
    "KomariError",
    "__version__",
]
