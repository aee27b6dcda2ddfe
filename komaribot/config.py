import re
from komaribot.config_manager import config_manager, ConfigItem


def _is_regex(value) -> bool:
    if not isinstance(value, str) or not value:
        return False
    try:
        re.compile(value)
    except re.error:
        return False
    return True


# ========== Komari 面板 ==========
config_manager.register_config(ConfigItem(
    key="komari_url",
    default="",
    description="Komari 服务器地址，如 https://status.example.com",
    validate_func=lambda x: isinstance(x, str)
))
config_manager.register_config(ConfigItem(
    key="komari_token",
    default="",
    description="API Key 或 Session Token（可选）",
    validate_func=lambda x: isinstance(x, str)
))

# ========== 插件开关与触发指令 ==========
config_manager.register_config(ConfigItem(
    key="enabled",
    default=True,
    description="是否启用 Komari 查询功能"
))
config_manager.register_config(ConfigItem(
    key="group_configs",
    default={},
    description="按群的单独配置，如 {\"123456\": {\"enabled\": false}}",
    validate_func=lambda x: isinstance(x, dict)
))
config_manager.register_config(ConfigItem(
    key="trigger_nodes",
    default="查询\\s*Komari\\s*节点状态",
    description="节点状态指令(正则)",
    validate_func=_is_regex
))
config_manager.register_config(ConfigItem(
    key="trigger_realtime",
    default="查询\\s*Komari\\s*实时状态",
    description="实时状态指令(正则)",
    validate_func=_is_regex
))
config_manager.register_config(ConfigItem(
    key="trigger_public",
    default="查询\\s*Komari\\s*公开设置",
    description="公开设置指令(正则)",
    validate_func=_is_regex
))
config_manager.register_config(ConfigItem(
    key="trigger_version",
    default="查询\\s*Komari\\s*版本信息",
    description="版本信息指令(正则)",
    validate_func=_is_regex
))

# ========== NapCat 与机器人 ==========
config_manager.register_config(ConfigItem(
    key="napcat_http_url",
    default="http://localhost:3000",
    description="Napcat HTTP API地址"
))
config_manager.register_config(ConfigItem(
    key="robot_qq",
    default="",
    description="机器人QQ号，用于过滤自身消息和识别@"
))
config_manager.register_config(ConfigItem(
    key="callback_port",
    default=3002,
    description="回调服务端口",
    validate_func=lambda x: isinstance(x, int) and 1024 <= x <= 65535
))

# ========== 日志 ==========
config_manager.register_config(ConfigItem(
    key="debug_mode",
    default=False,
    description="调试模式（文件日志使用JSON结构化格式）"
))
config_manager.register_config(ConfigItem(
    key="log_level",
    default="INFO",
    description="日志级别",
    validate_func=lambda x: x in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
))
config_manager.register_config(ConfigItem(
    key="log_encoding",
    default="utf-8",
    description="日志编码格式"
))
config_manager.register_config(ConfigItem(
    key="log_dir",
    default="logs",
    description="日志目录（相对路径基于项目根目录）"
))


def get_base_url() -> str:
    """Komari 地址，去掉末尾斜杠；未配置时返回空字符串"""
    return (config_manager.get("komari_url") or "").rstrip("/")


def get_token() -> str:
    return (config_manager.get("komari_token") or "").strip()


def get_triggers() -> dict:
    """指令名 -> 触发正则"""
    return {
        "nodes": config_manager.get("trigger_nodes"),
        "realtime": config_manager.get("trigger_realtime"),
        "public": config_manager.get("trigger_public"),
        "version": config_manager.get("trigger_version"),
    }


def is_group_enabled(group_id) -> bool:
    """群未单独配置时默认启用"""
    group_configs = config_manager.get("group_configs") or {}
    group_config = group_configs.get(str(group_id)) or {}
    return group_config.get("enabled", True) is not False
