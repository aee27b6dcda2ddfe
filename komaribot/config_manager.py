import os
import json
import logging
from typing import Any, Optional, TypeVar, Generic

# 配置文件路径（可通过 KOMARI_CONFIG_FILE 环境变量覆盖）
CONFIG_FILE_PATH = os.environ.get(
    "KOMARI_CONFIG_FILE",
    os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'config.json')
)

# 配置类型定义
T = TypeVar('T')

class ConfigItem(Generic[T]):
    """配置项类，支持类型转换和验证"""
    def __init__(self, key: str, default: T, description: str = '', required: bool = False,
                 env_var: Optional[str] = None, validate_func=None):
        self.key = key
        self.default = default
        self.description = description
        self.required = required
        self.env_var = env_var or f"KOMARI_{key.upper()}"
        self.validate_func = validate_func
        self.value: Optional[T] = None

    def validate(self, value: Any) -> bool:
        """验证配置值是否合法"""
        if self.validate_func:
            return self.validate_func(value)
        return True

    def convert_env(self, env_value: str) -> Any:
        """按默认值类型转换环境变量字符串"""
        if isinstance(self.default, bool):
            return env_value.lower() in ('true', '1', 'yes', 'y')
        if isinstance(self.default, int):
            return int(env_value)
        if isinstance(self.default, (dict, list)):
            return json.loads(env_value)
        return env_value

class ConfigManager:
    """配置管理器，支持环境变量、配置文件和默认值

    优先级：环境变量 > 配置文件 > 默认值。Komari 查询代码只读取配置，
    修改只通过 set() 或重新 load() 完成。
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
            cls._instance._config_items = {}
            cls._instance._file_config = {}
            cls._instance._config_path = CONFIG_FILE_PATH
            cls._instance._logger = logging.getLogger("KomariBot-Config")
        return cls._instance

    def register_config(self, config_item: ConfigItem) -> None:
        """注册配置项"""
        self._config_items[config_item.key] = config_item

    def load(self, config_path: Optional[str] = None) -> bool:
        """加载配置，优先级：环境变量 > 配置文件 > 默认值"""
        if config_path:
            self._config_path = config_path
        try:
            self._file_config = {}
            if os.path.exists(self._config_path):
                try:
                    with open(self._config_path, 'r', encoding='utf-8') as f:
                        self._file_config = json.load(f)
                    self._logger.info(f"✅ 配置文件加载成功: {self._config_path}")
                except json.JSONDecodeError as e:
                    self._logger.error(f"❌ 配置文件格式错误: {str(e)}")
                    return False
            else:
                self._logger.warning(f"⚠️ 配置文件不存在: {self._config_path}，将使用默认值和环境变量")

            for key, item in self._config_items.items():
                env_value = os.environ.get(item.env_var)
                if env_value is not None:
                    try:
                        item.value = item.convert_env(env_value)
                    except ValueError:
                        self._logger.error(f"❌ 环境变量 {item.env_var} 格式无效，使用默认值")
                        item.value = item.default
                    self._logger.debug(f"🔧 从环境变量加载配置 {key}: {item.env_var}")
                elif key in self._file_config:
                    item.value = self._file_config[key]
                    self._logger.debug(f"📄 从配置文件加载配置 {key}")
                else:
                    item.value = item.default
                    self._logger.debug(f"📌 使用默认配置 {key}")

                if not item.validate(item.value):
                    self._logger.error(f"❌ 配置 {key} 的值无效")
                    if item.required:
                        return False
                    # 无效时回退到默认值
                    item.value = item.default

                if item.required and item.value is None:
                    self._logger.error(f"❌ 缺少必填配置 {key}")
                    return False

            self._initialized = True
            self._logger.info("✅ 所有配置加载完成")
            return True
        except Exception as e:
            self._logger.error(f"❌ 配置加载异常: {str(e)}", exc_info=True)
            return False

    def get(self, key: str, default: Any = None) -> Any:
        """获取配置值"""
        if not self._initialized:
            if not self.load():
                return default

        item = self._config_items.get(key)
        if item:
            return item.value
        return default

    def set(self, key: str, value: Any) -> bool:
        """动态设置配置值"""
        if not self._initialized:
            self.load()
        item = self._config_items.get(key)
        if item:
            if item.validate(value):
                item.value = value
                self._logger.info(f"🔄 动态更新配置 {key}")
                return True
            else:
                self._logger.error(f"❌ 无法设置配置 {key}: 无效值")
        return False

# 创建全局配置管理器实例
config_manager = ConfigManager()
