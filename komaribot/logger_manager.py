import os
import sys
import json
import logging
import logging.handlers
import traceback
from datetime import datetime, timezone

from komaribot.security import SanitizeLogFilter

# 项目根目录，相对日志目录以此为基准
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

class StructuredLogFormatter(logging.Formatter):
    """结构化日志格式化器，支持JSON格式输出"""
    def __init__(self, structured: bool = False, include_stack_info: bool = False):
        self.structured = structured
        self.include_stack_info = include_stack_info
        if structured:
            super().__init__()
        else:
            super().__init__(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )

    def format(self, record: logging.LogRecord) -> str:
        if self.structured:
            log_data = {
                'timestamp': datetime.now(timezone.utc).isoformat(),
                'level': record.levelname,
                'logger': record.name,
                'message': record.getMessage(),
                'process': record.process,
                'thread': record.threadName
            }

            if hasattr(record, 'context'):
                log_data['context'] = record.context

            if record.exc_info:
                log_data['error'] = {
                    'type': record.exc_info[0].__name__,
                    'message': str(record.exc_info[1])
                }
                if self.include_stack_info:
                    log_data['stack_trace'] = ''.join(
                        traceback.format_exception(*record.exc_info)
                    )

            return json.dumps(log_data, ensure_ascii=False)

        color_map = {
            'DEBUG': '\033[36m',    # 青色
            'INFO': '\033[32m',     # 绿色
            'WARNING': '\033[33m',  # 黄色
            'ERROR': '\033[31m',    # 红色
            'CRITICAL': '\033[35m', # 紫色
        }
        reset = '\033[0m'

        formatted = super().format(record)

        # 只对日志级别部分着色
        if getattr(record, 'color_enabled', False):
            level_color = color_map.get(record.levelname, '')
            if level_color:
                parts = formatted.split(' - ', 3)
                if len(parts) >= 3:
                    parts[2] = f"{level_color}{parts[2]}{reset}"
                    formatted = ' - '.join(parts)

        return formatted

class LoggerManager:
    """日志管理器（单例）"""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._loggers = {}
            cls._instance._setup_completed = False
        return cls._instance

    def setup(self, log_level: str = "INFO", structured: bool = False,
              log_dir: str = "logs", encoding: str = "utf-8") -> bool:
        """设置日志系统：控制台 + 按天轮转的全量日志和错误日志"""
        try:
            if not os.path.isabs(log_dir):
                log_dir = os.path.join(BASE_DIR, log_dir)
            os.makedirs(log_dir, exist_ok=True)

            root_logger = logging.getLogger()
            root_logger.setLevel(getattr(logging, log_level))

            for handler in root_logger.handlers[:]:
                root_logger.removeHandler(handler)

            sanitize_filter = SanitizeLogFilter()

            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, log_level))
            console_handler.setFormatter(StructuredLogFormatter(structured=False))

            def add_color_support(record):
                record.color_enabled = hasattr(sys.stdout, 'isatty') and sys.stdout.isatty()
                return True

            console_handler.addFilter(sanitize_filter)
            console_handler.addFilter(add_color_support)
            root_logger.addHandler(console_handler)

            file_handler = logging.handlers.TimedRotatingFileHandler(
                os.path.join(log_dir, 'komaribot.log'),
                when='midnight',
                interval=1,
                backupCount=7,
                encoding=encoding
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(StructuredLogFormatter(structured=structured, include_stack_info=True))
            file_handler.addFilter(sanitize_filter)
            root_logger.addHandler(file_handler)

            error_handler = logging.handlers.TimedRotatingFileHandler(
                os.path.join(log_dir, 'komaribot_error.log'),
                when='midnight',
                interval=1,
                backupCount=14,  # 错误日志保留14天
                encoding=encoding
            )
            error_handler.setLevel(logging.ERROR)
            error_handler.setFormatter(StructuredLogFormatter(structured=structured, include_stack_info=True))
            error_handler.addFilter(sanitize_filter)
            root_logger.addHandler(error_handler)

            self._setup_completed = True

            main_logger = self.get_logger('KomariBot')
            main_logger.info(f"✅ 日志系统初始化完成，级别: {log_level}")
            main_logger.info(f"📁 日志文件目录: {log_dir}")
            main_logger.info(f"🔄 结构化日志: {'是' if structured else '否'}")
            return True
        except (OSError, AttributeError) as e:
            print(f"❌ 日志系统初始化失败: {str(e)}")
            return False

    def get_logger(self, name: str) -> logging.Logger:
        """获取指定名称的日志器"""
        if name not in self._loggers:
            self._loggers[name] = logging.getLogger(name)
        return self._loggers[name]

    def log_with_context(self, logger, level, message, context=None, exc_info=False) -> None:
        """带上下文信息的日志记录"""
        if isinstance(logger, str):
            logger = self.get_logger(logger)
        if context:
            context_str = json.dumps(context, ensure_ascii=False, default=str) if isinstance(context, dict) else str(context)
            message = f"{message} | 上下文: {context_str}"
        logger.log(level, message, exc_info=exc_info, extra={'context': context} if context else None)

# 创建全局日志管理器实例
logger_manager = LoggerManager()
