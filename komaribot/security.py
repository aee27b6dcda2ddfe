import re
import logging

# ========== 日志脱敏规则 ==========
# (正则, 替换) 按顺序应用；Komari Token 会同时出现在 Authorization 和 Cookie 中
_SENSITIVE_PATTERNS = [
    (re.compile(r'(Bearer\s+)[\w.\-]+', re.IGNORECASE), r'\1****'),
    (re.compile(r'(session_token=)[^;&\s]+'), r'\1****'),
    (re.compile(r'(token|key|secret|password)=([^&\s]+)', re.IGNORECASE), r'\1=****'),
    (re.compile(r'(["\']?(?:komari_token|Authorization|Cookie)["\']?\s*[:=]\s*["\']?)[^"\',}\s]+'), r'\1****'),
]


def sanitize_log(content: str) -> str:
    """
    日志内容脱敏（隐藏Token和QQ号/群号）
    :param content: 原始日志内容
    :return: 脱敏后的日志内容
    """
    for pattern, replacement in _SENSITIVE_PATTERNS:
        content = pattern.sub(replacement, content)
    # 裸QQ/群号（9-12位数字）只保留后4位
    content = re.sub(r'(?<![\w.])([1-9]\d{8,11})(?![\w.])', lambda m: f"****{m.group(1)[-4:]}", content)
    return content


class SanitizeLogFilter(logging.Filter):
    """日志过滤器：所有日志输出前自动脱敏"""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.args:
            try:
                formatted_msg = record.msg % record.args
            except (TypeError, ValueError):
                formatted_msg = f"{record.msg} [参数: {record.args}]"
            record.msg = sanitize_log(formatted_msg)
            record.args = ()
        else:
            record.msg = sanitize_log(str(record.msg))
        return True
