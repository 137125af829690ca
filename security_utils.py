"""
Модуль безопасности: маскировка конфиденциальных данных в логах
"""

import json
import re

import config

# Паттерн для маскировки чувствительных параметров в логах
SENSITIVE_RE = re.compile(
    r"(session(_?id|_?token)?|token|authorization)=([^&\s]+)", re.IGNORECASE
)

# Ключи тела запроса, которые не должны попадать в логи и ответы
SENSITIVE_KEYS = {
    "password",
    "passwd",
    "pwd",
    "token",
    "newpassword",
    "new_password",
    "sessiontoken",
    "session_token",
}


def scrub_payload(d):
    """Заменить значения чувствительных ключей на ***."""
    if not isinstance(d, dict):
        return d
    redacted = {}
    for k, v in d.items():
        if isinstance(k, str) and k.lower() in SENSITIVE_KEYS:
            redacted[k] = "***"
        else:
            redacted[k] = v
    return redacted


def sanitize_log_data(data):
    """
    Фильтрация конфиденциальной информации перед логированием

    Args:
        data: dict, str или любой другой объект для очистки

    Returns:
        str: Очищенная строка для безопасного логирования
    """
    if data is None:
        return "None"

    # При включённом LOG_SENSITIVE ничего не маскируем
    if config.LOG_SENSITIVE:
        return str(data)

    sensitive_patterns = [
        (r'password["\']?\s*[:=]\s*["\']([^"\']+)["\']', "password=***FILTERED***"),
        (r'token["\']?\s*[:=]\s*["\']([^"\']+)["\']', "token=***FILTERED***"),
        (r"Bearer\s+([a-zA-Z0-9\-._~+/]+=*)", "Bearer ***FILTERED***"),
    ]

    try:
        if isinstance(data, dict):
            data_str = json.dumps(
                {
                    key: ("***FILTERED***" if str(key).lower() in SENSITIVE_KEYS else v)
                    for key, v in data.items()
                },
                default=str,
                ensure_ascii=False,
            )
        elif isinstance(data, list):
            data_str = json.dumps(data, default=str, ensure_ascii=False)
        else:
            data_str = str(data)

        for pattern, replacement in sensitive_patterns:
            data_str = re.sub(pattern, replacement, data_str, flags=re.IGNORECASE)

        # E-mail и латвийские номера заявителей
        data_str = re.sub(
            r"([a-zA-Z0-9._%+-]+)@([a-zA-Z0-9.-]+\.[a-zA-Z]{2,})",
            r"***EMAIL***@\2",
            data_str,
        )
        data_str = re.sub(r"\+371\d{8}", "***PHONE***", data_str)

        return SENSITIVE_RE.sub(r"\1=***", data_str)

    except Exception as e:
        # В случае ошибки возвращаем общее сообщение без деталей
        return f"[Data sanitization error: {type(e).__name__}]"


def safe_log(logger, level, message, *args, **kwargs):
    """
    Безопасное логирование с автоматической фильтрацией конфиденциальных данных

    Args:
        logger: объект логгера
        level: уровень логирования (logging.DEBUG, logging.INFO, etc.)
        message: сообщение для логирования
        *args: дополнительные аргументы
        **kwargs: дополнительные именованные аргументы
    """
    try:
        if config.LOG_SENSITIVE:
            logger.log(level, message, *args, **kwargs)
            return

        sanitized_message = sanitize_log_data(message)
        sanitized_args = [sanitize_log_data(arg) for arg in args]
        logger.log(level, sanitized_message, *sanitized_args, **kwargs)

    except Exception as e:
        logger.log(level, f"[Log sanitization failed] {type(e).__name__}")
