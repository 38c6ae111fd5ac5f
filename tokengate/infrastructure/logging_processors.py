"""Custom structlog processors"""

import re
import socket
import sys
import traceback
from typing import Any, Dict

from structlog.contextvars import get_contextvars
from structlog.types import EventDict, WrappedLogger

SENSITIVE_KEYS = {
    "password", "token", "secret", "api_key", "authorization",
    "access_token", "bearer", "admin_key",
}

# Keys that contain a sensitive word but carry no secret
SAFE_KEYS = {"record_id", "token_id", "tokens_count"}

REQUEST_CONTEXT_KEYS = (
    "correlation_id",
    "request_method",
    "request_path",
    "client_ip",
)

# A visitor path segment after /t/ is the token itself
_TOKEN_PATH = re.compile(r"(?<![\w/.-])/t/[^/\s?#\"']+")


def redact_token_path(text: str) -> str:
    """Replace the token in any /t/<token> path found in text"""
    return _TOKEN_PATH.sub("/t/***", text)


def add_service_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level context to logs"""
    from tokengate.core.config import settings

    event_dict["service"] = "tokengate"
    event_dict["environment"] = settings.environment
    try:
        event_dict["hostname"] = socket.gethostname()
    except OSError:
        pass
    return event_dict


def add_request_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add request-specific context from contextvars"""
    context = get_contextvars()
    for key in REQUEST_CONTEXT_KEYS:
        if key in context:
            event_dict[key] = context[key]
    return event_dict


def sanitize_sensitive_data(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Mask token values and other secrets before rendering.

    Values under sensitive keys are replaced outright. Any string that
    contains a visitor path (uvicorn access lines, exception messages,
    request paths) has the token segment masked.
    """

    def sanitize_value(value: Any) -> Any:
        if isinstance(value, str):
            return redact_token_path(value)
        if isinstance(value, dict):
            return sanitize_dict(value)
        if isinstance(value, (list, tuple)):
            return [sanitize_value(item) for item in value]
        return value

    def sanitize_dict(d: Dict[str, Any]) -> Dict[str, Any]:
        sanitized = {}
        for key, value in d.items():
            lower_key = key.lower()

            if lower_key not in SAFE_KEYS and any(s in lower_key for s in SENSITIVE_KEYS):
                sanitized[key] = "***REDACTED***"
            elif key.startswith("_"):
                sanitized[key] = value
            else:
                sanitized[key] = sanitize_value(value)

        return sanitized

    return sanitize_dict(event_dict)


def format_exception_info(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Format exception information for better readability"""
    exc_info = event_dict.pop("exc_info", None)
    if exc_info:
        if isinstance(exc_info, tuple):
            exc_type, exc_value, exc_tb = exc_info
        elif isinstance(exc_info, BaseException):
            exc_type, exc_value, exc_tb = type(exc_info), exc_info, exc_info.__traceback__
        else:
            exc_type, exc_value, exc_tb = sys.exc_info()

        if exc_type:
            event_dict["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": traceback.format_exception(exc_type, exc_value, exc_tb)
            }

    return event_dict


def set_log_severity(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Set severity field for log aggregation systems"""
    level_map = {
        "debug": "DEBUG",
        "info": "INFO",
        "warning": "WARNING",
        "error": "ERROR",
        "critical": "CRITICAL"
    }

    if "level" in event_dict:
        event_dict["severity"] = level_map.get(event_dict["level"], "INFO")

    return event_dict
