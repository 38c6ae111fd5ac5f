"""structlog setup shared by the web service and the CLI.

Both structlog events and records from stdlib loggers (uvicorn, SQLAlchemy)
pass through the same processor chain, so token redaction applies to every
line that reaches the handler, including uvicorn's access log.
"""

import logging
import sys
from typing import Any, List, Optional, TextIO

import structlog
from structlog.types import Processor

from tokengate.core.config import Settings, get_settings
from tokengate.infrastructure.logging_processors import (
    add_service_context,
    add_request_context,
    sanitize_sensitive_data,
    format_exception_info,
    set_log_severity,
)

# Routed to our handler instead of their own
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def build_processors() -> List[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        add_service_context,
        add_request_context,
        structlog.processors.add_log_level,
        set_log_severity,
        format_exception_info,
        structlog.processors.TimeStamper(fmt="iso"),
        sanitize_sensitive_data,
    ]


def build_renderer(settings: Settings) -> Processor:
    if settings.log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=settings.is_development)


def setup_logging(settings: Optional[Settings] = None, stream: Optional[TextIO] = None) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        settings: Settings to read level and format from; the cached
            application settings are used when omitted
        stream: Output stream, stdout by default. The CLI passes stderr so
            log lines never mix with JSON command output.
    """
    settings = settings or get_settings()
    processors = build_processors()
    level = getattr(logging, settings.log_level)

    structlog.configure(
        processors=processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                build_renderer(settings),
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.addHandler(handler)
        server_logger.setLevel(level)
        server_logger.propagate = False


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)
