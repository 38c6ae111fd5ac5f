from .token import (
    ACCESS_LOG_LIMIT,
    EXPIRING_SOON_WINDOW,
    TOKEN_LENGTH,
    WILDCARD_PAGE,
    AccessEvent,
    TokenCreate,
    TokenRecord,
    TokenStatus,
    TokenUpdate,
    generate_token,
    normalize_page,
    utc_now,
)
from .access_log import AccessLogBuffer

__all__ = [
    "ACCESS_LOG_LIMIT",
    "EXPIRING_SOON_WINDOW",
    "TOKEN_LENGTH",
    "WILDCARD_PAGE",
    "AccessEvent",
    "AccessLogBuffer",
    "TokenCreate",
    "TokenRecord",
    "TokenStatus",
    "TokenUpdate",
    "generate_token",
    "normalize_page",
    "utc_now",
]
