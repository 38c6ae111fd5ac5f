from .reasons import (
    DEFAULT_REASON,
    REASON_MESSAGES,
    ContentFailure,
    DenialReason,
    ReasonMessage,
    message_for,
)
from .storage import DuplicateTokenError, InMemoryTokenStore, TokenStore
from .validator import AccessValidator, RequestMetadata, ValidationResult

__all__ = [
    "DEFAULT_REASON",
    "REASON_MESSAGES",
    "AccessValidator",
    "ContentFailure",
    "DenialReason",
    "DuplicateTokenError",
    "InMemoryTokenStore",
    "ReasonMessage",
    "RequestMetadata",
    "TokenStore",
    "ValidationResult",
    "message_for",
]
