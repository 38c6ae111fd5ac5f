from .resolver import (
    Content,
    ContentConfigurationError,
    ContentResolver,
    ExternalRedirect,
    ProjectInfo,
)

__all__ = [
    "Content",
    "ContentConfigurationError",
    "ContentResolver",
    "ExternalRedirect",
    "ProjectInfo",
]
