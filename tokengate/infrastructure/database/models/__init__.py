"""Database models module."""
from .base import Base, TimestampedModel, UUIDModel
from .access_token import AccessEventModel, AccessTokenModel

__all__ = [
    'Base',
    'TimestampedModel',
    'UUIDModel',
    'AccessEventModel',
    'AccessTokenModel'
]
