"""Database infrastructure module."""
from .connection import DatabaseConnection
from .store import SqlTokenStore

__all__ = [
    'DatabaseConnection',
    'SqlTokenStore'
]
