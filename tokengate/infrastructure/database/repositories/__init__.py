"""Database repositories module."""
from .base import BaseRepository, RepositoryError
from .token_repository import TokenRepository

__all__ = [
    'BaseRepository',
    'RepositoryError',
    'TokenRepository'
]
