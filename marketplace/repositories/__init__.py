"""
Repository layer for data access operations.
Provides database operations with proper error handling.
"""

from marketplace.repositories.base import BaseRepository
from marketplace.repositories.property import PropertyRepository
from marketplace.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "PropertyRepository",
    "UserRepository"
]
