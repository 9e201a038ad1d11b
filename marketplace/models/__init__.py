"""
Database models for the marketplace.
Includes User and Property models with their relationships.
"""

from marketplace.models.user import User, UserRole, user_favorites
from marketplace.models.property import Property, PropertyType, PropertyStatus

__all__ = [
    "User",
    "UserRole",
    "user_favorites",
    "Property",
    "PropertyType",
    "PropertyStatus",
]
