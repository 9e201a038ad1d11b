"""
Python client for the marketplace API.
"""

from .exceptions import ClientAPIError
from .api import MarketplaceClient
from .session import AuthSession, FavoritesCache
from .filters import ClientFilters, apply_filters

__all__ = [
    "ClientAPIError",
    "MarketplaceClient",
    "AuthSession",
    "FavoritesCache",
    "ClientFilters",
    "apply_filters",
]
