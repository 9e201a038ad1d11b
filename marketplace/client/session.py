"""
Client-side session state: the signed-in user, their token and their favorites.
"""

from typing import Any, Dict, List, Optional, TYPE_CHECKING
from uuid import UUID
import logging

from marketplace.client.exceptions import ClientAPIError

if TYPE_CHECKING:
    from marketplace.client.api import MarketplaceClient

logger = logging.getLogger(__name__)


class FavoritesCache:
    """
    Local copy of the signed-in user's favorite listings.
    Every add or remove goes to the server and then refetches the list.
    """

    def __init__(self, client: "MarketplaceClient"):
        self._client = client
        self._properties: List[Dict[str, Any]] = []

    @property
    def properties(self) -> List[Dict[str, Any]]:
        return list(self._properties)

    @property
    def ids(self) -> List[str]:
        return [prop["id"] for prop in self._properties]

    @property
    def count(self) -> int:
        return len(self._properties)

    def contains(self, property_id: UUID) -> bool:
        return str(property_id) in self.ids

    async def refresh(self) -> None:
        """Reload favorites; a failed fetch leaves the cache empty."""
        try:
            self._properties = await self._client.get_favorites() or []
        except ClientAPIError as e:
            logger.warning(f"Could not load favorites: {e.message}")
            self._properties = []

    async def add(self, property_id: UUID) -> None:
        await self._client.add_favorite(property_id)
        await self.refresh()

    async def remove(self, property_id: UUID) -> None:
        await self._client.remove_favorite(property_id)
        await self.refresh()

    def clear(self) -> None:
        self._properties = []


class AuthSession:
    """
    Authentication state shared by a `MarketplaceClient`.
    Holds the JWT token and user record; the client reads the token from here.
    """

    def __init__(self, client: "MarketplaceClient"):
        self._client = client
        self.token: Optional[str] = None
        self.user: Optional[Dict[str, Any]] = None
        self.favorites = FavoritesCache(client)

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None and self.user is not None

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Sign in and load favorites.

        Raises:
            ClientAPIError: If the credentials are rejected
        """
        body = await self._client.login(email, password)
        return await self._start(body)

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        phone: Optional[str] = None,
        role: Optional[str] = None
    ) -> Dict[str, Any]:
        body = await self._client.register(name, email, password, phone=phone, role=role)
        return await self._start(body)

    async def restore(self, token: str) -> bool:
        """
        Resume a session from a stored token.

        Returns:
            True if the token is still accepted; otherwise the session is cleared
        """
        self.token = token
        try:
            self.user = await self._client.me()
        except ClientAPIError as e:
            logger.info(f"Stored token rejected: {e.message}")
            self.logout()
            return False

        await self.favorites.refresh()
        return True

    def logout(self) -> None:
        self.token = None
        self.user = None
        self.favorites.clear()

    async def _start(self, body: Dict[str, Any]) -> Dict[str, Any]:
        self.token = body["token"]
        self.user = body["user"]
        await self.favorites.refresh()
        return self.user
