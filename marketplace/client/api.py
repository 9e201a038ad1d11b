"""
Async HTTP client for the marketplace API.

Every call goes through `MarketplaceClient._request`, which attaches the
bearer token held by the client's `AuthSession` and turns non-2xx
responses into `ClientAPIError`.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import UUID
import logging

import httpx

from marketplace.client.exceptions import ClientAPIError
from marketplace.client.session import AuthSession

logger = logging.getLogger(__name__)

# (filename, content, content_type)
ImageFile = Tuple[str, bytes, str]


def _error_message(response: httpx.Response) -> str:
    """Pull the `message` field out of an error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase


def _drop_empty(params: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in params.items() if value is not None and value != ""}


class MarketplaceClient:
    """
    Client for every marketplace API endpoint.

    Args:
        base_url: API root including the `/api` prefix
        transport: Optional httpx transport, e.g. `ASGITransport` in tests
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        base_url: str = "http://localhost:5000/api",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 20.0
    ):
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)
        self.session = AuthSession(self)

    async def __aenter__(self) -> "MarketplaceClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        files: Optional[Any] = None
    ) -> Any:
        """
        Send a request and return the decoded JSON body.

        Raises:
            ClientAPIError: If the API answers with a non-2xx status
        """
        headers = {"Accept": "application/json"}
        if self.session.token:
            headers["Authorization"] = f"Bearer {self.session.token}"

        response = await self._http.request(
            method,
            path,
            json=json,
            params=params,
            files=files,
            headers=headers
        )
        logger.debug(f"{method} {path} -> {response.status_code}")

        if response.is_error:
            raise ClientAPIError(response.status_code, _error_message(response))

        return response.json() if response.content else None

    # Accounts

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        phone: Optional[str] = None,
        role: Optional[str] = None
    ) -> Dict[str, Any]:
        payload = _drop_empty({
            "name": name,
            "email": email,
            "password": password,
            "phone": phone,
            "role": role
        })
        return await self._request("POST", "/auth/register", json=payload)

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        return await self._request("POST", "/auth/login", json={"email": email, "password": password})

    async def me(self) -> Dict[str, Any]:
        return await self._request("GET", "/auth/me")

    async def update_profile(self, **changes) -> Dict[str, Any]:
        return await self._request("PUT", "/auth/profile", json=changes)

    async def get_favorites(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/auth/favorites")

    async def add_favorite(self, property_id: UUID) -> Dict[str, Any]:
        return await self._request("POST", f"/auth/favorites/{property_id}")

    async def remove_favorite(self, property_id: UUID) -> Dict[str, Any]:
        return await self._request("DELETE", f"/auth/favorites/{property_id}")

    # Listings

    async def list_properties(self, **params) -> Dict[str, Any]:
        """
        Fetch one page of listings.

        Keyword arguments are the listing query parameters (page, limit,
        search, property_type, status, min_price, max_price, bedrooms,
        bathrooms, city, state, sort_by, sort_order); None values are dropped.
        """
        return await self._request("GET", "/properties", params=_drop_empty(params))

    async def get_property(self, property_id: UUID) -> Dict[str, Any]:
        return await self._request("GET", f"/properties/{property_id}")

    async def my_properties(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/properties/user/my-properties")

    async def nearby_properties(
        self,
        longitude: float,
        latitude: float,
        max_distance: Optional[float] = None
    ) -> List[Dict[str, Any]]:
        params = _drop_empty({
            "longitude": longitude,
            "latitude": latitude,
            "max_distance": max_distance
        })
        return await self._request("GET", "/properties/search/nearby", params=params)

    async def create_property(self, data: Dict[str, Any]) -> Dict[str, Any]:
        body = await self._request("POST", "/properties", json=data)
        return body["property"]

    async def update_property(self, property_id: UUID, changes: Dict[str, Any]) -> Dict[str, Any]:
        body = await self._request("PUT", f"/properties/{property_id}", json=changes)
        return body["property"]

    async def delete_property(self, property_id: UUID) -> Dict[str, Any]:
        return await self._request("DELETE", f"/properties/{property_id}")

    async def add_property_images(
        self,
        property_id: UUID,
        images: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        body = await self._request("POST", f"/properties/{property_id}/images", json={"images": images})
        return body["property"]

    async def remove_property_image(self, property_id: UUID, key: str) -> Dict[str, Any]:
        body = await self._request("DELETE", f"/properties/{property_id}/images", params={"key": key})
        return body["property"]

    # Uploads

    async def upload_image(self, image: ImageFile) -> Dict[str, Any]:
        return await self._request("POST", "/upload/image", files={"image": image})

    async def upload_images(self, images: Iterable[ImageFile]) -> Dict[str, Any]:
        files = [("images", image) for image in images]
        return await self._request("POST", "/upload/images", files=files)

    async def delete_image(self, key: str) -> Dict[str, Any]:
        return await self._request("DELETE", f"/upload/image/{key}")
