"""
Test configuration and fixtures for the marketplace API.
Provides database fixtures, an in-memory storage double, test data factories
and common test utilities.
"""

import os

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import io
import uuid
from decimal import Decimal
from typing import AsyncGenerator, Any, Dict, List, Optional

import pytest
from httpx import AsyncClient, ASGITransport
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from marketplace.main import app
from marketplace.database import Base, get_db
from marketplace.models.user import User, UserRole
from marketplace.models.property import Property, PropertyType, PropertyStatus
from marketplace.repositories.user import UserRepository
from marketplace.repositories.property import PropertyRepository
from marketplace.services.auth import AuthService
from marketplace.services.property import PropertyService, to_columns
from marketplace.services.upload import UploadService
from marketplace.utils.exceptions import StorageUnavailableError
from marketplace.utils.storage import S3Storage, get_storage


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class InMemoryStorage(S3Storage):
    """S3Storage double keeping blobs in a dict."""

    def __init__(self, configured: bool = True):
        super().__init__(
            bucket="test-bucket" if configured else None,
            region="us-east-1" if configured else None,
            access_key_id="test-key" if configured else None,
            secret_access_key="test-secret" if configured else None
        )
        self.objects: Dict[str, bytes] = {}
        self.deleted: List[str] = []
        self.failing_deletes: set = set()

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        if not self.available:
            raise StorageUnavailableError()
        self.objects[key] = data
        return self.public_url(key)

    async def delete(self, key: str) -> bool:
        self.deleted.append(key)
        if key in self.failing_deletes:
            return False
        self.objects.pop(key, None)
        return True


@pytest.fixture
async def test_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False}
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(bind=test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
async def async_client(session_factory, storage: InMemoryStorage) -> AsyncGenerator[AsyncClient, None]:
    """Async client talking to the app in-process, one session per request."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# Repository fixtures
@pytest.fixture
def user_repository(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def property_repository(db_session: AsyncSession) -> PropertyRepository:
    return PropertyRepository(db_session)


# Service fixtures
@pytest.fixture
def auth_service(db_session: AsyncSession) -> AuthService:
    return AuthService(db_session)


@pytest.fixture
def property_service(db_session: AsyncSession, storage: InMemoryStorage) -> PropertyService:
    return PropertyService(db_session, storage)


@pytest.fixture
def upload_service(storage: InMemoryStorage) -> UploadService:
    return UploadService(storage)


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    def create_user_data(
        email: Optional[str] = None,
        password: str = "testpassword123",
        name: str = "Test User",
        phone: Optional[str] = None,
        role: UserRole = UserRole.BUYER,
        is_active: bool = True
    ) -> dict:
        return {
            "email": email or f"test{uuid.uuid4().hex[:8]}@example.com",
            "password": password,
            "name": name,
            "phone": phone,
            "role": role,
            "is_active": is_active
        }

    @staticmethod
    async def create_user(user_repo: UserRepository, **kwargs) -> User:
        """Create a test user in the database."""
        return await user_repo.create_user(UserFactory.create_user_data(**kwargs))


class PropertyFactory:
    """Factory for listing payloads and stored listings."""

    @staticmethod
    def create_payload(
        title: str = "Test Property",
        description: str = "A beautiful test property",
        property_type: str = "house",
        status: str = "for-sale",
        price: float = 250000,
        bedrooms: int = 3,
        bathrooms: int = 2,
        street: str = "123 Main St",
        city: str = "Springfield",
        state: str = "IL",
        zip_code: str = "62701",
        longitude: float = -89.65,
        latitude: float = 39.78,
        images: Optional[List[Dict[str, Any]]] = None,
        amenities: Optional[List[str]] = None
    ) -> dict:
        """Listing body as sent to POST /api/properties."""
        return {
            "title": title,
            "description": description,
            "price": price,
            "property_type": property_type,
            "status": status,
            "bedrooms": bedrooms,
            "bathrooms": bathrooms,
            "address": {
                "street": street,
                "city": city,
                "state": state,
                "zip_code": zip_code,
                "country": "USA"
            },
            "location": {"type": "Point", "coordinates": [longitude, latitude]},
            "images": images or [],
            "amenities": amenities or [],
            "contact_info": {"phone": "555-0100", "email": "contact@example.com"}
        }

    @staticmethod
    def create_property_data(seller_id: uuid.UUID, is_active: bool = True, **kwargs) -> dict:
        """Column values for PropertyRepository.create_property."""
        columns = to_columns(PropertyFactory.create_payload(**kwargs))
        columns["price"] = Decimal(str(columns["price"]))
        columns["property_type"] = PropertyType(columns["property_type"])
        columns["status"] = PropertyStatus(columns["status"])
        columns["seller_id"] = seller_id
        columns["is_active"] = is_active
        return columns

    @staticmethod
    async def create_property(property_repo: PropertyRepository, seller_id: uuid.UUID, **kwargs) -> Property:
        """Create a test property in the database."""
        return await property_repo.create_property(PropertyFactory.create_property_data(seller_id, **kwargs))


@pytest.fixture
def user_factory() -> UserFactory:
    return UserFactory()


@pytest.fixture
def property_factory() -> PropertyFactory:
    return PropertyFactory()


# Common test fixtures
@pytest.fixture
async def test_seller(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="seller@test.com",
        name="Test Seller",
        phone="555-0199",
        role=UserRole.SELLER
    )


@pytest.fixture
async def test_buyer(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="buyer@test.com",
        name="Test Buyer",
        role=UserRole.BUYER
    )


@pytest.fixture
async def test_property(property_repository: PropertyRepository, test_seller: User) -> Property:
    return await PropertyFactory.create_property(
        property_repository,
        seller_id=test_seller.id,
        title="Test Property",
        price=150000
    )


async def register_user(
    client: AsyncClient,
    role: str = "buyer",
    email: Optional[str] = None,
    password: str = "testpassword123",
    name: str = "Test User"
) -> dict:
    """Register through the API and return the {message, token, user} body."""
    response = await client.post(
        "/api/auth/register",
        json={
            "name": name,
            "email": email or f"{role}{uuid.uuid4().hex[:8]}@example.com",
            "password": password,
            "role": role
        }
    )
    assert response.status_code == 201, response.text
    return response.json()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def seller_auth(async_client: AsyncClient) -> dict:
    return await register_user(async_client, role="seller", name="Api Seller")


@pytest.fixture
async def other_seller_auth(async_client: AsyncClient) -> dict:
    return await register_user(async_client, role="seller", name="Other Seller")


@pytest.fixture
async def buyer_auth(async_client: AsyncClient) -> dict:
    return await register_user(async_client, role="buyer", name="Api Buyer")


def create_test_image(width: int = 64, height: int = 48, format: str = "PNG") -> bytes:
    """Create a test image in memory."""
    img = Image.new("RGB", (width, height), color="red")
    img_bytes = io.BytesIO()
    img.save(img_bytes, format=format)
    return img_bytes.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return create_test_image()


def assert_error_body(response, status_code: int, message: Optional[str] = None):
    """Assert the structured error envelope."""
    assert response.status_code == status_code, response.text
    body = response.json()
    assert "message" in body
    assert "code" in body
    assert "timestamp" in body
    assert "request_id" in body
    if message is not None:
        assert body["message"] == message
