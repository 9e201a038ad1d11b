"""
FastAPI dependency injection utilities for authentication, storage and services.
Provides reusable dependencies for route protection and user extraction.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from marketplace.database import get_db
from marketplace.models.user import User
from marketplace.services.auth import AuthService
from marketplace.services.property import PropertyService
from marketplace.services.upload import UploadService
from marketplace.utils.storage import S3Storage, get_storage
from marketplace.utils.exceptions import UnauthorizedError, InsufficientPermissionsError


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


async def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    """
    Get authentication service instance.

    Args:
        db: Database session

    Returns:
        AuthService instance
    """
    return AuthService(db)


async def get_property_service(
    db: AsyncSession = Depends(get_db),
    storage: S3Storage = Depends(get_storage)
) -> PropertyService:
    """
    Get property service instance.

    Args:
        db: Database session
        storage: Object storage adapter used for image cleanup

    Returns:
        PropertyService instance
    """
    return PropertyService(db, storage)


async def get_upload_service(storage: S3Storage = Depends(get_storage)) -> UploadService:
    return UploadService(storage)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """
    Get current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer credentials
        auth_service: Authentication service

    Returns:
        Current User object

    Raises:
        UnauthorizedError: If no token provided or token is invalid
        TokenExpiredError: If token is expired
        InactiveUserError: If user account is inactive
    """
    if not credentials:
        raise UnauthorizedError("No token, authorization denied")

    return await auth_service.get_current_user(credentials.credentials)


async def get_current_seller(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Get current user with seller role.

    Raises:
        InsufficientPermissionsError: If the user is not a seller
    """
    if not current_user.is_seller:
        raise InsufficientPermissionsError("create properties")

    return current_user
