"""
Account API endpoints for registration, login, profile and favorites.
"""

from fastapi import APIRouter, Depends, status
from typing import List
from uuid import UUID

from marketplace.models.user import User
from marketplace.services.auth import AuthService
from marketplace.schemas.auth import LoginRequest, AuthResponse, ProfileUpdateResponse, MessageResponse
from marketplace.schemas.user import UserCreate, UserProfileUpdate, UserProfileResponse
from marketplace.schemas.property import PropertyResponse
from marketplace.schemas.error import COMMON_ERROR_RESPONSES
from marketplace.utils.dependencies import get_auth_service, get_current_user


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
    description="Create a buyer or seller account and return a JWT token",
    responses=COMMON_ERROR_RESPONSES
)
async def register(
    user_data: UserCreate,
    auth_service: AuthService = Depends(get_auth_service)
) -> AuthResponse:
    """
    Register a new user.

    Args:
        user_data: Registration data; role defaults to buyer
        auth_service: Authentication service

    Returns:
        Token and public profile

    Raises:
        DuplicateResourceError: If the email is already registered
    """
    user, token = await auth_service.register(user_data)
    return AuthResponse(
        message="User registered successfully",
        token=token,
        user=user.to_dict()
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    status_code=status.HTTP_200_OK,
    summary="User login",
    description="Authenticate user with email and password, returns a JWT token",
    responses=COMMON_ERROR_RESPONSES
)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> AuthResponse:
    """
    Authenticate user and return a JWT token.

    Raises:
        InvalidCredentialsError: If the email is unknown or the password is wrong
    """
    user, token = await auth_service.login(login_data.email, login_data.password)
    return AuthResponse(
        message="Login successful",
        token=token,
        user=user.to_dict()
    )


@router.get(
    "/me",
    response_model=UserProfileResponse,
    summary="Get current user",
    description="Profile of the authenticated user with favorite listing ids",
    responses=COMMON_ERROR_RESPONSES
)
async def get_me(
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> UserProfileResponse:
    return await auth_service.get_profile(current_user)


@router.put(
    "/profile",
    response_model=ProfileUpdateResponse,
    summary="Update profile",
    description="Change name, phone or role of the authenticated user",
    responses=COMMON_ERROR_RESPONSES
)
async def update_profile(
    changes: UserProfileUpdate,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> ProfileUpdateResponse:
    user = await auth_service.update_profile(current_user, changes)
    return ProfileUpdateResponse(message="Profile updated successfully", user=user.to_dict())


@router.get(
    "/favorites",
    response_model=List[PropertyResponse],
    summary="List favorites",
    description="Favorite listings of the authenticated user in the order they were added",
    responses=COMMON_ERROR_RESPONSES
)
async def get_favorites(
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> List[PropertyResponse]:
    favorites = await auth_service.get_favorites(current_user)
    return [property_obj.to_dict() for property_obj in favorites]


@router.post(
    "/favorites/{property_id}",
    response_model=MessageResponse,
    summary="Add favorite",
    responses={**COMMON_ERROR_RESPONSES, 404: {"description": "Listing not found"}}
)
async def add_favorite(
    property_id: UUID,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    """
    Add a listing to the current user's favorites.

    Raises:
        AlreadyFavoritedError: If the listing is already a favorite
        PropertyNotFoundError: If the listing does not exist
    """
    await auth_service.add_favorite(current_user, property_id)
    return MessageResponse(message="Property added to favorites")


@router.delete(
    "/favorites/{property_id}",
    response_model=MessageResponse,
    summary="Remove favorite",
    description="Removing a listing that is not a favorite succeeds without changes",
    responses=COMMON_ERROR_RESPONSES
)
async def remove_favorite(
    property_id: UUID,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    await auth_service.remove_favorite(current_user, property_id)
    return MessageResponse(message="Property removed from favorites")
