"""
Pydantic schemas for request/response validation.
"""

# Authentication schemas
from .auth import (
    LoginRequest,
    AuthResponse,
    ProfileUpdateResponse,
    MessageResponse
)

# User schemas
from .user import (
    UserCreate,
    UserProfileUpdate,
    UserResponse,
    UserProfileResponse,
    SellerSummary
)

# Property schemas
from .property import (
    AddressSchema,
    AddressUpdate,
    GeoPoint,
    ImageDescriptor,
    PropertyFeatures,
    ContactInfo,
    PropertyCreate,
    PropertyUpdate,
    PropertyImagesAdd,
    PropertyResponse,
    NearbyPropertyResponse,
    PropertyMessageResponse,
    PropertyListResponse
)

# Upload schemas
from .upload import (
    ImageUploadResponse,
    UploadedImage,
    MultipleImageUploadResponse
)

# Error schemas
from .error import ErrorDetail, ErrorResponse

__all__ = [
    # Authentication
    "LoginRequest",
    "AuthResponse",
    "ProfileUpdateResponse",
    "MessageResponse",

    # User
    "UserCreate",
    "UserProfileUpdate",
    "UserResponse",
    "UserProfileResponse",
    "SellerSummary",

    # Property
    "AddressSchema",
    "AddressUpdate",
    "GeoPoint",
    "ImageDescriptor",
    "PropertyFeatures",
    "ContactInfo",
    "PropertyCreate",
    "PropertyUpdate",
    "PropertyImagesAdd",
    "PropertyResponse",
    "NearbyPropertyResponse",
    "PropertyMessageResponse",
    "PropertyListResponse",

    # Upload
    "ImageUploadResponse",
    "UploadedImage",
    "MultipleImageUploadResponse",

    # Errors
    "ErrorDetail",
    "ErrorResponse"
]
