"""
Utility modules for the marketplace API.
"""

from .auth import (
    create_access_token,
    verify_token,
    TokenExpired,
    TokenPayload
)

from .exceptions import (
    APIException,
    ValidationError,
    NotFoundError,
    UnauthorizedError,
    ForbiddenError,
    BadRequestError,
    InternalServerError,
    InvalidCredentialsError,
    TokenExpiredError,
    InvalidTokenError,
    InactiveUserError,
    InsufficientPermissionsError,
    DuplicateResourceError,
    PropertyNotFoundError,
    PropertyOwnershipError,
    AlreadyFavoritedError,
    FileUploadError,
    UnsupportedFileTypeError,
    FileSizeExceededError,
    StorageUnavailableError
)

# Dependencies are imported directly where needed to avoid circular imports

__all__ = [
    # Auth utilities
    "create_access_token",
    "verify_token",
    "TokenExpired",
    "TokenPayload",

    # Exceptions
    "APIException",
    "ValidationError",
    "NotFoundError",
    "UnauthorizedError",
    "ForbiddenError",
    "BadRequestError",
    "InternalServerError",
    "InvalidCredentialsError",
    "TokenExpiredError",
    "InvalidTokenError",
    "InactiveUserError",
    "InsufficientPermissionsError",
    "DuplicateResourceError",
    "PropertyNotFoundError",
    "PropertyOwnershipError",
    "AlreadyFavoritedError",
    "FileUploadError",
    "UnsupportedFileTypeError",
    "FileSizeExceededError",
    "StorageUnavailableError",
]
