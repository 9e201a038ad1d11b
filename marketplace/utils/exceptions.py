"""
Exception hierarchy for the marketplace API.

Each class fixes an HTTP status and a machine readable `error_code`;
ErrorHandlerService renders them into the common error body.
"""

from typing import Any, Dict, Optional, List
from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base class; subclasses override the class attributes below."""

    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "API_ERROR"
    default_detail: str = "Request failed"

    def __init__(self, detail: Optional[str] = None, headers: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=self.http_status,
            detail=detail or self.default_detail,
            headers=headers
        )


class BadRequestError(APIException):
    http_status = status.HTTP_400_BAD_REQUEST
    error_code = "BAD_REQUEST"
    default_detail = "Bad request"


class ValidationError(BadRequestError):
    """Missing or invalid input, optionally with per-field problems."""

    error_code = "VALIDATION_ERROR"

    def __init__(self, detail: str, field_errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(detail)
        self.field_errors = field_errors or []


class NotFoundError(APIException):
    http_status = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        detail = f"{resource} not found"
        if resource_id:
            detail += f" with ID: {resource_id}"
        super().__init__(detail)


class UnauthorizedError(APIException):
    """Missing or unusable credentials. Always answers with a Bearer challenge."""

    http_status = status.HTTP_401_UNAUTHORIZED
    error_code = "UNAUTHORIZED"
    default_detail = "Authentication required"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class ForbiddenError(APIException):
    http_status = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"
    default_detail = "Access forbidden"


class InternalServerError(APIException):
    error_code = "INTERNAL_SERVER_ERROR"
    default_detail = "Internal server error"


# Accounts

class InvalidCredentialsError(BadRequestError):
    """Unknown email or wrong password; the two cases share one message."""

    error_code = "INVALID_CREDENTIALS"
    default_detail = "Invalid credentials"

    def __init__(self):
        super().__init__()


class TokenExpiredError(UnauthorizedError):
    default_detail = "Token has expired"


class InvalidTokenError(UnauthorizedError):
    default_detail = "Invalid token"


class InactiveUserError(UnauthorizedError):
    default_detail = "User account is inactive"


class InsufficientPermissionsError(ForbiddenError):

    def __init__(self, action: str):
        super().__init__(f"Insufficient permissions to {action}")


class DuplicateResourceError(BadRequestError):
    error_code = "DUPLICATE_RESOURCE"


class AlreadyFavoritedError(DuplicateResourceError):

    def __init__(self):
        super().__init__("Property already in favorites")


# Listings

class PropertyNotFoundError(NotFoundError):

    def __init__(self, property_id: Optional[str] = None):
        super().__init__("Property", property_id)


class PropertyOwnershipError(ForbiddenError):
    """Caller is not the listing's seller."""

    default_detail = "Not authorized"


# Uploads

class FileUploadError(BadRequestError):
    pass


class UnsupportedFileTypeError(BadRequestError):
    default_detail = "Only image files are allowed!"


class FileSizeExceededError(BadRequestError):

    def __init__(self, max_size: int):
        super().__init__(f"File too large. Maximum size is {max_size / (1024 * 1024):g}MB.")


class StorageUnavailableError(InternalServerError):
    """Object storage credentials are not configured."""

    default_detail = "Image storage is not configured"
