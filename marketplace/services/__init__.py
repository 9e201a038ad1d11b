"""
Service layer for business logic implementation.
Contains services for accounts, listings, image uploads and error handling.
"""

from .auth import AuthService
from .property import PropertyService
from .upload import UploadService
from .error_handler import ErrorHandlerService

__all__ = [
    "AuthService",
    "PropertyService",
    "UploadService",
    "ErrorHandlerService"
]
