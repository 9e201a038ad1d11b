"""
API route handlers for the marketplace API.
Provides organized routing for accounts, listings and uploads.
"""

from .auth import router as auth_router
from .properties import router as properties_router
from .upload import router as upload_router

__all__ = ["auth_router", "properties_router", "upload_router"]
