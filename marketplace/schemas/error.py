"""
Error response schemas for API documentation and consistent error formatting.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Any


class ErrorDetail(BaseModel):
    """Schema for individual error detail."""

    field: Optional[str] = Field(None, description="Field name that caused the error", examples=["email"])
    message: str = Field(..., description="Human-readable error message", examples=["Invalid email format"])
    type: Optional[str] = Field(None, description="Error type identifier", examples=["value_error"])
    input: Optional[Any] = Field(None, description="Input value that caused the error")


class ErrorResponse(BaseModel):
    """Schema for standardized error responses."""

    message: str = Field(..., description="Human-readable error message", examples=["Property not found"])
    code: str = Field(..., description="Error code identifier", examples=["NOT_FOUND"])
    timestamp: str = Field(..., description="ISO timestamp when error occurred")
    request_id: Optional[str] = Field(None, description="Request identifier for tracking")
    details: Optional[List[ErrorDetail]] = Field(None, description="Field level error details")


# OpenAPI response declarations shared by the routers
COMMON_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    401: {"model": ErrorResponse, "description": "Missing or invalid token"},
    500: {"model": ErrorResponse, "description": "Internal server error"},
}

OWNER_ERROR_RESPONSES = {
    **COMMON_ERROR_RESPONSES,
    403: {"model": ErrorResponse, "description": "Not the owner of the listing"},
    404: {"model": ErrorResponse, "description": "Listing not found"},
}
