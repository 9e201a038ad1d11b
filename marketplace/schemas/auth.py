"""
Pydantic schemas for authentication requests and responses.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from marketplace.schemas.user import UserResponse


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["jane@example.com"]
    )
    password: str = Field(
        ...,
        min_length=1,
        max_length=128,
        description="User's password",
        examples=["secret123"]
    )

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()


class AuthResponse(BaseModel):
    """Token issued on register or login together with the public profile."""

    message: str = Field(..., examples=["Login successful"])
    token: str = Field(
        ...,
        description="JWT access token",
        examples=["eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9..."]
    )
    user: UserResponse


class ProfileUpdateResponse(BaseModel):
    message: str = Field(..., examples=["Profile updated successfully"])
    user: UserResponse


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str
