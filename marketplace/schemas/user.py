"""
Pydantic schemas for user requests and responses.
Handles registration, profile updates and public profile output.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime
from marketplace.models.user import UserRole
import uuid


class UserCreate(BaseModel):
    """Schema for registering a new account."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Display name",
        examples=["Jane Doe"]
    )

    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["jane@example.com"]
    )

    password: str = Field(
        ...,
        min_length=6,
        max_length=128,
        description="User's password (minimum 6 characters)",
        examples=["secret123"]
    )

    phone: Optional[str] = Field(
        None,
        max_length=50,
        description="Contact phone number",
        examples=["555-0100"]
    )

    role: Optional[UserRole] = Field(
        None,
        description="Account role (default: buyer)",
        examples=["seller"]
    )

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()


class UserProfileUpdate(BaseModel):
    """
    Profile fields a user may change. Unknown fields are rejected.
    Empty values leave the stored value unchanged.
    """

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    role: Optional[UserRole] = None

    @field_validator("name", "phone")
    @classmethod
    def strip_value(cls, v):
        return v.strip() if v else v


class UserResponse(BaseModel):
    """Public profile; never carries the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
    phone: Optional[str] = None
    role: UserRole
    is_active: bool = True
    created_at: Optional[datetime] = None


class UserProfileResponse(UserResponse):
    """Current user profile with favorite listing ids."""

    favorites: List[uuid.UUID] = Field(default_factory=list)


class SellerSummary(BaseModel):
    """Seller contact details embedded in listings."""

    id: uuid.UUID
    name: str
    email: str
    phone: Optional[str] = None
