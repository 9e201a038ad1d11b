"""
User model with authentication and role management.
Handles buyer and seller accounts plus their favorite listings.
"""

from sqlalchemy import String, Boolean, Table, Column, ForeignKey, DateTime, Uuid, Enum as SQLEnum, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from marketplace.database import Base
from passlib.context import CryptContext
from email_validator import validate_email, EmailNotValidError
import enum
import uuid
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from marketplace.models.property import Property

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class UserRole(str, enum.Enum):
    """User role enumeration for role-based access control."""
    BUYER = "buyer"
    SELLER = "seller"


# Association table for favorite listings; the composite key keeps references unique
user_favorites = Table(
    "user_favorites",
    Base.metadata,
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("property_id", Uuid, ForeignKey("properties.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
)


class User(Base):
    """
    User model for authentication and authorization.
    Buyers browse and favorite listings; sellers additionally own listings.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        comment="User email address - must be unique and valid"
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password"
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Display name"
    )

    phone: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Contact phone number"
    )

    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.BUYER,
        index=True,
        comment="User role for access control"
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Whether the user account is active"
    )

    # Loaded explicitly by the repository when needed
    favorites: Mapped[List["Property"]] = relationship(
        "Property",
        secondary=user_favorites,
        order_by=user_favorites.c.created_at,
        lazy="raise",
        viewonly=True
    )

    def __repr__(self) -> str:
        """String representation of the user."""
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"

    @classmethod
    def validate_email_format(cls, email: str) -> str:
        """
        Validate email format using email-validator.

        Args:
            email: Email address to validate

        Returns:
            Normalized email address

        Raises:
            ValueError: If email format is invalid
        """
        try:
            valid_email = validate_email(email, check_deliverability=False)
            return valid_email.normalized.lower()
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email format: {str(e)}")

    @classmethod
    def hash_password(cls, password: str) -> str:
        """
        Hash a password using bcrypt.

        Args:
            password: Plain text password

        Returns:
            Hashed password string
        """
        if not password or len(password) < 6:
            raise ValueError("Password must be at least 6 characters long")

        return pwd_context.hash(password)

    def verify_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""
        return pwd_context.verify(password, self.hashed_password)

    @property
    def is_seller(self) -> bool:
        """Check if user has seller role."""
        return self.role == UserRole.SELLER

    def owns(self, seller_id: uuid.UUID) -> bool:
        """Check whether this user is the seller referenced by a listing."""
        return self.id == seller_id

    def to_dict(self) -> dict:
        """
        Convert user to dictionary (excluding sensitive data).

        Returns:
            Dictionary representation of user
        """
        return {
            "id": str(self.id),
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role.value,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def to_contact_dict(self) -> dict:
        """Public seller details embedded in listings."""
        return {
            "id": str(self.id),
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
        }
