"""
Authentication utilities for JWT token management.
Provides JWT token generation and validation with role claims.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import ExpiredSignatureError, JWTError, jwt
from marketplace.config import settings
from marketplace.models.user import UserRole
import uuid


class TokenPayload:
    """JWT token payload structure."""

    def __init__(self, user_id: str, email: str, role: str, exp: datetime):
        self.user_id = user_id
        self.email = email
        self.role = role
        self.exp = exp

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenPayload":
        """Create TokenPayload from dictionary."""
        return cls(
            user_id=data["sub"],
            email=data["email"],
            role=data["role"],
            exp=datetime.fromtimestamp(data["exp"], tz=timezone.utc)
        )


class TokenExpired(JWTError):
    """Raised when a token's expiry has passed."""


def create_access_token(
    user_id: uuid.UUID,
    email: str,
    role: UserRole,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create JWT access token with user claims.

    Args:
        user_id: User's UUID
        email: User's email address
        role: User's role (buyer/seller)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)

    to_encode = {
        "sub": str(user_id),
        "email": email,
        "role": role.value,
        "exp": now + expires_delta,
        "iat": now,
        "type": "access"
    }

    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm
    )


def verify_token(token: str) -> TokenPayload:
    """
    Verify and decode a JWT access token.

    Args:
        token: JWT token string

    Returns:
        Decoded TokenPayload

    Raises:
        TokenExpired: If the token has expired
        JWTError: If the token is malformed, forged or missing claims
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm]
        )
    except ExpiredSignatureError as e:
        raise TokenExpired("Token has expired") from e

    if payload.get("type") != "access":
        raise JWTError("Invalid token type")

    if not payload.get("sub") or not payload.get("email") or not payload.get("role"):
        raise JWTError("Invalid token payload")

    try:
        uuid.UUID(payload["sub"])
    except ValueError as e:
        raise JWTError("Invalid token subject") from e

    return TokenPayload.from_dict(payload)
