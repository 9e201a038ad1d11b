"""
Account service for registration, login, token validation, profiles and favorites.
"""

from typing import Dict, Any, List, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from marketplace.repositories.user import UserRepository
from marketplace.repositories.property import PropertyRepository
from marketplace.models.user import User, UserRole
from marketplace.models.property import Property
from marketplace.schemas.user import UserCreate, UserProfileUpdate
from marketplace.utils.auth import create_access_token, verify_token, TokenExpired
from marketplace.utils.exceptions import (
    APIException,
    AlreadyFavoritedError,
    DuplicateResourceError,
    InactiveUserError,
    InternalServerError,
    InvalidCredentialsError,
    InvalidTokenError,
    PropertyNotFoundError,
    TokenExpiredError,
    ValidationError
)
from jose import JWTError
import uuid
import logging

logger = logging.getLogger(__name__)


class AuthService:
    """
    Account service for credential handling and per-user state.
    Tokens identify the user; roles are always read from the stored record.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self.property_repo = PropertyRepository(db_session)

    def create_token(self, user: User) -> str:
        """Issue an access token for a user."""
        return create_access_token(
            user_id=user.id,
            email=user.email,
            role=user.role
        )

    async def register(self, user_data: UserCreate) -> Tuple[User, str]:
        """
        Create an account and issue its first token.

        Args:
            user_data: Registration data

        Returns:
            Tuple of (user, access_token)

        Raises:
            DuplicateResourceError: If the email is already registered
            ValidationError: If the data violates account rules
        """
        try:
            if await self.user_repo.get_by_email(user_data.email):
                logger.warning(f"Registration attempt for existing email: {user_data.email}")
                raise DuplicateResourceError("User already exists")

            create_data = user_data.model_dump()
            create_data["role"] = user_data.role or UserRole.BUYER
            user = await self.user_repo.create_user(create_data)

            logger.info(f"User registered: {user.email} (ID: {user.id}, role: {user.role.value})")
            return user, self.create_token(user)

        except APIException:
            raise
        except IntegrityError:
            # Lost a race against a concurrent registration of the same email
            raise DuplicateResourceError("User already exists")
        except ValueError as e:
            raise ValidationError(str(e))
        except Exception as e:
            logger.error(f"Failed to register user {user_data.email}: {e}")
            raise InternalServerError("Failed to register user")

    async def authenticate_user(self, email: str, password: str) -> User:
        """
        Authenticate user with email and password.

        Unknown email and wrong password fail identically.

        Raises:
            InvalidCredentialsError: If credentials are invalid
            ValidationError: If input is missing
        """
        if not email or not email.strip():
            raise ValidationError("Email is required")

        if not password:
            raise ValidationError("Password is required")

        user = await self.user_repo.authenticate_user(email, password)

        if not user:
            logger.warning(f"Failed authentication attempt for email: {email}")
            raise InvalidCredentialsError()

        return user

    async def login(self, email: str, password: str) -> Tuple[User, str]:
        """
        Authenticate user and issue a token.

        Returns:
            Tuple of (user, access_token)
        """
        user = await self.authenticate_user(email, password)
        return user, self.create_token(user)

    async def get_current_user(self, token: str) -> User:
        """
        Resolve the user behind an access token.

        Raises:
            InvalidTokenError: If the token is invalid or its user is gone
            TokenExpiredError: If the token is expired
            InactiveUserError: If the account is inactive
        """
        try:
            token_payload = verify_token(token)
        except TokenExpired:
            raise TokenExpiredError()
        except JWTError as e:
            logger.debug(f"Rejected token: {e}")
            raise InvalidTokenError()

        user = await self.user_repo.get_by_id(uuid.UUID(token_payload.user_id))
        if not user:
            raise InvalidTokenError()

        if not user.is_active:
            raise InactiveUserError()

        return user

    async def get_profile(self, user: User) -> Dict[str, Any]:
        """Public profile of a user with favorite listing ids."""
        profile = user.to_dict()
        profile["favorites"] = await self.user_repo.get_favorite_ids(user.id)
        return profile

    async def update_profile(self, user: User, changes: UserProfileUpdate) -> User:
        """
        Update name, phone or role.

        Fields that are absent or empty leave the stored value unchanged.
        """
        update_data = {
            field: value
            for field, value in changes.model_dump(exclude_unset=True).items()
            if value is not None and value != ""
        }
        if not update_data:
            return user

        try:
            return await self.user_repo.update_profile(user, update_data)
        except ValueError as e:
            raise ValidationError(str(e))

    async def get_favorites(self, user: User) -> List[Property]:
        return await self.user_repo.get_favorites(user.id)

    async def add_favorite(self, user: User, property_id: uuid.UUID) -> None:
        """
        Add a listing to the user's favorites.

        Raises:
            PropertyNotFoundError: If the listing does not exist
            AlreadyFavoritedError: If the listing is already a favorite
        """
        if not await self.property_repo.exists(property_id):
            raise PropertyNotFoundError()

        try:
            added = await self.user_repo.add_favorite(user.id, property_id)
        except IntegrityError:
            raise AlreadyFavoritedError()

        if not added:
            raise AlreadyFavoritedError()

    async def remove_favorite(self, user: User, property_id: uuid.UUID) -> None:
        """Remove a listing from the user's favorites; absent ids are a no-op."""
        await self.user_repo.remove_favorite(user.id, property_id)
