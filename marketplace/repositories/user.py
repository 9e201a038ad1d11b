"""
User repository for account and favorites operations.
Provides secure user operations with password handling and role-based access.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, insert, and_
from sqlalchemy.orm import selectinload
from marketplace.database import utcnow
from marketplace.repositories.base import BaseRepository
from marketplace.models.user import User, UserRole, user_favorites
from marketplace.models.property import Property
from typing import Optional, List, Dict, Any
import uuid
import logging

logger = logging.getLogger(__name__)

PROFILE_FIELDS = frozenset({"name", "phone", "role"})


class UserRepository(BaseRepository[User]):
    """
    Repository for user management with authentication support.
    Also owns the user's set of favorite listings.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Create a new user with email validation and password hashing.

        Args:
            user_data: Dictionary containing user information
                      Must include: email, password, name
                      Optional: phone, role (defaults to BUYER)

        Returns:
            Created user instance

        Raises:
            ValueError: If validation fails or the email is taken
            Exception: If database operation fails
        """
        try:
            data = dict(user_data)
            email = User.validate_email_format(data["email"])

            existing_user = await self.get_by_email(email)
            if existing_user:
                raise ValueError(f"User with email {email} already exists")

            hashed_password = User.hash_password(data.pop("password"))

            create_data = {
                "name": data["name"].strip(),
                "email": email,
                "hashed_password": hashed_password,
                "phone": data.get("phone"),
                "role": data.get("role") or UserRole.BUYER,
                "is_active": data.get("is_active", True),
            }

            created_user = await self.create(create_data)
            logger.info(f"Created user: {created_user.email} (ID: {created_user.id})")
            return created_user
        except ValueError as e:
            logger.error(f"User validation failed: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to create user: {e}")
            raise

    async def get_by_email(self, email: str) -> Optional[User]:
        """
        Get user by email address.

        Args:
            email: Email address to search for

        Returns:
            User instance if found, None otherwise
        """
        try:
            normalized_email = email.lower().strip()
            result = await self.db.execute(select(User).where(User.email == normalized_email))
            user = result.scalar_one_or_none()

            if user:
                logger.debug(f"Retrieved user by email: {email}")
            else:
                logger.debug(f"User with email {email} not found")

            return user
        except Exception as e:
            logger.error(f"Failed to get user by email {email}: {e}")
            raise

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate user with email and password.

        Args:
            email: User's email address
            password: Plain text password

        Returns:
            User instance if authentication successful, None otherwise
        """
        try:
            user = await self.get_by_email(email)

            if not user:
                logger.debug(f"Authentication failed: user {email} not found")
                return None

            if not user.is_active:
                logger.debug(f"Authentication failed: user {email} is inactive")
                return None

            if not user.verify_password(password):
                logger.debug(f"Authentication failed: invalid password for {email}")
                return None

            logger.info(f"User authenticated successfully: {email}")
            return user
        except Exception as e:
            logger.error(f"Failed to authenticate user {email}: {e}")
            raise

    async def update_profile(self, user: User, changes: Dict[str, Any]) -> User:
        """
        Apply profile changes to a user.

        Only name, phone and role can change here.

        Raises:
            ValueError: If a field outside the profile is supplied
        """
        unknown = set(changes) - PROFILE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        for field, value in changes.items():
            setattr(user, field, value)

        updated_user = await self.save(user)
        logger.info(f"Updated profile for user {user.id}: {sorted(changes)}")
        return updated_user

    async def get_favorites(self, user_id: uuid.UUID) -> List[Property]:
        """
        Favorite listings of a user in the order they were added.

        Args:
            user_id: UUID of the user

        Returns:
            List of favorited properties, empty if the user does not exist
        """
        try:
            query = (
                select(User)
                .options(selectinload(User.favorites))
                .where(User.id == user_id)
                .execution_options(populate_existing=True)
            )
            result = await self.db.execute(query)
            user = result.scalar_one_or_none()
            if user is None:
                return []

            logger.debug(f"Retrieved {len(user.favorites)} favorites for user {user_id}")
            return list(user.favorites)
        except Exception as e:
            logger.error(f"Failed to get favorites for user {user_id}: {e}")
            raise

    async def get_favorite_ids(self, user_id: uuid.UUID) -> List[uuid.UUID]:
        """Ids of the user's favorite listings in the order they were added."""
        try:
            query = (
                select(user_favorites.c.property_id)
                .where(user_favorites.c.user_id == user_id)
                .order_by(user_favorites.c.created_at)
            )
            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get favorite ids for user {user_id}: {e}")
            raise

    async def is_favorite(self, user_id: uuid.UUID, property_id: uuid.UUID) -> bool:
        try:
            query = select(user_favorites.c.property_id).where(
                and_(
                    user_favorites.c.user_id == user_id,
                    user_favorites.c.property_id == property_id
                )
            )
            result = await self.db.execute(query)
            return result.first() is not None
        except Exception as e:
            logger.error(f"Failed to check favorite {property_id} for user {user_id}: {e}")
            raise

    async def add_favorite(self, user_id: uuid.UUID, property_id: uuid.UUID) -> bool:
        """
        Add a listing to the user's favorites.

        Returns:
            False if the listing was already a favorite, True otherwise
        """
        try:
            if await self.is_favorite(user_id, property_id):
                logger.debug(f"Property {property_id} already favorited by user {user_id}")
                return False

            await self.db.execute(
                insert(user_favorites).values(
                    user_id=user_id,
                    property_id=property_id,
                    created_at=utcnow()
                )
            )
            await self.db.commit()
            logger.info(f"User {user_id} favorited property {property_id}")
            return True
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to add favorite {property_id} for user {user_id}: {e}")
            raise

    async def remove_favorite(self, user_id: uuid.UUID, property_id: uuid.UUID) -> bool:
        """
        Remove a listing from the user's favorites.

        Returns:
            True if a favorite was removed, False if it was not present
        """
        try:
            result = await self.db.execute(
                delete(user_favorites).where(
                    and_(
                        user_favorites.c.user_id == user_id,
                        user_favorites.c.property_id == property_id
                    )
                )
            )
            await self.db.commit()

            removed = result.rowcount > 0
            if removed:
                logger.info(f"User {user_id} removed favorite {property_id}")
            return removed
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to remove favorite {property_id} for user {user_id}: {e}")
            raise
