"""
Property service for managing listings with business rule validation.
Handles CRUD operations, ownership checks, search, radius queries and image lists.
"""

from typing import List, Dict, Any, Iterable, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from marketplace.repositories.property import PropertyRepository
from marketplace.models.property import Property
from marketplace.models.user import User
from marketplace.schemas.property import PropertyCreate, PropertyUpdate, ImageDescriptor
from marketplace.utils.query_builder import PropertyFilters, PageRequest, GeoQuery, page_count
from marketplace.utils.storage import S3Storage
from marketplace.utils.exceptions import (
    APIException,
    InsufficientPermissionsError,
    InternalServerError,
    NotFoundError,
    PropertyNotFoundError,
    PropertyOwnershipError,
    ValidationError
)
import asyncio
import uuid
import logging

logger = logging.getLogger(__name__)

ADDRESS_FIELDS = ("street", "city", "state", "zip_code", "country")


def to_columns(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Flatten a request payload into listing column values.

    Nested address, location and contact blocks map onto their columns; every
    other key passes through unchanged.
    """
    columns = dict(data)

    address = columns.pop("address", None)
    if address:
        for field in ADDRESS_FIELDS:
            if field in address:
                columns[field] = address[field]

    location = columns.pop("location", None)
    if location:
        columns["longitude"], columns["latitude"] = location["coordinates"]

    if "contact_info" in columns:
        contact = columns.pop("contact_info") or {}
        if "phone" in contact or not contact:
            columns["contact_phone"] = contact.get("phone")
        if "email" in contact or not contact:
            columns["contact_email"] = contact.get("email")

    return columns


class PropertyService:
    """
    Property service for managing listings.
    Only a listing's seller may change it. Deletes remove image blobs before
    the record; updates remove dropped blobs only after the record is saved.
    """

    def __init__(self, db_session: AsyncSession, storage: S3Storage):
        self.db = db_session
        self.storage = storage
        self.property_repo = PropertyRepository(db_session)

    async def create_property(self, property_data: PropertyCreate, current_user: User) -> Property:
        """
        Create a new listing owned by the current user.

        Args:
            property_data: Listing data
            current_user: Seller creating the listing

        Returns:
            Created property instance

        Raises:
            InsufficientPermissionsError: If the user is not a seller
            ValidationError: If the listing data is invalid
        """
        if not current_user.is_seller:
            raise InsufficientPermissionsError("create properties")

        try:
            create_data = to_columns(property_data.model_dump())
            create_data["seller_id"] = current_user.id

            property_obj = await self.property_repo.create_property(create_data)

            logger.info(f"Property created by user {current_user.email}: {property_obj.title} (ID: {property_obj.id})")
            return property_obj

        except ValueError as e:
            raise ValidationError(str(e))
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to create property for user {current_user.id}: {e}")
            raise InternalServerError("Failed to create property")

    async def get_property(self, property_id: uuid.UUID) -> Property:
        """
        Read a listing, counting the view.

        Raises:
            PropertyNotFoundError: If the listing does not exist
        """
        property_obj = await self.property_repo.increment_views(property_id)
        if not property_obj:
            raise PropertyNotFoundError()

        logger.debug(f"Retrieved property {property_id} (views: {property_obj.views})")
        return property_obj

    async def search_properties(self, filters: PropertyFilters, page: PageRequest) -> Dict[str, Any]:
        """
        Page through listings matching the filters.

        Returns:
            Dictionary with the page of listings and pagination metadata
        """
        properties, total = await self.property_repo.search_properties(filters, page)
        total_pages = page_count(total, page.page_size)

        return {
            "properties": properties,
            "total": total,
            "page": page.page,
            "page_size": page.page_size,
            "total_pages": total_pages,
            "has_next": page.page < total_pages,
            "has_previous": page.page > 1,
        }

    async def get_user_properties(self, current_user: User) -> List[Property]:
        return await self.property_repo.get_by_seller(current_user.id)

    async def get_nearby_properties(self, geo: GeoQuery) -> List[Tuple[Property, float]]:
        """Active listings within the radius, nearest first, with distances in meters."""
        return await self.property_repo.find_nearby(geo)

    async def update_property(
        self,
        property_id: uuid.UUID,
        changes: PropertyUpdate,
        current_user: User
    ) -> Property:
        """
        Merge allow-listed changes into a listing.

        Blobs of image descriptors dropped by a new image list are deleted
        once the listing has been saved.

        Raises:
            PropertyNotFoundError: If the listing does not exist
            PropertyOwnershipError: If the user does not own the listing
            ValidationError: If no fields are supplied or the result is invalid
        """
        property_obj = await self._get_owned_property(property_id, current_user)

        update_data = changes.model_dump(exclude_unset=True)
        if not update_data:
            raise ValidationError("No valid fields provided for update")

        columns = to_columns(update_data)

        dropped = []
        if "images" in columns:
            kept_keys = {image.get("key") for image in columns["images"]}
            dropped = [key for key in property_obj.image_keys() if key not in kept_keys]

        try:
            updated = await self.property_repo.update_property(property_obj, columns)
        except ValueError as e:
            raise ValidationError(str(e))

        await self._delete_blobs(dropped)

        logger.info(f"Property {property_id} updated by {current_user.email}")
        return updated

    async def delete_property(self, property_id: uuid.UUID, current_user: User) -> None:
        """
        Delete a listing and its stored images.

        Blob deletions are attempted first and their failures never block
        the record deletion.
        """
        property_obj = await self._get_owned_property(property_id, current_user)

        await self._delete_blobs(property_obj.image_keys())
        await self.property_repo.delete_property(property_obj.id)

        logger.info(f"Property {property_id} deleted by {current_user.email}")

    async def add_images(
        self,
        property_id: uuid.UUID,
        images: List[ImageDescriptor],
        current_user: User
    ) -> Property:
        """Append image descriptors to a listing."""
        property_obj = await self._get_owned_property(property_id, current_user)

        new_images = [image.model_dump() for image in images]
        updated = await self.property_repo.set_images(
            property_obj,
            list(property_obj.images or []) + new_images
        )

        logger.info(f"Added {len(new_images)} images to property {property_id}")
        return updated

    async def remove_image(self, property_id: uuid.UUID, key: str, current_user: User) -> Property:
        """
        Remove one image descriptor by storage key, deleting its blob first.

        Raises:
            NotFoundError: If the listing has no image with that key
        """
        property_obj = await self._get_owned_property(property_id, current_user)

        remaining = [image for image in property_obj.images or [] if image.get("key") != key]
        if len(remaining) == len(property_obj.images or []):
            raise NotFoundError("Image", key)

        await self._delete_blobs([key])
        updated = await self.property_repo.set_images(property_obj, remaining)

        logger.info(f"Removed image {key} from property {property_id}")
        return updated

    async def _get_owned_property(self, property_id: uuid.UUID, current_user: User) -> Property:
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj:
            raise PropertyNotFoundError()

        if not current_user.owns(property_obj.seller_id):
            logger.warning(f"User {current_user.id} attempted to modify property {property_id}")
            raise PropertyOwnershipError()

        return property_obj

    async def _delete_blobs(self, keys: Iterable[str]) -> None:
        """Delete stored blobs concurrently; failures are logged and skipped."""
        keys = [key for key in keys if key]
        if not keys:
            return

        results = await asyncio.gather(
            *(self.storage.delete(key) for key in keys),
            return_exceptions=True
        )
        for key, result in zip(keys, results):
            if isinstance(result, Exception):
                logger.warning(f"Failed to delete image blob {key}: {result}")
            elif not result:
                logger.warning(f"Image blob {key} was not deleted")
