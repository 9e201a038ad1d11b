"""
Property repository for managing listings with search, paging and radius queries.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, and_, func, desc
from marketplace.repositories.base import BaseRepository
from marketplace.models.property import Property
from marketplace.models.user import user_favorites
from marketplace.utils.query_builder import (
    PropertyFilters,
    PageRequest,
    GeoQuery,
    build_conditions,
    build_order_by,
    build_geo_conditions,
    haversine_distance_m,
)
from typing import Optional, List, Dict, Any, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)

# Fields a seller may change after creation; seller_id, views and id never change
UPDATABLE_FIELDS = frozenset({
    "title",
    "description",
    "price",
    "property_type",
    "status",
    "bedrooms",
    "bathrooms",
    "square_feet",
    "year_built",
    "street",
    "city",
    "state",
    "zip_code",
    "country",
    "longitude",
    "latitude",
    "images",
    "amenities",
    "features",
    "contact_phone",
    "contact_email",
    "is_active",
})

SEARCHABLE_FIELDS = frozenset({"title", "description", "city", "state"})


class PropertyRepository(BaseRepository[Property]):
    """
    Repository for property listings.
    Filtering and ordering come from the query builder; this class executes them.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Property, db)

    async def create_property(self, property_data: Dict[str, Any]) -> Property:
        """
        Create a new property with validation.

        Args:
            property_data: Column values for the new listing

        Returns:
            Created property instance

        Raises:
            ValueError: If validation fails
            Exception: If database operation fails
        """
        try:
            property_obj = Property(**property_data)
            property_obj.validate_all()
            property_obj.refresh_search_text()

            self.db.add(property_obj)
            await self.db.commit()
            await self.db.refresh(property_obj)

            logger.info(f"Created property: {property_obj.title} (ID: {property_obj.id})")
            return property_obj
        except ValueError as e:
            logger.error(f"Property validation failed: {e}")
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to create property: {e}")
            raise

    async def increment_views(self, property_id: uuid.UUID) -> Optional[Property]:
        """
        Count one read of a listing and return it with the new total.

        The increment happens in a single UPDATE so concurrent reads never
        lose a count.

        Returns:
            The refreshed property or None if it does not exist
        """
        try:
            stmt = (
                update(Property)
                .where(Property.id == property_id)
                .values(views=Property.views + 1)
                .execution_options(synchronize_session=False)
            )
            result = await self.db.execute(stmt)

            if result.rowcount == 0:
                await self.db.rollback()
                logger.debug(f"Property {property_id} not found for view count")
                return None

            await self.db.commit()

            query = (
                select(Property)
                .where(Property.id == property_id)
                .execution_options(populate_existing=True)
            )
            result = await self.db.execute(query)
            return result.scalar_one_or_none()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to increment views for property {property_id}: {e}")
            raise

    async def search_properties(
        self,
        filters: PropertyFilters,
        page: PageRequest
    ) -> Tuple[List[Property], int]:
        """
        Search properties with filtering, ordering and pagination.

        Args:
            filters: Search criteria
            page: Page window and ordering

        Returns:
            Tuple of (properties on the page, total matching count)
        """
        try:
            conditions = build_conditions(filters)
            order_by = build_order_by(page)

            count_query = select(func.count(Property.id))
            query = select(Property)
            if conditions:
                count_query = count_query.where(and_(*conditions))
                query = query.where(and_(*conditions))

            count_result = await self.db.execute(count_query)
            total_count = count_result.scalar()

            query = query.order_by(*order_by).offset(page.offset).limit(page.limit)
            result = await self.db.execute(query)
            properties = list(result.scalars().all())

            logger.debug(f"Property search returned {len(properties)} of {total_count} total results")
            return properties, total_count
        except Exception as e:
            logger.error(f"Failed to search properties: {e}")
            raise

    async def find_nearby(self, geo: GeoQuery) -> List[Tuple[Property, float]]:
        """
        Active listings within a radius, nearest first.

        The bounding box narrows candidates in SQL, then exact great-circle
        distances decide membership and order.

        Returns:
            List of (property, distance in meters) pairs
        """
        try:
            query = select(Property).where(
                and_(Property.is_active.is_(True), *build_geo_conditions(geo))
            )
            result = await self.db.execute(query)

            nearby = []
            for property_obj in result.scalars().all():
                distance = haversine_distance_m(
                    geo.longitude, geo.latitude,
                    property_obj.longitude, property_obj.latitude
                )
                if distance <= geo.max_distance_m:
                    nearby.append((property_obj, distance))

            nearby.sort(key=lambda pair: (pair[1], str(pair[0].id)))
            logger.debug(f"Found {len(nearby)} properties within {geo.max_distance_m}m")
            return nearby
        except Exception as e:
            logger.error(f"Failed to get nearby properties: {e}")
            raise

    async def get_by_seller(self, seller_id: uuid.UUID) -> List[Property]:
        """Every listing of a seller, inactive included, newest first."""
        try:
            query = (
                select(Property)
                .where(Property.seller_id == seller_id)
                .order_by(desc(Property.created_at), desc(Property.id))
            )
            result = await self.db.execute(query)
            properties = list(result.scalars().all())
            logger.debug(f"Retrieved {len(properties)} properties for seller {seller_id}")
            return properties
        except Exception as e:
            logger.error(f"Failed to get properties by seller {seller_id}: {e}")
            raise

    async def update_property(self, property_obj: Property, changes: Dict[str, Any]) -> Property:
        """
        Merge allowed field changes into a listing.

        Args:
            property_obj: Loaded listing
            changes: Column values to change

        Returns:
            Updated property

        Raises:
            ValueError: If a field is not updatable or the result is invalid
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        for field, value in changes.items():
            setattr(property_obj, field, value)

        try:
            property_obj.validate_all()
        except ValueError:
            await self.db.rollback()
            raise

        if SEARCHABLE_FIELDS & set(changes):
            property_obj.refresh_search_text()

        updated = await self.save(property_obj)
        logger.info(f"Updated property {property_obj.id}: {sorted(changes)}")
        return updated

    async def set_images(self, property_obj: Property, images: List[Dict[str, Any]]) -> Property:
        """Replace the image descriptor list of a listing."""
        property_obj.images = list(images)
        updated = await self.save(property_obj)
        logger.info(f"Property {property_obj.id} now has {len(images)} images")
        return updated

    async def delete_property(self, property_id: uuid.UUID) -> bool:
        """
        Delete a listing and every favorite reference to it.

        Returns:
            True if the listing was deleted, False if not found
        """
        try:
            await self.db.execute(
                delete(user_favorites).where(user_favorites.c.property_id == property_id)
            )
            result = await self.db.execute(delete(Property).where(Property.id == property_id))
            await self.db.commit()

            deleted = result.rowcount > 0
            if deleted:
                logger.info(f"Deleted property {property_id}")
            return deleted
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete property {property_id}: {e}")
            raise
