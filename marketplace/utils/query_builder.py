"""
Listing query builder.
Translates search parameters into SQLAlchemy filter conditions, ordering and
pagination, plus the bounding box and distance helpers used by radius search.
"""

from dataclasses import dataclass
from decimal import Decimal
from sqlalchemy import or_, asc, desc
from marketplace.models.property import Property, PropertyType, PropertyStatus
from marketplace.utils.exceptions import ValidationError
from typing import List, Optional, Tuple
import math
import uuid

EARTH_RADIUS_M = 6_371_000.0

SORTABLE_FIELDS = {
    "created_at": Property.created_at,
    "price": Property.price,
    "bedrooms": Property.bedrooms,
    "bathrooms": Property.bathrooms,
    "square_feet": Property.square_feet,
    "year_built": Property.year_built,
    "views": Property.views,
    "title": Property.title,
}


@dataclass
class PropertyFilters:
    """Listing search criteria. Unset fields do not constrain the result."""

    search: Optional[str] = None
    property_type: Optional[PropertyType] = None
    status: Optional[PropertyStatus] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    city: Optional[str] = None
    state: Optional[str] = None
    seller_id: Optional[uuid.UUID] = None
    active_only: bool = True


@dataclass
class PageRequest:
    """Page window and ordering for a listing query."""

    page: int = 1
    page_size: int = 10
    sort_by: str = "created_at"
    sort_order: str = "desc"

    def __post_init__(self):
        if self.page < 1:
            raise ValidationError("Page must be at least 1")
        if self.page_size < 1:
            raise ValidationError("Page size must be at least 1")
        if self.sort_order not in ("asc", "desc"):
            raise ValidationError("Sort order must be 'asc' or 'desc'")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size


@dataclass
class GeoQuery:
    """Radius search around a point, distance in meters."""

    longitude: float
    latitude: float
    max_distance_m: float = 10000

    def __post_init__(self):
        if not -180 <= self.longitude <= 180:
            raise ValidationError("Longitude must be between -180 and 180")
        if not -90 <= self.latitude <= 90:
            raise ValidationError("Latitude must be between -90 and 90")
        if self.max_distance_m <= 0:
            raise ValidationError("Maximum distance must be greater than 0")


def search_terms(search: Optional[str]) -> List[str]:
    """Lower-cased whitespace separated terms of a free text query."""
    if not search:
        return []
    return [term.lower() for term in search.split() if term]


def build_conditions(filters: PropertyFilters) -> list:
    """
    Build the AND-joined conditions for a listing search.

    Free text matches when any of its terms occurs in the listing's text
    index. City and state match as case-insensitive substrings. Price bounds
    are inclusive and bedroom/bathroom values act as minimums.

    Args:
        filters: Search criteria

    Returns:
        List of SQLAlchemy boolean clauses
    """
    conditions = []

    if filters.active_only:
        conditions.append(Property.is_active.is_(True))

    terms = search_terms(filters.search)
    if terms:
        conditions.append(or_(*[Property.search_text.contains(term, autoescape=True) for term in terms]))

    if filters.property_type is not None:
        conditions.append(Property.property_type == filters.property_type)

    if filters.status is not None:
        conditions.append(Property.status == filters.status)

    if filters.min_price is not None:
        conditions.append(Property.price >= filters.min_price)

    if filters.max_price is not None:
        conditions.append(Property.price <= filters.max_price)

    if filters.bedrooms is not None:
        conditions.append(Property.bedrooms >= filters.bedrooms)

    if filters.bathrooms is not None:
        conditions.append(Property.bathrooms >= filters.bathrooms)

    if filters.city:
        conditions.append(Property.city.icontains(filters.city.strip(), autoescape=True))

    if filters.state:
        conditions.append(Property.state.icontains(filters.state.strip(), autoescape=True))

    if filters.seller_id is not None:
        conditions.append(Property.seller_id == filters.seller_id)

    return conditions


def build_order_by(page: PageRequest) -> list:
    """
    Ordering clauses for a page request.

    Raises:
        ValidationError: If the sort field is not sortable
    """
    column = SORTABLE_FIELDS.get(page.sort_by)
    if column is None:
        allowed = ", ".join(sorted(SORTABLE_FIELDS))
        raise ValidationError(f"Cannot sort by '{page.sort_by}'. Allowed fields: {allowed}")

    direction = desc if page.sort_order == "desc" else asc
    # id keeps paging stable when sort values tie
    return [direction(column), direction(Property.id)]


def page_count(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if page_size > 0 else 0


def bounding_box(geo: GeoQuery) -> Tuple[float, float, float, float]:
    """
    Coordinate box enclosing the search circle.

    Circles reaching a pole or crossing the antimeridian get the full
    longitude range.

    Returns:
        (min_longitude, min_latitude, max_longitude, max_latitude)
    """
    angular = geo.max_distance_m / EARTH_RADIUS_M
    lat_delta = math.degrees(angular)
    min_lat = geo.latitude - lat_delta
    max_lat = geo.latitude + lat_delta

    ratio = math.sin(min(angular, math.pi / 2)) / max(math.cos(math.radians(geo.latitude)), 1e-12)
    if min_lat <= -90.0 or max_lat >= 90.0 or ratio >= 1.0:
        return (-180.0, max(-90.0, min_lat), 180.0, min(90.0, max_lat))

    lng_delta = math.degrees(math.asin(ratio))
    min_lng = geo.longitude - lng_delta
    max_lng = geo.longitude + lng_delta
    if min_lng < -180.0 or max_lng > 180.0:
        min_lng, max_lng = -180.0, 180.0

    return (min_lng, min_lat, max_lng, max_lat)


def build_geo_conditions(geo: GeoQuery) -> list:
    """Bounding box pre-filter for a radius search."""
    min_lng, min_lat, max_lng, max_lat = bounding_box(geo)
    return [
        Property.longitude.between(min_lng, max_lng),
        Property.latitude.between(min_lat, max_lat),
    ]


def haversine_distance_m(lng1: float, lat1: float, lng2: float, lat2: float) -> float:
    """Great-circle distance between two points in meters."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(a)))
