"""
Property listing API endpoints for CRUD operations, search, radius queries and images.
Reads are public; changes require the listing's seller.
"""

from fastapi import APIRouter, Depends, status, Query
from decimal import Decimal
from typing import Optional, List
from uuid import UUID

from marketplace.config import settings
from marketplace.models.user import User
from marketplace.models.property import PropertyType, PropertyStatus
from marketplace.services.property import PropertyService
from marketplace.schemas.auth import MessageResponse
from marketplace.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyImagesAdd,
    PropertyResponse,
    NearbyPropertyResponse,
    PropertyMessageResponse,
    PropertyListResponse
)
from marketplace.schemas.error import COMMON_ERROR_RESPONSES, OWNER_ERROR_RESPONSES
from marketplace.utils.dependencies import get_current_user, get_current_seller, get_property_service
from marketplace.utils.exceptions import ValidationError
from marketplace.utils.query_builder import PropertyFilters, PageRequest, GeoQuery


router = APIRouter(prefix="/properties", tags=["Properties"])


@router.get(
    "",
    response_model=PropertyListResponse,
    status_code=status.HTTP_200_OK,
    summary="List properties with search and filtering",
    description="Paginated list of active listings with optional filters and sorting",
    responses=COMMON_ERROR_RESPONSES
)
async def list_properties(
    # Pagination
    page: int = Query(1, ge=1, description="Page number (starts from 1)"),
    limit: int = Query(
        settings.default_page_size,
        ge=1,
        le=settings.max_page_size,
        description="Number of properties per page"
    ),

    # Filters
    search: Optional[str] = Query(None, description="Free text; any term may match"),
    property_type: Optional[PropertyType] = Query(None, description="Property type"),
    status_filter: Optional[PropertyStatus] = Query(None, alias="status", description="Listing status"),
    min_price: Optional[Decimal] = Query(None, ge=0, description="Minimum price (inclusive)"),
    max_price: Optional[Decimal] = Query(None, ge=0, description="Maximum price (inclusive)"),
    bedrooms: Optional[int] = Query(None, ge=0, description="Minimum number of bedrooms"),
    bathrooms: Optional[int] = Query(None, ge=0, description="Minimum number of bathrooms"),
    city: Optional[str] = Query(None, description="City contains (case-insensitive)"),
    state: Optional[str] = Query(None, description="State contains (case-insensitive)"),

    # Sorting
    sort_by: str = Query("created_at", description="Sort field"),
    sort_order: str = Query("desc", description="Sort order (asc/desc)"),

    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    """
    Get paginated list of properties with search and filtering capabilities.

    Returns:
        Page of listings with total count and page metadata
    """
    filters = PropertyFilters(
        search=search,
        property_type=property_type,
        status=status_filter,
        min_price=min_price,
        max_price=max_price,
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        city=city,
        state=state
    )
    page_request = PageRequest(page=page, page_size=limit, sort_by=sort_by, sort_order=sort_order.lower())

    result = await property_service.search_properties(filters, page_request)
    result["properties"] = [property_obj.to_dict() for property_obj in result["properties"]]
    return result


@router.get(
    "/user/my-properties",
    response_model=List[PropertyResponse],
    summary="List my properties",
    description="Every listing of the authenticated user, inactive included, newest first",
    responses=COMMON_ERROR_RESPONSES
)
async def get_my_properties(
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> List[PropertyResponse]:
    properties = await property_service.get_user_properties(current_user)
    return [property_obj.to_dict() for property_obj in properties]


@router.get(
    "/search/nearby",
    response_model=List[NearbyPropertyResponse],
    summary="Search properties near a point",
    description="Active listings within max_distance meters of a point, nearest first",
    responses=COMMON_ERROR_RESPONSES
)
async def search_nearby(
    longitude: Optional[float] = Query(None, description="Longitude of the search point"),
    latitude: Optional[float] = Query(None, description="Latitude of the search point"),
    max_distance: float = Query(settings.default_max_distance, description="Radius in meters"),
    property_service: PropertyService = Depends(get_property_service)
) -> List[NearbyPropertyResponse]:
    """
    Radius search around a point.

    Raises:
        ValidationError: If either coordinate is missing or out of range
    """
    if longitude is None or latitude is None:
        raise ValidationError("Longitude and latitude are required")

    geo = GeoQuery(longitude=longitude, latitude=latitude, max_distance_m=max_distance)
    nearby = await property_service.get_nearby_properties(geo)

    return [
        {**property_obj.to_dict(), "distance_m": round(distance, 1)}
        for property_obj, distance in nearby
    ]


@router.get(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Get property by ID",
    description="Single listing with seller contact details; every read counts as a view",
    responses={404: OWNER_ERROR_RESPONSES[404]}
)
async def get_property(
    property_id: UUID,
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.get_property(property_id)
    return property_obj.to_dict()


@router.post(
    "",
    response_model=PropertyMessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create new property",
    description="Create a listing owned by the caller. Requires the seller role.",
    responses={**COMMON_ERROR_RESPONSES, 403: OWNER_ERROR_RESPONSES[403]}
)
async def create_property(
    property_data: PropertyCreate,
    current_user: User = Depends(get_current_seller),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyMessageResponse:
    """
    Create a new property listing.

    Raises:
        InsufficientPermissionsError: If the caller is not a seller
        ValidationError: If property data is invalid
    """
    property_obj = await property_service.create_property(property_data, current_user)
    return {"message": "Property created successfully", "property": property_obj.to_dict()}


@router.put(
    "/{property_id}",
    response_model=PropertyMessageResponse,
    summary="Update property",
    description="Merge allow-listed fields into a listing. Owner only; unknown fields are rejected.",
    responses=OWNER_ERROR_RESPONSES
)
async def update_property(
    property_id: UUID,
    changes: PropertyUpdate,
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyMessageResponse:
    property_obj = await property_service.update_property(property_id, changes, current_user)
    return {"message": "Property updated successfully", "property": property_obj.to_dict()}


@router.delete(
    "/{property_id}",
    response_model=MessageResponse,
    summary="Delete property",
    description="Delete a listing and its stored images. Owner only.",
    responses=OWNER_ERROR_RESPONSES
)
async def delete_property(
    property_id: UUID,
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> MessageResponse:
    await property_service.delete_property(property_id, current_user)
    return MessageResponse(message="Property deleted successfully")


@router.post(
    "/{property_id}/images",
    response_model=PropertyMessageResponse,
    summary="Add images to property",
    description="Append uploaded image descriptors to a listing. Owner only.",
    responses=OWNER_ERROR_RESPONSES
)
async def add_images(
    property_id: UUID,
    payload: PropertyImagesAdd,
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyMessageResponse:
    property_obj = await property_service.add_images(property_id, payload.images, current_user)
    return {"message": "Images added successfully", "property": property_obj.to_dict()}


@router.delete(
    "/{property_id}/images",
    response_model=PropertyMessageResponse,
    summary="Remove image from property",
    description="Delete a stored image and drop its descriptor from the listing. Owner only.",
    responses=OWNER_ERROR_RESPONSES
)
async def remove_image(
    property_id: UUID,
    key: str = Query(..., min_length=1, description="Storage key of the image"),
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyMessageResponse:
    property_obj = await property_service.remove_image(property_id, key, current_user)
    return {"message": "Image removed successfully", "property": property_obj.to_dict()}
