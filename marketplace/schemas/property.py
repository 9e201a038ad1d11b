"""
Pydantic schemas for property requests and responses.
Handles listing creation, allow-listed updates, image descriptors and paged results.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from typing import Optional, List, Dict, Literal
from datetime import datetime
from decimal import Decimal
from marketplace.models.property import PropertyType, PropertyStatus
from marketplace.schemas.user import SellerSummary
import uuid


class AddressSchema(BaseModel):
    """Structured postal address."""

    street: str = Field(..., min_length=1, max_length=255, examples=["123 Main St"])
    city: str = Field(..., min_length=1, max_length=120, examples=["Springfield"])
    state: str = Field(..., min_length=1, max_length=120, examples=["IL"])
    zip_code: str = Field(..., min_length=1, max_length=20, examples=["62701"])
    country: str = Field("USA", min_length=1, max_length=120)


class AddressUpdate(BaseModel):
    """Partial address change."""

    model_config = ConfigDict(extra="forbid")

    street: Optional[str] = Field(None, min_length=1, max_length=255)
    city: Optional[str] = Field(None, min_length=1, max_length=120)
    state: Optional[str] = Field(None, min_length=1, max_length=120)
    zip_code: Optional[str] = Field(None, min_length=1, max_length=20)
    country: Optional[str] = Field(None, min_length=1, max_length=120)

    @model_validator(mode="after")
    def reject_null_fields(self):
        """Address columns are required, so an explicit null cannot be stored."""
        for field in self.model_fields_set:
            if getattr(self, field) is None:
                raise ValueError(f"address.{field} cannot be null")
        return self


class GeoPoint(BaseModel):
    """GeoJSON point; coordinates are [longitude, latitude]."""

    type: Literal["Point"] = "Point"
    coordinates: List[float] = Field(..., min_length=2, max_length=2, examples=[[-89.65, 39.78]])

    @field_validator("coordinates")
    @classmethod
    def validate_coordinates(cls, v):
        longitude, latitude = v
        if not -180 <= longitude <= 180:
            raise ValueError("Longitude must be between -180 and 180")
        if not -90 <= latitude <= 90:
            raise ValueError("Latitude must be between -90 and 90")
        return v


class ImageDescriptor(BaseModel):
    """Reference to a stored listing image."""

    url: str = Field(..., min_length=1, description="Public image URL")
    key: Optional[str] = Field(None, description="Object storage key")
    caption: Optional[str] = Field(None, max_length=255)
    is_primary: bool = False


class PropertyFeatures(BaseModel):
    """Amenity flags, all off unless set."""

    model_config = ConfigDict(extra="forbid")

    parking: bool = False
    garage: bool = False
    pool: bool = False
    garden: bool = False
    fireplace: bool = False
    air_conditioning: bool = False
    heating: bool = False


class ContactInfo(BaseModel):
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None


class PropertyCreate(BaseModel):
    """Schema for creating a new listing."""

    title: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Property listing title",
        examples=["Sunny 3BR house near the park"]
    )

    description: str = Field(
        ...,
        min_length=1,
        max_length=5000,
        description="Detailed property description"
    )

    price: Decimal = Field(
        ...,
        ge=0,
        description="Asking price or monthly rent",
        examples=[450000]
    )

    property_type: PropertyType = Field(..., examples=["house"])
    status: PropertyStatus = Field(PropertyStatus.FOR_SALE, examples=["for-sale"])

    bedrooms: int = Field(0, ge=0, le=100)
    bathrooms: int = Field(0, ge=0, le=100)
    square_feet: Optional[int] = Field(None, ge=0)
    year_built: Optional[int] = Field(None, ge=0)

    address: AddressSchema
    location: GeoPoint

    images: List[ImageDescriptor] = Field(default_factory=list)
    amenities: List[str] = Field(default_factory=list)
    features: PropertyFeatures = Field(default_factory=PropertyFeatures)
    contact_info: Optional[ContactInfo] = None

    @field_validator("title", "description")
    @classmethod
    def strip_text(cls, v):
        if not v.strip():
            raise ValueError("Value cannot be empty")
        return v.strip()


# Keys that may be present in an update but never set to null
NON_NULLABLE_UPDATE_FIELDS = (
    "title",
    "description",
    "price",
    "property_type",
    "status",
    "bedrooms",
    "bathrooms",
    "address",
    "location",
    "images",
    "amenities",
    "features",
    "is_active",
)


class PropertyUpdate(BaseModel):
    """
    Allow-listed partial update of a listing.

    Unknown fields are rejected; supplied fields are merged into the record.
    Ownership, view count and identity are not part of this schema.
    """

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1, max_length=5000)
    price: Optional[Decimal] = Field(None, ge=0)
    property_type: Optional[PropertyType] = None
    status: Optional[PropertyStatus] = None
    bedrooms: Optional[int] = Field(None, ge=0, le=100)
    bathrooms: Optional[int] = Field(None, ge=0, le=100)
    square_feet: Optional[int] = Field(None, ge=0)
    year_built: Optional[int] = Field(None, ge=0)
    address: Optional[AddressUpdate] = None
    location: Optional[GeoPoint] = None
    images: Optional[List[ImageDescriptor]] = None
    amenities: Optional[List[str]] = None
    features: Optional[PropertyFeatures] = None
    contact_info: Optional[ContactInfo] = None
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        """Explicit nulls are only allowed for optional listing fields."""
        for field in NON_NULLABLE_UPDATE_FIELDS:
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class PropertyImagesAdd(BaseModel):
    """Image descriptors to append to a listing."""

    images: List[ImageDescriptor] = Field(..., min_length=1)


class PropertyResponse(BaseModel):
    """Listing as returned by the API."""

    id: uuid.UUID
    title: str
    description: str
    price: float
    property_type: PropertyType
    status: PropertyStatus
    bedrooms: int
    bathrooms: int
    square_feet: Optional[int] = None
    year_built: Optional[int] = None
    address: AddressSchema
    location: GeoPoint
    images: List[ImageDescriptor] = Field(default_factory=list)
    amenities: List[str] = Field(default_factory=list)
    features: Dict[str, bool] = Field(default_factory=dict)
    contact_info: ContactInfo
    seller_id: uuid.UUID
    seller: Optional[SellerSummary] = None
    views: int = 0
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class NearbyPropertyResponse(PropertyResponse):
    """Listing with its distance from the search point."""

    distance_m: float = Field(..., description="Distance from the search point in meters")


class PropertyMessageResponse(BaseModel):
    message: str = Field(..., examples=["Property created successfully"])
    property: PropertyResponse


class PropertyListResponse(BaseModel):
    """One page of listings."""

    properties: List[PropertyResponse]
    total: int = Field(..., description="Total number of matching listings")
    page: int = Field(..., description="Current page number")
    page_size: int = Field(..., description="Number of listings per page")
    total_pages: int = Field(..., description="Total number of pages")
    has_next: bool
    has_previous: bool
