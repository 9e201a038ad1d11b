"""
Property model for sale and rental listings.
Handles listing attributes, structured address, geo point, images and ownership.
"""

from sqlalchemy import String, Text, Integer, Numeric, Float, Boolean, JSON, Uuid, Enum as SQLEnum, Index, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from marketplace.database import Base
from decimal import Decimal
import enum
import uuid
from typing import Any, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from marketplace.models.user import User


class PropertyType(str, enum.Enum):
    """Kind of dwelling being listed."""
    HOUSE = "house"
    APARTMENT = "apartment"
    CONDO = "condo"
    VILLA = "villa"
    STUDIO = "studio"
    TOWNHOUSE = "townhouse"
    DUPLEX = "duplex"
    OTHER = "other"


class PropertyStatus(str, enum.Enum):
    """Market status of a listing."""
    FOR_SALE = "for-sale"
    FOR_RENT = "for-rent"
    SOLD = "sold"
    RENTED = "rented"


FEATURE_FLAGS = (
    "parking",
    "garage",
    "pool",
    "garden",
    "fireplace",
    "air_conditioning",
    "heating",
)


def default_features() -> Dict[str, bool]:
    """All amenity flags switched off."""
    return {flag: False for flag in FEATURE_FLAGS}


def build_search_text(*parts: Optional[str]) -> str:
    """Lower-cased text index over the searchable listing fields."""
    return " ".join(part.strip().lower() for part in parts if part and part.strip())


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Property(Base):
    """
    Property listing owned by a seller.
    Images are an ordered list of descriptors stored alongside the record.
    """

    __tablename__ = "properties"

    # Basic listing information
    title: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[str] = mapped_column(Text, nullable=False)

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=14, scale=2),
        nullable=False,
        index=True,
        comment="Asking price or monthly rent"
    )

    property_type: Mapped[PropertyType] = mapped_column(
        SQLEnum(PropertyType, values_callable=_enum_values),
        nullable=False,
        index=True
    )

    status: Mapped[PropertyStatus] = mapped_column(
        SQLEnum(PropertyStatus, values_callable=_enum_values),
        nullable=False,
        default=PropertyStatus.FOR_SALE,
        index=True
    )

    # Layout and size
    bedrooms: Mapped[int] = mapped_column(Integer, nullable=False, default=0, index=True)
    bathrooms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    square_feet: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    year_built: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Structured address
    street: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    state: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    zip_code: Mapped[str] = mapped_column(String(20), nullable=False)
    country: Mapped[str] = mapped_column(String(120), nullable=False, default="USA")

    # Geo point
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)

    # Media, amenities and contact
    images: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    amenities: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    features: Mapped[Dict[str, bool]] = mapped_column(JSON, nullable=False, default=default_features)
    contact_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Ownership and visibility
    seller_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Seller who owns this listing; never reassigned"
    )

    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    # Precomputed text index over title, description, city and state
    search_text: Mapped[str] = mapped_column(Text, nullable=False, default="")

    seller: Mapped["User"] = relationship("User", lazy="selectin")

    def __repr__(self) -> str:
        """String representation of the property."""
        return f"<Property(id={self.id}, title={self.title[:30]}..., price={self.price})>"

    def refresh_search_text(self) -> None:
        """Recompute the text index after a searchable field changed."""
        self.search_text = build_search_text(self.title, self.description, self.city, self.state)

    @property
    def location(self) -> Dict[str, Any]:
        """GeoJSON point, longitude first."""
        return {"type": "Point", "coordinates": [self.longitude, self.latitude]}

    @property
    def address(self) -> Dict[str, str]:
        return {
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "country": self.country,
        }

    def image_keys(self) -> List[str]:
        """Storage keys of every image that has one."""
        return [image["key"] for image in self.images or [] if image.get("key")]

    def validate_all(self) -> None:
        """
        Check record-level invariants before persisting.

        Raises:
            ValueError: If any invariant is violated
        """
        if self.price is None or self.price < 0:
            raise ValueError("Property price cannot be negative")
        if self.longitude is None or self.latitude is None:
            raise ValueError("Property coordinates are required")
        if not -180 <= self.longitude <= 180:
            raise ValueError("Longitude must be between -180 and 180 degrees")
        if not -90 <= self.latitude <= 90:
            raise ValueError("Latitude must be between -90 and 90 degrees")

    def to_dict(self, include_seller: bool = True) -> dict:
        """
        Convert property to dictionary.

        Args:
            include_seller: Whether to embed the seller's contact details

        Returns:
            Dictionary representation of property
        """
        result = {
            "id": str(self.id),
            "title": self.title,
            "description": self.description,
            "price": float(self.price),
            "property_type": self.property_type.value,
            "status": self.status.value,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "square_feet": self.square_feet,
            "year_built": self.year_built,
            "address": self.address,
            "location": self.location,
            "images": list(self.images or []),
            "amenities": list(self.amenities or []),
            "features": {**default_features(), **(self.features or {})},
            "contact_info": {"phone": self.contact_phone, "email": self.contact_email},
            "seller_id": str(self.seller_id),
            "views": self.views,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

        if include_seller and self.seller:
            result["seller"] = self.seller.to_contact_dict()

        return result


# Composite indexes for the common listing queries
type_active_index = Index(
    "idx_properties_type_active",
    Property.property_type,
    Property.is_active,
    Property.created_at.desc()
)

price_bedrooms_index = Index(
    "idx_properties_price_bedrooms",
    Property.price,
    Property.bedrooms,
    Property.is_active
)

coordinates_index = Index(
    "idx_properties_coordinates",
    Property.latitude,
    Property.longitude
)
