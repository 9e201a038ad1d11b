"""
Local re-filtering of an already fetched page of listings.
Works on the JSON listing dictionaries returned by the API.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

ALL_TYPES = "All"


@dataclass
class ClientFilters:
    """Filter panel state. Empty values mean "no filter"."""
    property_type: str = ALL_TYPES
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    location: str = ""
    search_term: str = ""


def _lower(value: Any) -> str:
    return str(value).lower() if value else ""


def _address_field(prop: Dict[str, Any], field: str) -> str:
    return _lower((prop.get("address") or {}).get(field))


def _matches_location(prop: Dict[str, Any], needle: str) -> bool:
    return any(
        needle in _address_field(prop, field)
        for field in ("city", "state", "street", "zip_code")
    )


def _matches_search(prop: Dict[str, Any], needle: str) -> bool:
    haystacks = [
        _lower(prop.get("title")),
        _lower(prop.get("description")),
        _address_field(prop, "city"),
        _address_field(prop, "state"),
        _address_field(prop, "street"),
        _lower(prop.get("property_type")),
    ]
    return any(needle in haystack for haystack in haystacks)


def matches(prop: Dict[str, Any], filters: ClientFilters) -> bool:
    """Whether one listing passes every active filter."""
    if filters.property_type and filters.property_type != ALL_TYPES:
        if prop.get("property_type") != filters.property_type:
            return False

    price = prop.get("price") or 0
    if filters.min_price is not None and price < filters.min_price:
        return False
    if filters.max_price is not None and price > filters.max_price:
        return False

    if filters.bedrooms is not None and (prop.get("bedrooms") or 0) < filters.bedrooms:
        return False
    if filters.bathrooms is not None and (prop.get("bathrooms") or 0) < filters.bathrooms:
        return False

    location = filters.location.strip().lower()
    if location and not _matches_location(prop, location):
        return False

    search = filters.search_term.strip().lower()
    if search and not _matches_search(prop, search):
        return False

    return True


def apply_filters(properties: Iterable[Dict[str, Any]], filters: ClientFilters) -> List[Dict[str, Any]]:
    """Listings that pass `filters`, in their original order."""
    return [prop for prop in properties if matches(prop, filters)]
