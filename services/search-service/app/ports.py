from datetime import date
from typing import List, Optional, Protocol, Union

from .schemas import (
    AddressCandidate,
    GeocodeResult,
    ProfessionalListing,
    ResolvedQuery,
    ReverseGeocodeResult,
)


class ProRepository(Protocol):
    """Returns approved, non-suspended, profile-complete pros."""

    async def search_pros(self, category_id: Optional[str] = None) -> List[ProfessionalListing]:
        ...


class AvailabilityMatcher(Protocol):
    async def is_pro_available_on_day(self, pro_id: str, day: date) -> bool:
        ...

    async def is_pro_available_in_time_window_only(self, pro_id: str, window: str) -> bool:
        ...

    async def is_pro_available_in_time_window(self, pro_id: str, day: date, window: str) -> bool:
        ...


class GeocodingProvider(Protocol):
    """
    Implementations must not raise on upstream failures:
    they return [] / None instead.
    """

    async def get_candidates(self, query: str) -> List[AddressCandidate]:
        ...

    async def geocode_address(self, address_or_ref: Union[str, dict]) -> Optional[GeocodeResult]:
        ...

    async def reverse_geocode(self, lat: float, lng: float) -> Optional[ReverseGeocodeResult]:
        ...


class QueryResolver(Protocol):
    async def resolve_query(self, q: str) -> Optional[ResolvedQuery]:
        ...
