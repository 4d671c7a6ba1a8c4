import math
from typing import List, Optional

from .config import SUPPORTED_COUNTRY_CODE
from .ports import GeocodingProvider
from .schemas import AddressCandidate, GeocodeResult, GeoPoint, ReverseGeocodeResult


def _strip(value: Optional[str]) -> Optional[str]:
    return value.strip() if value is not None else None


class LocationResolver:
    """
    Country-gated access to the geocoding provider.
    Every operation returns empty/None for unsupported countries without
    calling the provider.
    """

    def __init__(self, geocoding: GeocodingProvider, country_code: str = SUPPORTED_COUNTRY_CODE):
        self.geocoding = geocoding
        self.country_code = country_code.upper()

    def _supported(self, country_code: str) -> bool:
        return (country_code or "").upper() == self.country_code

    async def get_address_suggestions(self, q: str, country_code: str) -> List[AddressCandidate]:
        if not self._supported(country_code):
            return []
        if not (q or "").strip():
            return []
        return await self.geocoding.get_candidates(q.strip())

    async def geocode_address(
        self,
        country_code: str,
        address: Optional[str] = None,
        candidate_id: Optional[str] = None,
    ) -> Optional[GeocodeResult]:
        if not self._supported(country_code):
            return None
        if (address or "").strip():
            return await self.geocoding.geocode_address(address.strip())
        if candidate_id:
            return await self.geocoding.geocode_address({"id": candidate_id})
        return None

    async def reverse_geocode(
        self, country_code: str, latitude: float, longitude: float
    ) -> Optional[ReverseGeocodeResult]:
        if not self._supported(country_code):
            return None
        if not math.isfinite(latitude) or not math.isfinite(longitude):
            return None
        result = await self.geocoding.reverse_geocode(latitude, longitude)
        if result is None:
            return None
        return ReverseGeocodeResult(
            postal_code=_strip(result.postal_code),
            department=_strip(result.department),
            address_line=_strip(result.address_line),
        )

    async def resolve_user_location(
        self, country_code: str, location: Optional[str] = None
    ) -> Optional[GeoPoint]:
        """Address -> coordinates for radius filtering, or None if it cannot be resolved."""
        if not self._supported(country_code):
            return None
        if not (location or "").strip():
            return None

        geocoded = await self.geocoding.geocode_address(location.strip())
        if geocoded is None:
            return None
        lat, lng = geocoded.latitude, geocoded.longitude
        if not math.isfinite(lat) or not math.isfinite(lng):
            return None
        return GeoPoint(latitude=lat, longitude=lng)
