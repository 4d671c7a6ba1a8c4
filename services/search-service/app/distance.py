import math
from typing import Iterable, List

from .config import DEFAULT_SERVICE_RADIUS_KM
from .schemas import GeoPoint, ProfessionalListing

EARTH_RADIUS_KM = 6371


def haversine(lat1, lon1, lat2, lon2):
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )

    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def has_base_location(listing: ProfessionalListing) -> bool:
    lat = listing.base_latitude
    lon = listing.base_longitude
    if lat is None or lon is None:
        return False
    return math.isfinite(lat) and math.isfinite(lon)


def distance_to(listing: ProfessionalListing, origin: GeoPoint) -> float:
    return haversine(origin.latitude, origin.longitude, listing.base_latitude, listing.base_longitude)


def service_radius(listing: ProfessionalListing) -> float:
    radius = listing.service_radius_km
    return radius if radius is not None else DEFAULT_SERVICE_RADIUS_KM


def filter_by_radius(listings: Iterable[ProfessionalListing], origin: GeoPoint) -> List[ProfessionalListing]:
    """
    Keep pros whose service radius covers the origin.
    Pros without a usable base location never pass.
    """
    return [
        p
        for p in listings
        if has_base_location(p) and distance_to(p, origin) <= service_radius(p)
    ]


def rank(listings: Iterable[ProfessionalListing], origin: GeoPoint) -> List[ProfessionalListing]:
    """
    Nearest first, then top pros, rating and completed jobs.
    sorted() is stable, so full ties keep their incoming order.
    """

    def key(p: ProfessionalListing):
        distance = distance_to(p, origin) if has_base_location(p) else math.inf
        return (
            distance,
            not p.is_top_pro,
            -(p.rating or 0),
            -(p.completed_jobs_count or 0),
        )

    return sorted(listings, key=key)
