import logging
from datetime import date as Date, datetime, time, timezone
from typing import List, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError

from .breaker import CircuitBreakerOpen
from .category_search import CategoryQueryResolver
from .dependencies import get_category_resolver, get_location_resolver, get_search_service
from .location import LocationResolver
from .schemas import (
    AddressCandidate,
    CategorySearchResult,
    GeocodeResult,
    ProfessionalListing,
    ReverseGeocodeResult,
    SearchFilters,
    TimeWindow,
)
from .services import SearchService

logger = logging.getLogger(__name__)

router = APIRouter()


def validate_requested_slot(filters: SearchFilters, now: Optional[datetime] = None) -> None:
    """
    Only today or future dates. For today, the time window must not have
    started yet. Both compared in UTC.
    """
    if not filters.date:
        return
    now = now or datetime.now(timezone.utc)
    today = now.date()

    if filters.date < today:
        raise HTTPException(status_code=400, detail="Cannot search for dates in the past")

    if filters.date == today and filters.time_window:
        window_start = filters.time_window.split("-")[0]
        hour, minute = (int(part) for part in window_start.split(":"))
        starts_at = datetime.combine(today, time(hour, minute), tzinfo=timezone.utc)
        if now >= starts_at:
            raise HTTPException(
                status_code=400,
                detail=f'The selected time window "{filters.time_window}" has already passed for today',
            )


def upstream_error(e: Exception) -> HTTPException:
    if isinstance(e, CircuitBreakerOpen):
        return HTTPException(status_code=503, detail=str(e))
    if isinstance(e, httpx.TimeoutException):
        return HTTPException(status_code=504, detail=f"Timeout calling upstream: {e}")
    if isinstance(e, httpx.HTTPStatusError):
        return HTTPException(status_code=e.response.status_code, detail=e.response.text)
    return HTTPException(status_code=502, detail="Bad gateway calling upstream")


@router.get("/search/pros", response_model=List[ProfessionalListing])
async def search_pros(
    category_id: Optional[str] = None,
    subcategory: Optional[str] = None,
    q: Optional[str] = Query(default=None, min_length=1),
    date: Optional[Date] = None,
    time_window: Optional[TimeWindow] = None,
    location: Optional[str] = None,
    service: SearchService = Depends(get_search_service),
):
    filters = SearchFilters(
        category_id=category_id,
        subcategory=subcategory,
        q=q,
        date=date,
        time_window=time_window,
        location=location,
    )
    validate_requested_slot(filters)

    try:
        return await service.search_pros(filters)
    except (CircuitBreakerOpen, httpx.HTTPError, SQLAlchemyError, ValueError) as e:
        logger.error("pro search failed: %s", e)
        raise upstream_error(e)


@router.get("/search/categories", response_model=CategorySearchResult)
async def search_categories(
    q: str = Query(min_length=1),
    limit: int = Query(default=10, ge=1, le=20),
    resolver: CategoryQueryResolver = Depends(get_category_resolver),
):
    try:
        return await resolver.search_categories_and_subcategories(q, limit)
    except SQLAlchemyError as e:
        logger.error("category typeahead failed: %s", e)
        raise upstream_error(e)


@router.get("/location/suggestions", response_model=List[AddressCandidate])
async def address_suggestions(
    q: str = Query(min_length=1),
    country_code: str = Query(min_length=2, max_length=2),
    resolver: LocationResolver = Depends(get_location_resolver),
):
    return await resolver.get_address_suggestions(q, country_code)


@router.get("/location/geocode", response_model=GeocodeResult)
async def geocode_address(
    country_code: str = Query(min_length=2, max_length=2),
    address: Optional[str] = None,
    candidate_id: Optional[str] = None,
    resolver: LocationResolver = Depends(get_location_resolver),
):
    has_address = bool(address and address.strip())
    has_candidate = bool(candidate_id and candidate_id.strip())
    if has_address == has_candidate:
        raise HTTPException(status_code=400, detail="Provide exactly one of address or candidate_id")

    result = await resolver.geocode_address(
        country_code,
        address=address.strip() if has_address else None,
        candidate_id=candidate_id.strip() if has_candidate else None,
    )
    if result is None:
        raise HTTPException(status_code=404, detail="Address could not be geocoded")
    return result


@router.get("/location/reverse", response_model=Optional[ReverseGeocodeResult])
async def reverse_geocode(
    latitude: float = Query(ge=-90, le=90),
    longitude: float = Query(ge=-180, le=180),
    country_code: str = Query(min_length=2, max_length=2),
    resolver: LocationResolver = Depends(get_location_resolver),
):
    return await resolver.reverse_geocode(country_code, latitude, longitude)
