import asyncio
import logging
from typing import List

from .config import SEARCH_COUNTRY_CODE
from .distance import filter_by_radius, rank
from .location import LocationResolver
from .ports import AvailabilityMatcher, ProRepository, QueryResolver
from .schemas import ProfessionalListing, SearchFilters

logger = logging.getLogger(__name__)


class SearchService:
    """
    Pro search pipeline:

      1. free text (q) -> category/subcategory, overriding explicit filters
      2. base candidates from handyman-service, by category only
      3. availability by date and/or time window (concurrent checks)
      4. radius filter + distance ranking around the geocoded address

    Stages 1, 3 and 4 are skipped when their inputs are missing; stage 4 is
    also skipped when the address cannot be geocoded. Collaborator errors
    are not caught here.
    """

    def __init__(
        self,
        repository: ProRepository,
        availability: AvailabilityMatcher,
        query_resolver: QueryResolver,
        location_resolver: LocationResolver,
        country_code: str = SEARCH_COUNTRY_CODE,
    ):
        self.repository = repository
        self.availability = availability
        self.query_resolver = query_resolver
        self.location_resolver = location_resolver
        self.country_code = country_code

    async def search_pros(self, filters: SearchFilters) -> List[ProfessionalListing]:
        category_id = filters.category_id
        subcategory = filters.subcategory

        q = (filters.q or "").strip()
        if q:
            resolved = await self.query_resolver.resolve_query(q)
            if resolved is not None:
                category_id = resolved.category_id
                if resolved.subcategory_slug:
                    subcategory = resolved.subcategory_slug

        # TODO: forward subcategory once handyman-service can filter pros by subcategory slug
        pros = await self.repository.search_pros(category_id=category_id)
        logger.debug(
            "search: %d candidates for category=%s subcategory=%s", len(pros), category_id, subcategory
        )

        if filters.date or filters.time_window:
            pros = await self._filter_available(pros, filters)

        location = (filters.location or "").strip()
        if location:
            origin = await self.location_resolver.resolve_user_location(self.country_code, location=location)
            if origin is None:
                logger.info("search: could not geocode %r, skipping radius filter", location)
            else:
                pros = rank(filter_by_radius(pros, origin), origin)

        return pros

    def _availability_check(self, pro: ProfessionalListing, filters: SearchFilters):
        if filters.date and filters.time_window:
            return self.availability.is_pro_available_in_time_window(pro.id, filters.date, filters.time_window)
        if filters.date:
            return self.availability.is_pro_available_on_day(pro.id, filters.date)
        return self.availability.is_pro_available_in_time_window_only(pro.id, filters.time_window)

    async def _filter_available(
        self, pros: List[ProfessionalListing], filters: SearchFilters
    ) -> List[ProfessionalListing]:
        # gather() returns results in argument order, so zip maps each back to its pro
        results = await asyncio.gather(*(self._availability_check(p, filters) for p in pros))
        return [p for p, available in zip(pros, results) if available]
