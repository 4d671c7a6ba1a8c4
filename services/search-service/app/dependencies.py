import httpx
from fastapi import Request

from .breaker import CircuitBreaker
from .category_search import CategoryQueryResolver
from .clients import AvailabilityServiceMatcher, HandymanServiceRepository
from .config import (
    AVAILABILITY_SERVICE_URL,
    BREAKER_FAILURE_THRESHOLD,
    BREAKER_RESET_SECONDS,
    HANDYMAN_SERVICE_URL,
    IDE_UY_BASE_URL,
    SEARCH_COUNTRY_CODE,
    SUPPORTED_COUNTRY_CODE,
)
from .geocoding import IdeUyGeocodingClient
from .location import LocationResolver
from .services import SearchService


class Container:
    """
    Builds the search collaborators from explicitly passed resources.
    One instance lives on app.state for the lifetime of the process.
    """

    def __init__(
        self,
        session_factory,
        http_client: httpx.AsyncClient,
        geocoding_http_client: httpx.AsyncClient,
        redis_client=None,
    ):
        self.session_factory = session_factory
        self.http_client = http_client
        self.geocoding_http_client = geocoding_http_client
        self.redis_client = redis_client

        self.breakers: dict[str, CircuitBreaker] = {}
        if redis_client is not None:
            for name in ("handyman-service", "availability-service"):
                self.breakers[name] = CircuitBreaker(
                    redis_client,
                    name,
                    failure_threshold=BREAKER_FAILURE_THRESHOLD,
                    reset_timeout_seconds=BREAKER_RESET_SECONDS,
                )

        self.repository = HandymanServiceRepository(
            http_client, HANDYMAN_SERVICE_URL, self.breakers.get("handyman-service")
        )
        self.availability = AvailabilityServiceMatcher(
            http_client, AVAILABILITY_SERVICE_URL, self.breakers.get("availability-service")
        )
        self.category_resolver = CategoryQueryResolver(session_factory)
        self.location_resolver = LocationResolver(
            IdeUyGeocodingClient(geocoding_http_client, IDE_UY_BASE_URL),
            country_code=SUPPORTED_COUNTRY_CODE,
        )
        self.search_service = SearchService(
            repository=self.repository,
            availability=self.availability,
            query_resolver=self.category_resolver,
            location_resolver=self.location_resolver,
            country_code=SEARCH_COUNTRY_CODE,
        )

    async def close(self):
        await self.http_client.aclose()
        await self.geocoding_http_client.aclose()
        if self.redis_client is not None:
            await self.redis_client.aclose()


def _container(request: Request) -> Container:
    container: Container | None = getattr(request.app.state, "container", None)
    if container is None:
        raise RuntimeError("search-service is not started")
    return container


def get_search_service(request: Request) -> SearchService:
    return _container(request).search_service


def get_category_resolver(request: Request) -> CategoryQueryResolver:
    return _container(request).category_resolver


def get_location_resolver(request: Request) -> LocationResolver:
    return _container(request).location_resolver
