from datetime import date

import httpx

from .breaker import CircuitBreaker
from .schemas import ProfessionalListing


async def _call_with_breaker(
    client: httpx.AsyncClient,
    breaker: CircuitBreaker | None,
    url: str,
    params: dict,
):
    """
    GET an upstream JSON resource. Errors are recorded on the breaker and
    re-raised unchanged; mapping them to HTTP responses is the route layer's job.
    """
    if breaker:
        await breaker.allow_request()

    try:
        resp = await client.get(url, params=params)
        resp.raise_for_status()
        data = resp.json()
    except (httpx.HTTPError, ValueError):
        if breaker:
            await breaker.record_failure()
        raise

    if breaker:
        await breaker.record_success()
    return data


def parse_time_window(window: str) -> tuple[str, str]:
    start, sep, end = (window or "").partition("-")
    if not sep or not start.strip() or not end.strip():
        raise ValueError(f'Invalid time window format: {window}. Expected format: "HH:MM-HH:MM"')
    return start.strip(), end.strip()


# -------- HANDYMAN --------

class HandymanServiceRepository:
    """Pros search on handyman-service (approved, not suspended, profile completed)."""

    def __init__(self, client: httpx.AsyncClient, base_url: str, breaker: CircuitBreaker | None = None):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.breaker = breaker

    async def search_pros(self, category_id: str | None = None) -> list[ProfessionalListing]:
        params = {}
        if category_id:
            params["category_id"] = category_id
        data = await _call_with_breaker(self.client, self.breaker, f"{self.base_url}/pros/search", params)
        return [ProfessionalListing.model_validate(item) for item in data or []]


# -------- AVAILABILITY --------

class AvailabilityServiceMatcher:
    """AvailabilityMatcher backed by availability-service's check endpoint."""

    def __init__(self, client: httpx.AsyncClient, base_url: str, breaker: CircuitBreaker | None = None):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.breaker = breaker

    async def _check(self, pro_id: str, params: dict) -> bool:
        data = await _call_with_breaker(
            self.client, self.breaker, f"{self.base_url}/availability/{pro_id}/check", params
        )
        return bool((data or {}).get("available"))

    async def is_pro_available_on_day(self, pro_id: str, day: date) -> bool:
        return await self._check(pro_id, {"date": day.isoformat()})

    async def is_pro_available_in_time_window_only(self, pro_id: str, window: str) -> bool:
        start, end = parse_time_window(window)
        return await self._check(pro_id, {"window": f"{start}-{end}"})

    async def is_pro_available_in_time_window(self, pro_id: str, day: date, window: str) -> bool:
        start, end = parse_time_window(window)
        return await self._check(pro_id, {"date": day.isoformat(), "window": f"{start}-{end}"})
