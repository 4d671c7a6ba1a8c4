"""
IDE Uruguay (direcciones.ide.uy) geocoding client.

Response shapes vary between endpoints and API versions, so every field is
read through a fixed, ordered tuple of known aliases; the first alias with a
usable value wins.

The client never raises on HTTP or parse failures: lookups return [] / None
and log a warning.
"""

import logging
import math
from typing import Any, List, Optional, Sequence, Union

import httpx

from .schemas import AddressCandidate, GeocodeResult, ReverseGeocodeResult

logger = logging.getLogger(__name__)

CANDIDATES_PATH = "/api/v1/geocode/candidates"
DIREC_UNICA_PATH = "/api/v1/geocode/direcUnica"
REVERSE_PATH = "/api/v1/geocode/reverse"

LATITUDE_KEYS = ("lat", "latitude", "y")
LONGITUDE_KEYS = ("lng", "longitude", "x")
POSTAL_CODE_KEYS = ("codigoPostal", "postalCode", "cp")
DEPARTMENT_KEYS = ("departamento", "department")
ADDRESS_LINE_KEYS = ("direccion", "address", "addressLine", "direccionCompleta")
LABEL_KEYS = ("label", "address", "nombre", "direccion", "text")
CANDIDATE_ID_KEYS = ("id", "identificador")
CANDIDATE_LIST_KEYS = ("candidates", "data")
NESTED_RESULTS_KEY = "resultados"


def parse_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if not isinstance(value, (int, float, str)):
        return None
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        # ints beyond float range overflow instead of becoming inf
        return None
    return number if math.isfinite(number) else None


def parse_string(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def first_number(obj: dict, keys: Sequence[str]) -> Optional[float]:
    for key in keys:
        if obj.get(key) is not None:
            return parse_number(obj[key])
    return None


def first_string(obj: dict, keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        if obj.get(key) is not None:
            return parse_string(obj[key])
    return None


def first_present_string(obj: dict, keys: Sequence[str]) -> Optional[str]:
    # labels fall through blank values to the next alias
    for key in keys:
        value = parse_string(obj.get(key))
        if value:
            return value
    return None


def parse_candidates(data: Any) -> List[AddressCandidate]:
    if isinstance(data, list):
        items = data
    elif isinstance(data, dict):
        items = next((data[k] for k in CANDIDATE_LIST_KEYS if data.get(k) is not None), None)
    else:
        return []
    if not isinstance(items, list):
        return []

    candidates = []
    for item in items:
        obj = item if isinstance(item, dict) else {}
        label = first_present_string(obj, LABEL_KEYS)
        if not label:
            label = item if isinstance(item, str) else None
        if not label:
            continue
        candidates.append(
            AddressCandidate(id=first_present_string(obj, CANDIDATE_ID_KEYS), label=label, raw=item)
        )
    return candidates


def parse_geocode(data: Any) -> Optional[GeocodeResult]:
    """direcUnica returns a list; the first element is the best match."""
    if isinstance(data, list):
        if not data or not isinstance(data[0], dict):
            return None
        obj = data[0]
    elif isinstance(data, dict):
        obj = data
    else:
        return None

    lat = first_number(obj, LATITUDE_KEYS)
    lng = first_number(obj, LONGITUDE_KEYS)
    if lat is None or lng is None:
        nested = obj.get(NESTED_RESULTS_KEY)
        if isinstance(nested, list) and nested and isinstance(nested[0], dict):
            return parse_geocode(nested[0])
        return None

    return GeocodeResult(
        latitude=lat,
        longitude=lng,
        postal_code=first_string(obj, POSTAL_CODE_KEYS),
        department=first_string(obj, DEPARTMENT_KEYS),
        address_line=first_string(obj, ADDRESS_LINE_KEYS),
    )


def parse_reverse(data: Any) -> Optional[ReverseGeocodeResult]:
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        return None
    obj = data[0]
    result = ReverseGeocodeResult(
        postal_code=first_string(obj, POSTAL_CODE_KEYS),
        department=first_string(obj, DEPARTMENT_KEYS),
        address_line=first_string(obj, ADDRESS_LINE_KEYS),
    )
    if not (result.postal_code or result.department or result.address_line):
        return None
    return result


class IdeUyGeocodingClient:
    def __init__(self, client: httpx.AsyncClient, base_url: str):
        self.client = client
        self.base_url = base_url.rstrip("/")

    async def _get(self, path: str, params: dict) -> Any:
        response = await self.client.get(f"{self.base_url}{path}", params=params)
        response.raise_for_status()
        return response.json()

    async def get_candidates(self, query: str) -> List[AddressCandidate]:
        q = (query or "").strip()
        if not q:
            return []
        try:
            data = await self._get(CANDIDATES_PATH, {"q": q})
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("IDE UY candidates lookup failed: %s", e)
            return []
        return parse_candidates(data)

    async def geocode_address(self, address_or_ref: Union[str, dict]) -> Optional[GeocodeResult]:
        if isinstance(address_or_ref, dict):
            q = str(address_or_ref.get("id") or "")
        else:
            q = (address_or_ref or "").strip()
        if not q:
            return None
        try:
            data = await self._get(DIREC_UNICA_PATH, {"q": q})
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("IDE UY geocode failed: %s", e)
            return None
        return parse_geocode(data)

    async def reverse_geocode(self, lat: float, lng: float) -> Optional[ReverseGeocodeResult]:
        try:
            data = await self._get(REVERSE_PATH, {"latitud": str(lat), "longitud": str(lng)})
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("IDE UY reverse geocode failed: %s", e)
            return None
        return parse_reverse(data)
