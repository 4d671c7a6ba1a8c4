import math
from datetime import date as Date
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# 3-hour windows offered by the client apps.
TimeWindow = Literal["09:00-12:00", "12:00-15:00", "15:00-18:00"]


class ProfessionalListing(BaseModel):
    """
    Read-only snapshot of a pro as returned by the handyman-service search.
    Approval/suspension/profile flags are enforced upstream.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    name: Optional[str] = None
    category_ids: List[str] = Field(default_factory=list)
    base_latitude: Optional[float] = None
    base_longitude: Optional[float] = None
    service_radius_km: Optional[float] = None
    is_top_pro: bool = False
    rating: Optional[float] = None
    review_count: int = 0
    completed_jobs_count: Optional[int] = None
    hourly_rate: Optional[float] = None
    is_approved: bool = True
    is_suspended: bool = False
    profile_completed: bool = True


class SearchFilters(BaseModel):
    category_id: Optional[str] = None
    subcategory: Optional[str] = None  # subcategory slug
    q: Optional[str] = None  # free text, resolved to category/subcategory
    date: Optional[Date] = None
    time_window: Optional[TimeWindow] = None
    location: Optional[str] = None


class ResolvedQuery(BaseModel):
    category_id: str
    subcategory_slug: Optional[str] = None


class GeoPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float

    @field_validator("latitude", "longitude")
    @classmethod
    def _finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("coordinate must be a finite number")
        return v


class CategorySuggestion(BaseModel):
    id: str
    name: str
    slug: str


class SubcategorySuggestion(BaseModel):
    id: str
    name: str
    slug: str
    category_id: str
    category_name: str
    category_slug: str


class CategorySearchResult(BaseModel):
    categories: List[CategorySuggestion] = Field(default_factory=list)
    subcategories: List[SubcategorySuggestion] = Field(default_factory=list)


# ---- Geocoding ----

class AddressCandidate(BaseModel):
    id: Optional[str] = None
    label: str
    raw: Any = None


class GeocodeResult(BaseModel):
    latitude: float
    longitude: float
    postal_code: Optional[str] = None
    department: Optional[str] = None
    address_line: Optional[str] = None


class ReverseGeocodeResult(BaseModel):
    postal_code: Optional[str] = None
    department: Optional[str] = None
    address_line: Optional[str] = None
