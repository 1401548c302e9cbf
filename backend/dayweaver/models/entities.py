# dayweaver/models/entities.py
from typing import Any, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


Category = Literal["culinary", "cultural", "scenic", "activity"]
CATEGORIES = ("culinary", "cultural", "scenic", "activity")


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AccessibilityAttributes(CamelModel):
    entrance: Optional[bool] = None
    restroom: Optional[bool] = None
    parking: Optional[bool] = None
    seating: Optional[bool] = None


class Enrichment(CamelModel):
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = None
    price_level: Optional[int] = None  # Google price_level 0-4
    price_string: Optional[str] = None
    website_url: Optional[str] = None
    google_maps_url: Optional[str] = None
    is_food_place: bool = False
    accessible: Optional[bool] = None  # wheelchair accessible entrance
    accessibility: Optional[AccessibilityAttributes] = None


class PlaceCandidate(CamelModel):
    name: str
    latitude: float
    longitude: float
    enrichment: Enrichment = Field(default_factory=Enrichment)


class ItineraryItem(CamelModel):
    name: str = Field(min_length=1)
    description: str = ""
    category: Category
    latitude: float = Field(ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(ge=-180, le=180, allow_inf_nan=False)
    enrichment: Optional[Enrichment] = None
    accessibility_score: Optional[int] = Field(default=None, ge=0, le=100)

    @field_validator("name", "description", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("category", mode="before")
    @classmethod
    def _lower_category(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v


class Progress(CamelModel):
    current: int = Field(ge=1)
    total: int = Field(ge=1)


class DailyItinerary(CamelModel):
    model_config = ConfigDict(frozen=True)

    day: int = Field(ge=1)
    items: List[ItineraryItem]
    progress: Progress

    @model_validator(mode="after")
    def _day_within_trip(self) -> "DailyItinerary":
        if self.day > self.progress.total:
            raise ValueError(f"day {self.day} exceeds trip length {self.progress.total}")
        return self

    def place_names(self) -> List[str]:
        return [item.name for item in self.items]


class ErrorFrame(CamelModel):
    error: str
    day: Optional[int] = None


AccessibilityInput = Union[AccessibilityAttributes, Mapping[str, Optional[bool]], None]
