from typing import Annotated, List, Literal, Optional

from pydantic import AfterValidator, AliasChoices, ConfigDict, Field

from dayweaver.config import CONFIG
from dayweaver.models.entities import CamelModel

Budget = Literal["low", "medium", "high"]
TravelStyle = Literal["relaxed", "packed"]
CompanionType = Literal["solo", "couple", "family", "friends"]


def _check_day_count(v: int) -> int:
    if v > CONFIG.max_trip_days:
        raise ValueError(f"numberOfDays must be at most {CONFIG.max_trip_days}")
    return v


DayCount = Annotated[int, Field(ge=1), AfterValidator(_check_day_count)]


class TripRequest(CamelModel):
    """Parameters of one itinerary run. Never mutated once built."""

    model_config = ConfigDict(frozen=True)

    trip_dates: str
    number_of_days: DayCount = Field(
        validation_alias=AliasChoices("numberOfDays", "number_of_days", "days"),
        serialization_alias="numberOfDays",
    )
    budget: Budget
    interests: str
    travel_style: TravelStyle = Field(
        validation_alias=AliasChoices("travelStyle", "travel_style", "pace"),
        serialization_alias="travelStyle",
    )
    companion_type: CompanionType
    accessibility_needs: Optional[bool] = None


class PreferenceInput(CamelModel):
    """Structured onboarding answers fed to the preference summarizer."""

    trip_dates: str
    number_of_days: DayCount
    budget: Budget
    interests: List[str]
    travel_style: TravelStyle
    companion_type: CompanionType
    accessibility_needs: Optional[bool] = None


class PreferenceSummary(CamelModel):
    summary: str = Field(min_length=1)
    accessibility_needs: Optional[bool] = None
