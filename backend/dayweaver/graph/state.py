import re
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field

from dayweaver.models.entities import DailyItinerary
from dayweaver.models.trip_preferences import TripRequest

FailureKind = Literal["malformed", "upstream", "timeout"]
RunStatus = Literal["idle", "running", "completed", "failed"]

_SEGMENT_START = re.compile(r"(?=Day \d+: )")


class DayOk(BaseModel):
    itinerary: DailyItinerary


class DayFailed(BaseModel):
    day: int
    kind: FailureKind
    reason: str

    @property
    def message(self) -> str:
        return f"Failed to generate day {self.day}: {self.reason}"


DayOutcome = Union[DayOk, DayFailed]


class ItineraryRunState(BaseModel):
    """Per-request loop state; nothing here outlives the run."""

    request: TripRequest
    status: RunStatus = "idle"
    current_day: int = 1
    consolidated_context: str = ""
    last_day: Optional[DailyItinerary] = None
    failure: Optional[DayFailed] = None
    logs: List[dict] = Field(default_factory=list)


def extend_context(context: str, day: int, place_names: List[str]) -> str:
    """Append one day's place names. Only names go in: no descriptions, no enrichment."""
    return f"{context}Day {day}: {', '.join(place_names)}. "


def context_window(context: str, max_days: int) -> str:
    """The last `max_days` day segments of the context; all of it when max_days <= 0."""
    if max_days <= 0 or not context:
        return context
    segments = [s for s in _SEGMENT_START.split(context) if s]
    return "".join(segments[-max_days:])
