"""
Single-day itinerary generation.

One LLM conversation per day: the model is told to look every place up with
the `find_place_details` tool, and its final JSON is validated before anything
reaches the orchestrator. Every outcome is returned as a DayOk / DayFailed
value; nothing is retried here.
"""

import asyncio
import json
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError

from dayweaver.config import CONFIG
from dayweaver.graph.postprocess.accessibility import compute_accessibility_score
from dayweaver.graph.state import DayFailed, DayOk, DayOutcome, context_window
from dayweaver.graph.utils import name_key, parse_json_object
from dayweaver.integrations.exceptions import IntegrationError, UpstreamAPIError
from dayweaver.integrations.google_places_client import (
    FIND_PLACE_DETAILS_TOOL,
    GooglePlacesClient,
    google_places_client,
)
from dayweaver.integrations.openai_client import call_gpt_with_tools
from dayweaver.models.entities import CATEGORIES, DailyItinerary, ItineraryItem, PlaceCandidate, Progress
from dayweaver.models.trip_preferences import TripRequest

logger = logging.getLogger(__name__)

ITEMS_PER_DAY = {
    "relaxed": (3, 5),
    "packed": (5, 7),
}

BUDGET_GUIDANCE = {
    "low": "Free attractions, street food, cheap eats",
    "medium": "Mid-range dining, paid attractions",
    "high": "Premium experiences, fine dining",
}

SYSTEM_PROMPT = (
    "You are a personal travel assistant who builds day plans for {city}. "
    "You only suggest real places and you always answer with a single JSON object."
)

DAY_SCHEMA = """
{
  "day": 1,
  "items": [
    {
      "name": "Acropolis Museum",
      "description": "Modern museum with the Parthenon marbles gallery.",
      "category": "cultural",
      "latitude": 37.9684,
      "longitude": 23.7285,
      "enrichment": { ...the enrichment object returned by find_place_details... }
    }
  ]
}
"""

# Signature of the generation capability: (prompt, tools, handlers, system=...) -> str
LLMCall = Callable[..., str]


def items_range_for_pace(travel_style: str) -> Tuple[int, int]:
    return ITEMS_PER_DAY[travel_style]


def build_day_prompt(request: TripRequest, day_number: int, total_days: int,
                     consolidated_context: str, city: Optional[str] = None) -> str:
    city = city or CONFIG.target_city
    low, high = items_range_for_pace(request.travel_style)
    previous = context_window(consolidated_context, CONFIG.context_max_days).strip()

    accessibility = ""
    if request.accessibility_needs:
        accessibility = (
            "\nACCESSIBILITY: The traveler needs wheelchair access. Prefer places whose "
            "find_place_details result has an accessible entrance (enrichment.accessible = true) "
            "whenever a suitable one exists.\n"
        )

    return f"""
Plan day {day_number} of a {total_days}-day trip to {city}.

Trip Details:
- Dates: {request.trip_dates}
- Budget: {request.budget} ({BUDGET_GUIDANCE[request.budget]})
- Interests: {request.interests}
- Travel Style: {request.travel_style}
- Companions: {request.companion_type}
- Accessibility needs: {bool(request.accessibility_needs)}

Rules:
1. Suggest between {low} and {high} activities for this day, in visiting order.
2. For EVERY attraction, restaurant or point of interest call the find_place_details tool
   and copy its exact name, latitude, longitude and enrichment object. Never invent coordinates.
   Use require_food_place = true when looking up restaurants, cafes or taverns.
3. category must be one of: {", ".join(CATEGORIES)}.
4. Do not repeat any place already visited on previous days.
{accessibility}
Places already visited on previous days:
{previous or "None yet."}

Return JSON only, no Markdown, exactly in this shape:
{DAY_SCHEMA}
"""


def parse_day_output(raw: Any, day_number: int, total_days: int, travel_style: str) -> DayOutcome:
    """Validate the model's final answer for one day."""
    data = parse_json_object(raw)
    if data is None:
        return DayFailed(day=day_number, kind="malformed", reason="response was not a JSON object")

    raw_items = data.get("items")
    if not isinstance(raw_items, list):
        return DayFailed(day=day_number, kind="malformed", reason="response has no 'items' list")

    items: List[ItineraryItem] = []
    for i, raw_item in enumerate(raw_items, 1):
        try:
            items.append(ItineraryItem.model_validate(raw_item))
        except ValidationError as e:
            reason = f"item {i} is invalid: {e.errors()[0].get('msg', 'validation error')}"
            return DayFailed(day=day_number, kind="malformed", reason=reason)

    low, high = items_range_for_pace(travel_style)
    if len(items) < low:
        return DayFailed(
            day=day_number,
            kind="malformed",
            reason=f"expected at least {low} items for a {travel_style} day, got {len(items)}",
        )
    if len(items) > high:
        logger.warning(f"Day {day_number}: trimming {len(items)} items to {high}")
        items = items[:high]

    return DayOk(
        itinerary=DailyItinerary(
            day=day_number,
            items=items,
            progress=Progress(current=day_number, total=total_days),
        )
    )


def _reconcile(item: ItineraryItem, looked_up: Dict[str, PlaceCandidate]) -> ItineraryItem:
    """Replace echoed coordinates/enrichment with what the lookup actually returned."""
    candidate = looked_up[name_key(item.name)]
    return item.model_copy(update={
        "latitude": candidate.latitude,
        "longitude": candidate.longitude,
        "enrichment": candidate.enrichment,
    })


def _with_accessibility_score(item: ItineraryItem) -> ItineraryItem:
    attrs = item.enrichment.accessibility if item.enrichment else None
    return item.model_copy(update={"accessibility_score": compute_accessibility_score(attrs)})


class DayGenerator:
    """Generates one day at a time; holds no per-run state between calls."""

    def __init__(self, places: Optional[GooglePlacesClient] = None, llm: Optional[LLMCall] = None):
        self.places = places or google_places_client
        self.llm = llm or call_gpt_with_tools

    async def generate_day(self, request: TripRequest, day_number: int, total_days: int,
                           consolidated_context: str) -> DayOutcome:
        looked_up: Dict[str, PlaceCandidate] = {}
        cancelled = threading.Event()

        def find_place_details(query: str, require_food_place: bool = False) -> List[Dict[str, Any]]:
            if cancelled.is_set():
                raise UpstreamAPIError("day generation was cancelled")
            candidates = self.places.find_place_details(query, require_food_place=bool(require_food_place))
            for c in candidates:
                looked_up[name_key(c.name)] = c
            return [c.model_dump(by_alias=True) for c in candidates]

        prompt = build_day_prompt(request, day_number, total_days, consolidated_context, city=self.places.city)
        system = SYSTEM_PROMPT.format(city=self.places.city)

        logger.info(f"Generating day {day_number}/{total_days}")
        try:
            raw = await asyncio.to_thread(
                self.llm,
                prompt,
                [FIND_PLACE_DETAILS_TOOL],
                {"find_place_details": find_place_details},
                system=system,
            )
        except (UpstreamAPIError, IntegrationError) as e:
            logger.error(f"Day {day_number} generation failed upstream: {e}")
            return DayFailed(day=day_number, kind="upstream", reason=str(e))
        except asyncio.CancelledError:
            # the worker thread cannot be interrupted; stop it issuing further lookups
            cancelled.set()
            raise

        outcome = parse_day_output(raw, day_number, total_days, request.travel_style)
        if isinstance(outcome, DayFailed):
            logger.error(f"Day {day_number} output rejected: {outcome.reason}")
            logger.debug(f"Day {day_number} raw output: {json.dumps(raw, default=str)[:2000]}")
            return outcome

        unresolved = [item.name for item in outcome.itinerary.items if name_key(item.name) not in looked_up]
        if unresolved:
            failure = DayFailed(
                day=day_number,
                kind="malformed",
                reason=f"item '{unresolved[0]}' was not resolved via find_place_details",
            )
            logger.error(f"Day {day_number} output rejected: {len(unresolved)} unresolved item(s), {failure.reason}")
            return failure

        items = [_reconcile(item, looked_up) for item in outcome.itinerary.items]
        if request.accessibility_needs:
            items = [_with_accessibility_score(item) for item in items]

        logger.info(f"Day {day_number} ready with {len(items)} items ({len(looked_up)} places looked up)")
        return DayOk(itinerary=outcome.itinerary.model_copy(update={"items": items}))
