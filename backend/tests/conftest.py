"""Pytest fixtures for offline DayWeaver tests: fake Places, fake LLM, scripted days."""

from __future__ import annotations

import asyncio
import json
import re
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

import pytest

from dayweaver.graph.state import DayFailed, DayOk
from dayweaver.integrations.google_places_client import GooglePlacesClient
from dayweaver.models.entities import DailyItinerary, ItineraryItem, Progress
from dayweaver.models.trip_preferences import TripRequest

# name -> (place_id, lat, lng, types, price_level, rating, wheelchair entrance, category)
ATHENS_PLACES: Dict[str, Tuple[str, float, float, List[str], Optional[int], float, Optional[bool], str]] = {
    "Acropolis of Athens": ("p-acropolis", 37.9715, 23.7257, ["tourist_attraction"], None, 4.8, True, "cultural"),
    "Acropolis Museum": ("p-museum", 37.9684, 23.7285, ["museum"], None, 4.8, True, "cultural"),
    "Ancient Agora of Athens": ("p-agora", 37.9747, 23.7223, ["tourist_attraction"], None, 4.7, False, "cultural"),
    "Lycabettus Hill": ("p-lycabettus", 37.9819, 23.7430, ["natural_feature"], None, 4.7, None, "scenic"),
    "Kostas Souvlaki": ("p-kostas", 37.9757, 23.7336, ["restaurant", "food"], 0, 4.6, None, "culinary"),
    "National Archaeological Museum": ("p-nam", 37.9890, 23.7327, ["museum"], None, 4.7, True, "cultural"),
    "To Kafeneio": ("p-kafeneio", 37.9732, 23.7290, ["restaurant"], 1, 4.5, False, "culinary"),
    "Panathenaic Stadium": ("p-stadium", 37.9683, 23.7411, ["stadium"], None, 4.6, True, "activity"),
    "Philopappos Hill": ("p-philopappos", 37.9680, 23.7196, ["park"], None, 4.7, None, "scenic"),
    "Little Tree Books & Coffee": ("p-littletree", 37.9660, 23.7260, ["cafe"], 1, 4.7, None, "culinary"),
    "Temple of Olympian Zeus": ("p-zeus", 37.9693, 23.7331, ["tourist_attraction"], None, 4.5, True, "cultural"),
    "Varvakios Central Market": ("p-varvakios", 37.9805, 23.7265, ["market"], None, 4.4, None, "activity"),
    "Ta Karamanlidika tou Fani": ("p-fani", 37.9796, 23.7269, ["restaurant"], 2, 4.7, True, "culinary"),
    "Benaki Museum": ("p-benaki", 37.9757, 23.7405, ["museum"], None, 4.6, True, "cultural"),
    "Areopagus Hill": ("p-areopagus", 37.9720, 23.7234, ["tourist_attraction"], None, 4.7, False, "scenic"),
}


class FakeGmaps:
    """Stand-in for googlemaps.Client covering `places` and `place`."""

    def __init__(self, fail_search: bool = False, fail_details: Optional[Set[str]] = None):
        self.fail_search = fail_search
        self.fail_details = fail_details or set()
        self.queries: List[str] = []
        self.detail_calls: List[Tuple[str, List[str]]] = []

    def places(self, query: str, **kw: Any) -> Dict[str, Any]:
        self.queries.append(query)
        if self.fail_search:
            raise RuntimeError("REQUEST_DENIED")
        q = query.lower()
        results = []
        for name, (pid, lat, lng, types, price, rating, _, _) in ATHENS_PLACES.items():
            if name.lower() in q:
                result = {
                    "place_id": pid,
                    "name": name,
                    "geometry": {"location": {"lat": lat, "lng": lng}},
                    "types": types,
                    "rating": rating,
                    "user_ratings_total": 1000,
                }
                if price is not None:
                    result["price_level"] = price
                results.append(result)
        return {"results": results, "status": "OK" if results else "ZERO_RESULTS"}

    def place(self, place_id: str, fields: Optional[List[str]] = None, **kw: Any) -> Dict[str, Any]:
        self.detail_calls.append((place_id, list(fields or [])))
        if place_id in self.fail_details:
            raise RuntimeError("OVER_QUERY_LIMIT")
        for name, (pid, _, _, types, price, rating, entrance, _) in ATHENS_PLACES.items():
            if pid == place_id:
                result = {
                    "url": f"https://maps.google.com/?cid={pid}",
                    "website": f"https://example.com/{pid}",
                    "types": types,
                    "rating": rating,
                    "user_ratings_total": 2500,
                }
                if price is not None:
                    result["price_level"] = price
                if entrance is not None:
                    result["wheelchair_accessible_entrance"] = entrance
                return {"result": result, "status": "OK"}
        return {"result": {}, "status": "NOT_FOUND"}


def _previously_visited(prompt: str) -> str:
    match = re.search(r"Places already visited on previous days:\n(.*?)\n\nReturn JSON", prompt, re.S)
    return match.group(1) if match else ""


def make_fake_llm(items_per_day: int = 3, coord_offset: float = 0.0, prompts: Optional[List[str]] = None):
    """
    Fake generation capability: looks places up through the tool handler (like
    the real model must), skips names listed as already visited, and echoes
    coordinates shifted by `coord_offset` to exercise reconciliation.
    """

    def _llm(prompt: str, tools: List[Dict[str, Any]], handlers: Dict[str, Callable], system: Optional[str] = None) -> str:
        if prompts is not None:
            prompts.append(prompt)
        visited = _previously_visited(prompt)
        find = handlers["find_place_details"]
        items = []
        for name, entry in ATHENS_PLACES.items():
            if len(items) == items_per_day:
                break
            if name in visited:
                continue
            category = entry[7]
            results = find(query=name, require_food_place=category == "culinary")
            if not results:
                continue
            top = results[0]
            items.append({
                "name": top["name"],
                "description": f"Visit {top['name']}.",
                "category": category,
                "latitude": top["latitude"] + coord_offset,
                "longitude": top["longitude"] + coord_offset,
                "enrichment": top["enrichment"],
            })
        return json.dumps({"day": 1, "items": items})

    return _llm


class ScriptedDayGenerator:
    """Day generator double: records every call and fails on a chosen day."""

    def __init__(self, items_per_day: int = 3, fail_on: Optional[int] = None,
                 fail_kind: str = "malformed", delay: float = 0.0, hang_on: Optional[int] = None):
        self.items_per_day = items_per_day
        self.fail_on = fail_on
        self.fail_kind = fail_kind
        self.delay = delay
        self.hang_on = hang_on
        self.calls: List[Tuple[int, str]] = []

    async def generate_day(self, request: TripRequest, day_number: int, total_days: int,
                           consolidated_context: str):
        self.calls.append((day_number, consolidated_context))
        if self.delay:
            await asyncio.sleep(self.delay)
        if day_number == self.hang_on:
            await asyncio.sleep(3600)
        if day_number == self.fail_on:
            return DayFailed(day=day_number, kind=self.fail_kind, reason="response has no 'items' list")
        return DayOk(itinerary=build_day(day_number, total_days, self.items_per_day))


def build_day(day: int, total: int, count: int = 3) -> DailyItinerary:
    items = [
        ItineraryItem(
            name=f"Place {day}-{i}",
            description=f"Secret description {day}-{i}",
            category="cultural",
            latitude=37.97 + i / 1000,
            longitude=23.72 + i / 1000,
        )
        for i in range(1, count + 1)
    ]
    return DailyItinerary(day=day, items=items, progress=Progress(current=day, total=total))


@pytest.fixture
def fake_gmaps():
    """Factory for FakeGmaps clients."""

    def _factory(**kw: Any) -> FakeGmaps:
        return FakeGmaps(**kw)

    return _factory


@pytest.fixture
def places_client(fake_gmaps):
    return GooglePlacesClient(client=fake_gmaps(), city="Athens, Greece", max_results=5)


@pytest.fixture
def fake_llm():
    return make_fake_llm


@pytest.fixture
def scripted_generator():
    return ScriptedDayGenerator


@pytest.fixture
def make_day():
    return build_day


@pytest.fixture
def trip_request():
    """Factory for TripRequest with sensible defaults."""

    def _factory(**overrides: Any) -> TripRequest:
        payload = {
            "tripDates": "2025-11-10 to 2025-11-12",
            "numberOfDays": 3,
            "budget": "medium",
            "interests": "history, food",
            "travelStyle": "relaxed",
            "companionType": "couple",
        }
        payload.update(overrides)
        return TripRequest.model_validate(payload)

    return _factory
