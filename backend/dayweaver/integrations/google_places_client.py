"""
Google Places API Integration for DayWeaver

Resolves free-text place queries (scoped to the target city) into real
coordinates plus secondary metadata: rating, price tier, website, canonical
Google Maps link, food-place classification and wheelchair access.

The day generator exposes `find_place_details` to the LLM as a tool so that
every itinerary item is backed by a real lookup instead of invented data.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

import googlemaps

from dayweaver.config import CONFIG
from dayweaver.integrations.exceptions import IntegrationError, PlaceSearchError
from dayweaver.models.entities import AccessibilityAttributes, Enrichment, PlaceCandidate

logger = logging.getLogger(__name__)

FOOD_PLACE_TYPES = frozenset(
    {"restaurant", "cafe", "bar", "bakery", "meal_takeaway", "meal_delivery"}
)

# Legacy Places details only exposes the entrance flag; restroom, parking and
# seating need Places API (New) and stay unknown here.
DETAIL_FIELDS = [
    "url",
    "website",
    "price_level",
    "rating",
    "user_ratings_total",
    "type",
    "wheelchair_accessible_entrance",
]

MAPS_PLACE_URL = "https://www.google.com/maps/place/?q=place_id:{place_id}"

# OpenAI function-calling schema for the lookup
FIND_PLACE_DETAILS_TOOL: Dict[str, Any] = {
    "type": "function",
    "function": {
        "name": "find_place_details",
        "description": (
            f"Search for places in {CONFIG.target_city} and return their exact name, "
            "precise coordinates and enrichment (rating, price, website, Google Maps "
            "link, food-place flag, wheelchair accessible entrance)."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": (
                        'A place name or descriptive phrase, e.g. "Acropolis Museum" '
                        'or "best souvlaki near Monastiraki".'
                    ),
                },
                "require_food_place": {
                    "type": "boolean",
                    "description": "If true, only return places that serve food or drink.",
                },
            },
            "required": ["query"],
        },
    },
}


def price_string(level: Optional[int]) -> Optional[str]:
    """Project a Google price_level (0-4) onto the euro display string."""
    if level is None:
        return None
    if level <= 0:
        return "€"
    if level == 1:
        return "€€"
    if level == 2:
        return "€€€"
    return "€€€€"


def is_food_place(types: Optional[Iterable[Any]]) -> bool:
    if not types:
        return False
    return any(isinstance(t, str) and t in FOOD_PLACE_TYPES for t in types)


def _number(value: Any, kind=float) -> Optional[Any]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return kind(value)


def _first_pass_enrichment(place: Dict[str, Any]) -> Enrichment:
    place_id = place.get("place_id")
    level = _number(place.get("price_level"), int)
    return Enrichment(
        rating=_number(place.get("rating")),
        user_ratings_total=_number(place.get("user_ratings_total"), int),
        price_level=level,
        price_string=price_string(level),
        website_url=None,
        google_maps_url=MAPS_PLACE_URL.format(place_id=place_id) if place_id else None,
        is_food_place=is_food_place(place.get("types")),
        accessible=None,
        accessibility=None,
    )


def _merge_details(base: Enrichment, details: Dict[str, Any], fallback_types) -> Enrichment:
    """Overlay detail values on the first-pass enrichment, keeping it where details are silent."""
    rating = _number(details.get("rating"))
    total = _number(details.get("user_ratings_total"), int)
    level = _number(details.get("price_level"), int)
    if level is None:
        level = base.price_level
    website = details.get("website")
    url = details.get("url")
    entrance = details.get("wheelchair_accessible_entrance")
    entrance = entrance if isinstance(entrance, bool) else None

    return Enrichment(
        rating=rating if rating is not None else base.rating,
        user_ratings_total=total if total is not None else base.user_ratings_total,
        price_level=level,
        price_string=price_string(level),
        website_url=website if isinstance(website, str) else base.website_url,
        google_maps_url=url if isinstance(url, str) else base.google_maps_url,
        is_food_place=is_food_place(details.get("types") or fallback_types),
        accessible=entrance,
        accessibility=AccessibilityAttributes(entrance=entrance) if entrance is not None else None,
    )


class GooglePlacesClient:
    """Google Places lookup scoped to one city"""

    def __init__(self, client: Optional[googlemaps.Client] = None, city: Optional[str] = None,
                 max_results: Optional[int] = None):
        if client is None and CONFIG.google_places_api_key:
            client = googlemaps.Client(key=CONFIG.google_places_api_key)
            logger.info("Google Places API initialized")
        self.client = client
        self.city = city or CONFIG.target_city
        self.max_results = max_results or CONFIG.places_max_results

    def find_place_details(self, query: str, require_food_place: bool = False) -> List[PlaceCandidate]:
        """
        Look up places matching a free-text query inside the target city.

        Args:
            query: Place name or descriptive phrase (e.g. 'Acropolis Museum')
            require_food_place: Keep only restaurants, cafes, bars and the like

        Returns:
            Candidates with coordinates and enrichment, in search ranking order.

        Raises:
            IntegrationError: no API key configured
            PlaceSearchError: the text search itself failed
        """
        if not self.client:
            raise IntegrationError("GOOGLE_PLACES_API_KEY not configured")

        scoped_query = f"{query}, {self.city}"
        try:
            response = self.client.places(query=scoped_query)
        except Exception as e:
            logger.error(f"Place search failed for '{scoped_query}': {e}")
            raise PlaceSearchError(f"Place search failed for '{query}': {e}") from e

        results = response.get("results") or []
        if require_food_place:
            # food filter applies before the result cap
            results = [place for place in results if is_food_place(place.get("types"))]

        candidates: List[PlaceCandidate] = []
        for place in results[: self.max_results]:
            candidate = self._to_candidate(place)
            if candidate is not None:
                candidates.append(candidate)

        if require_food_place:
            candidates = [c for c in candidates if c.enrichment.is_food_place]

        logger.info(f"Found {len(candidates)} places for '{query}' in {self.city}")
        return candidates

    def get_place_details(self, place_id: str) -> Optional[Dict[str, Any]]:
        """Fetch the secondary detail record; None when the fetch fails."""
        try:
            details_result = self.client.place(place_id=place_id, fields=DETAIL_FIELDS)
            return details_result.get("result")
        except Exception as e:
            logger.warning(f"Failed to get details for place {place_id}: {e}")
            return None

    def _to_candidate(self, place: Dict[str, Any]) -> Optional[PlaceCandidate]:
        location = (place.get("geometry") or {}).get("location") or {}
        lat, lng = _number(location.get("lat")), _number(location.get("lng"))
        if lat is None or lng is None or not place.get("name"):
            logger.warning(f"Skipping place without name or coordinates: {place.get('place_id')}")
            return None

        enrichment = _first_pass_enrichment(place)
        place_id = place.get("place_id")
        if place_id:
            details = self.get_place_details(place_id)
            if details:
                enrichment = _merge_details(enrichment, details, place.get("types"))

        return PlaceCandidate(name=place["name"], latitude=lat, longitude=lng, enrichment=enrichment)


# Global instance
google_places_client = GooglePlacesClient()
