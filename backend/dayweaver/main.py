import asyncio
import json

from dayweaver.graph.orchestrator import stream_itinerary
from dayweaver.models.entities import DailyItinerary, ErrorFrame
from dayweaver.models.trip_preferences import TripRequest


def format_day(day: DailyItinerary) -> dict:
    """Trim a day to the fields worth reading in a terminal."""
    items = []
    for item in day.items:
        enrichment = item.enrichment
        items.append({
            "name": item.name,
            "category": item.category,
            "coords": [item.latitude, item.longitude],
            "rating": enrichment.rating if enrichment else None,
            "price": enrichment.price_string if enrichment else None,
            "accessibility_score": item.accessibility_score,
        })
    return {"day": day.day, "progress": f"{day.progress.current}/{day.progress.total}", "items": items}


async def _run(trip: TripRequest) -> None:
    async for event in stream_itinerary(trip):
        if isinstance(event, ErrorFrame):
            print(json.dumps({"error": event.error, "day": event.day}, ensure_ascii=False))
            return
        print(json.dumps(format_day(event), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    trip = TripRequest(
        trip_dates="2025-11-10 to 2025-11-12",
        number_of_days=3,
        budget="medium",
        interests="history, food",
        travel_style="relaxed",
        companion_type="couple",
    )
    asyncio.run(_run(trip))
