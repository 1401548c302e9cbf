"""Utility script to measure time-to-first-day and per-day latency of the stream."""

import asyncio
import time

from dayweaver.graph.orchestrator import stream_itinerary
from dayweaver.models.entities import ErrorFrame
from dayweaver.models.trip_preferences import TripRequest


async def run_trial(travel_style: str, days: int = 3) -> None:
    trip = TripRequest(
        trip_dates="2025-11-10 to 2025-11-16",
        number_of_days=days,
        budget="medium",
        interests="history, food, viewpoints",
        travel_style=travel_style,
        companion_type="friends",
    )

    print(f"Running {travel_style} trial ({days} days)...")
    start = time.perf_counter()
    last = start
    async for event in stream_itinerary(trip):
        now = time.perf_counter()
        if isinstance(event, ErrorFrame):
            print(f"  error after {now - start:.2f}s: {event.error}")
            return
        print(
            f"  day {event.day}: {len(event.items)} items in {now - last:.2f}s "
            f"(elapsed {now - start:.2f}s)"
        )
        last = now
    print(f"{travel_style.capitalize()} runtime: {time.perf_counter() - start:.2f}s")
    print()


if __name__ == "__main__":
    asyncio.run(run_trial("relaxed"))
    asyncio.run(run_trial("packed"))
