import asyncio
import time
from typing import Optional

from langgraph.graph import StateGraph, END

from dayweaver.config import CONFIG
from dayweaver.graph.day_generator import DayGenerator
from dayweaver.graph.state import DayFailed, DayOutcome, ItineraryRunState, extend_context


def build_graph(day_generator: Optional[DayGenerator] = None, day_timeout: Optional[float] = None):
    """
    Compile the day loop: plan_day runs once per day and loops back to itself
    until the last day is done or a day fails.

    Each plan_day step publishes `last_day` (the finished DailyItinerary) or
    `failure`, so callers streaming with stream_mode="updates" see every day
    as soon as it exists.
    """
    generator = day_generator or DayGenerator()
    timeout = CONFIG.day_timeout_sec if day_timeout is None else day_timeout

    async def _generate(state: ItineraryRunState) -> DayOutcome:
        request = state.request
        call = generator.generate_day(
            request, state.current_day, request.number_of_days, state.consolidated_context
        )
        if timeout and timeout > 0:
            try:
                return await asyncio.wait_for(call, timeout=timeout)
            except asyncio.TimeoutError:
                return DayFailed(
                    day=state.current_day,
                    kind="timeout",
                    reason=f"no response within {timeout:g}s",
                )
        return await call

    async def plan_day(state: ItineraryRunState) -> dict:
        day = state.current_day
        total = state.request.number_of_days
        start = time.perf_counter()
        outcome = await _generate(state)
        seconds = round(time.perf_counter() - start, 2)

        if isinstance(outcome, DayFailed):
            return {
                "status": "failed",
                "failure": outcome,
                "last_day": None,
                "logs": state.logs + [{
                    "stage": "Day Failed",
                    "message": outcome.message,
                    "day": day,
                    "kind": outcome.kind,
                    "seconds": seconds,
                }],
            }

        itinerary = outcome.itinerary
        return {
            "status": "completed" if day >= total else "running",
            "current_day": day + 1,
            "consolidated_context": extend_context(
                state.consolidated_context, day, itinerary.place_names()
            ),
            "last_day": itinerary,
            "logs": state.logs + [{
                "stage": "Day Planned",
                "message": f"Planned day {day}/{total} with {len(itinerary.items)} items",
                "day": day,
                "count": len(itinerary.items),
                "seconds": seconds,
            }],
        }

    def route(state: ItineraryRunState) -> str:
        return "next_day" if state.status == "running" else "done"

    g = StateGraph(ItineraryRunState)
    g.add_node("plan_day", plan_day)
    g.set_entry_point("plan_day")
    g.add_conditional_edges("plan_day", route, {"next_day": "plan_day", "done": END})

    return g.compile()
