"""
Itinerary orchestrator: drives the day loop and turns it into a stream.

`stream_itinerary` yields each DailyItinerary the moment its day finishes
(days strictly 1..N) and, if a day fails, exactly one ErrorFrame after which
nothing more is produced. `generate_itinerary` is the one-shot variant that
collects the same stream.
"""

import asyncio
import logging
from typing import AsyncIterator, List, Optional, Union

from dayweaver.graph.build_graph import build_graph
from dayweaver.graph.day_generator import DayGenerator
from dayweaver.graph.state import DayFailed, ItineraryRunState
from dayweaver.integrations.exceptions import ItineraryGenerationError
from dayweaver.models.entities import DailyItinerary, ErrorFrame
from dayweaver.models.trip_preferences import TripRequest

logger = logging.getLogger(__name__)

StreamEvent = Union[DailyItinerary, ErrorFrame]


def _as_model(value, model):
    if value is None or isinstance(value, model):
        return value
    return model.model_validate(value)


async def stream_itinerary(
    request: TripRequest,
    day_generator: Optional[DayGenerator] = None,
    day_timeout: Optional[float] = None,
) -> AsyncIterator[StreamEvent]:
    graph = build_graph(day_generator, day_timeout=day_timeout)
    total = request.number_of_days
    state = ItineraryRunState(request=request, status="running")
    expected_day = 1

    logger.info(f"Itinerary run started: {total} day(s), {request.travel_style}, budget {request.budget}")
    updates = graph.astream(
        state,
        config={"recursion_limit": total + 5},
        stream_mode="updates",
    )
    try:
        async for update in updates:
            step = update.get("plan_day") or {}

            failure = _as_model(step.get("failure"), DayFailed)
            if failure is not None:
                logger.error(f"Itinerary run stopped at day {failure.day} ({failure.kind}): {failure.reason}")
                yield ErrorFrame(error=failure.message, day=failure.day)
                return

            day = _as_model(step.get("last_day"), DailyItinerary)
            if day is None:
                continue
            if day.day != expected_day:
                # the loop only ever advances by one; anything else is a bug upstream
                raise RuntimeError(f"day {day.day} produced while expecting day {expected_day}")
            expected_day += 1
            yield day
    except (asyncio.CancelledError, GeneratorExit):
        logger.info(f"Itinerary run cancelled before day {expected_day}/{total}")
        raise
    except Exception as e:
        logger.exception(f"Itinerary run crashed on day {expected_day}")
        yield ErrorFrame(error=f"Failed to generate day {expected_day}: {e}", day=expected_day)
        return
    finally:
        # stops the graph from scheduling further days once the consumer is gone
        await updates.aclose()

    logger.info(f"Itinerary run completed: {expected_day - 1}/{total} day(s)")


async def generate_itinerary(
    request: TripRequest,
    day_generator: Optional[DayGenerator] = None,
    day_timeout: Optional[float] = None,
) -> List[DailyItinerary]:
    """Run the whole loop and return every day, or raise on the first failed day."""
    days: List[DailyItinerary] = []
    async for event in stream_itinerary(request, day_generator, day_timeout=day_timeout):
        if isinstance(event, ErrorFrame):
            raise ItineraryGenerationError(event.day or len(days) + 1, event.error)
        days.append(event)
    return days
