from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import StreamingResponse
from fastapi.middleware.cors import CORSMiddleware
from typing import AsyncIterator, List, Optional
from pydantic import ValidationError
from dayweaver.config import CONFIG
from dayweaver.graph.day_generator import DayGenerator
from dayweaver.graph.orchestrator import generate_itinerary, stream_itinerary
from dayweaver.graph.summarizer import summarize_user_preferences
from dayweaver.integrations.exceptions import IntegrationError, ItineraryGenerationError, UpstreamAPIError
from dayweaver.integrations.openai_client import call_gpt
from dayweaver.models.entities import CamelModel, DailyItinerary
from dayweaver.models.trip_preferences import PreferenceInput, PreferenceSummary, TripRequest
import logging
import json

# Configure logging
logging.basicConfig(level=CONFIG.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="DayWeaver Backend API",
    description="Day-by-day streaming itinerary generation",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CONFIG.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


class ItineraryResponse(CamelModel):
    itinerary: List[DailyItinerary]


def get_day_generator() -> DayGenerator:
    return DayGenerator()


def get_summary_llm():
    return call_gpt


def _format_sse(data: dict) -> str:
    """Format a dict as an SSE event line"""
    return f"data: {json.dumps(data, default=str, ensure_ascii=False)}\n\n"


async def _itinerary_sse(trip: TripRequest, request: Request, generator: DayGenerator) -> AsyncIterator[str]:
    """Relay the orchestrator stream as SSE frames, one frame per finished day."""
    events = stream_itinerary(trip, generator)
    try:
        async for event in events:
            yield _format_sse(event.model_dump(by_alias=True, mode="json", exclude_none=False))
            if await request.is_disconnected():
                logger.info("Client disconnected; stopping itinerary stream")
                break
    finally:
        await events.aclose()


def _sse_response(trip: TripRequest, request: Request, generator: DayGenerator) -> StreamingResponse:
    logger.info(
        f"Streaming itinerary: {trip.number_of_days} day(s), style={trip.travel_style}, "
        f"budget={trip.budget}, companions={trip.companion_type}"
    )
    return StreamingResponse(
        _itinerary_sse(trip, request, generator),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@app.get("/")
def root():
    return {
        "message": "DayWeaver Backend API",
        "version": "1.0.0",
        "city": CONFIG.target_city,
        "endpoints": {
            "health": "/health",
            "generate_itinerary_stream": "/ai/generate-itinerary-stream",
            "generate_personalized_itinerary": "/ai/generate-personalized-itinerary",
            "summarize_user_preferences": "/ai/summarize-user-preferences",
            "docs": "/docs"
        }
    }


@app.get("/health")
def health():
    return {"status": "healthy", "service": "DayWeaver Backend"}


@app.post("/ai/generate-itinerary-stream")
async def generate_itinerary_stream(
    trip: TripRequest,
    request: Request,
    generator: DayGenerator = Depends(get_day_generator),
):
    """
    Streaming (SSE) endpoint: emits one `data:` frame per day as soon as it is planned.

    Each frame is a DailyItinerary (`day`, `items`, `progress`). If a day fails the
    stream ends with a single `{"error": ..., "day": k}` frame.
    """
    return _sse_response(trip, request, generator)


@app.get("/ai/generate-itinerary-stream")
async def generate_itinerary_stream_get(
    request: Request,
    trip_dates: str = Query(..., alias="tripDates"),
    number_of_days: int = Query(..., alias="numberOfDays"),
    budget: str = Query(...),
    interests: str = Query(...),
    travel_style: str = Query(..., alias="travelStyle"),
    companion_type: str = Query(..., alias="companionType"),
    accessibility_needs: Optional[bool] = Query(None, alias="accessibilityNeeds"),
    generator: DayGenerator = Depends(get_day_generator),
):
    """
    GET variant for SSE streaming to support EventSource (which only uses GET).
    """
    try:
        trip = TripRequest.model_validate({
            "tripDates": trip_dates,
            "numberOfDays": number_of_days,
            "budget": budget,
            "interests": interests,
            "travelStyle": travel_style,
            "companionType": companion_type,
            "accessibilityNeeds": accessibility_needs,
        })
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=json.loads(e.json(include_url=False)))
    return _sse_response(trip, request, generator)


@app.post("/ai/generate-personalized-itinerary", response_model=ItineraryResponse)
async def generate_personalized_itinerary(
    trip: TripRequest,
    generator: DayGenerator = Depends(get_day_generator),
):
    """
    Run the whole day loop and return every day at once (no progressive delivery).
    """
    logger.info(f"Generating full itinerary: {trip.number_of_days} day(s)")
    try:
        days = await generate_itinerary(trip, generator)
    except ItineraryGenerationError as e:
        raise HTTPException(status_code=502, detail={"error": e.message, "day": e.day})
    return ItineraryResponse(itinerary=days)


@app.post("/ai/summarize-user-preferences", response_model=PreferenceSummary)
async def summarize_preferences(
    prefs: PreferenceInput,
    llm=Depends(get_summary_llm),
):
    """Condense onboarding answers into the interests text used for generation."""
    try:
        return await summarize_user_preferences(prefs, llm=llm)
    except IntegrationError as e:
        logger.error(f"Summarizer misconfigured: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    except UpstreamAPIError as e:
        logger.error(f"Preference summary failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
