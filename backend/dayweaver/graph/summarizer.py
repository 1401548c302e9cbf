import asyncio
import logging
from typing import Callable, Optional

from pydantic import ValidationError

from dayweaver.config import CONFIG
from dayweaver.graph.utils import parse_json_object
from dayweaver.integrations.exceptions import UpstreamAPIError
from dayweaver.integrations.openai_client import call_gpt
from dayweaver.models.trip_preferences import PreferenceInput, PreferenceSummary

logger = logging.getLogger(__name__)


def build_summary_prompt(prefs: PreferenceInput, city: Optional[str] = None) -> str:
    city = city or CONFIG.target_city
    accessibility = ""
    if prefs.accessibility_needs:
        accessibility = (
            "The traveler requires wheelchair-accessible entrances, restrooms, parking and "
            "seating where available. Say so clearly: accessibility must be prioritized when "
            "selecting venues.\n"
        )

    return f"""
You are an expert trip planner, skilled at understanding user preferences.

Summarize the preferences below into a concise, informative summary that will be used
to generate a personalized itinerary for {city}. Capture the duration, budget level,
key interests, travel pace, who they are traveling with and whether they need
wheelchair-accessible venues.
{accessibility}
Trip Dates: {prefs.trip_dates}
Number of Days: {prefs.number_of_days}
Budget: {prefs.budget}
Interests: {", ".join(prefs.interests)}
Travel Style: {prefs.travel_style}
Companion Type: {prefs.companion_type}
Accessibility Needs: {bool(prefs.accessibility_needs)}

Return JSON only:
{{"summary": "...", "accessibilityNeeds": true or false}}
"""


async def summarize_user_preferences(
    prefs: PreferenceInput,
    llm: Optional[Callable[..., str]] = None,
) -> PreferenceSummary:
    """One LLM call; no loop, no lookups."""
    llm = llm or call_gpt
    prompt = build_summary_prompt(prefs)
    raw = await asyncio.to_thread(llm, prompt, response_format={"type": "json_object"})

    data = parse_json_object(raw)
    if data is None:
        raise UpstreamAPIError("Preference summary was not a JSON object")
    try:
        summary = PreferenceSummary.model_validate(data)
    except ValidationError as e:
        raise UpstreamAPIError(f"Preference summary was malformed: {e.errors()[0].get('msg')}") from e

    if summary.accessibility_needs is None and prefs.accessibility_needs is not None:
        summary = summary.model_copy(update={"accessibility_needs": prefs.accessibility_needs})

    logger.info(f"Summarized preferences into {len(summary.summary)} characters")
    return summary
