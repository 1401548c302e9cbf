"""Tests for the one-shot preference summarizer."""

from __future__ import annotations

import asyncio
import json

import pytest

from dayweaver.graph.summarizer import build_summary_prompt, summarize_user_preferences
from dayweaver.integrations.exceptions import UpstreamAPIError
from dayweaver.models.trip_preferences import PreferenceInput


@pytest.fixture
def prefs():
    def _factory(**overrides):
        payload = {
            "tripDates": "2025-08-15 to 2025-08-20",
            "numberOfDays": 5,
            "budget": "medium",
            "interests": ["history", "food", "nightlife"],
            "travelStyle": "relaxed",
            "companionType": "couple",
        }
        payload.update(overrides)
        return PreferenceInput.model_validate(payload)

    return _factory


def test_prompt_lists_preferences(prefs):
    prompt = build_summary_prompt(prefs(), city="Athens, Greece")

    assert "Athens, Greece" in prompt
    assert "Interests: history, food, nightlife" in prompt
    assert "Number of Days: 5" in prompt
    assert "restrooms" not in prompt


def test_prompt_emphasises_accessibility_when_flagged(prefs):
    prompt = build_summary_prompt(prefs(accessibilityNeeds=True), city="Athens, Greece")

    assert "wheelchair-accessible entrances, restrooms, parking and seating" in prompt


def test_summary_is_parsed(prefs):
    captured = {}

    def llm(prompt, response_format=None):
        captured["format"] = response_format
        return json.dumps({"summary": "Five relaxed days of history and food for a couple.", "accessibilityNeeds": False})

    summary = asyncio.run(summarize_user_preferences(prefs(), llm=llm))

    assert summary.summary.startswith("Five relaxed days")
    assert summary.accessibility_needs is False
    assert captured["format"] == {"type": "json_object"}


def test_missing_flag_is_carried_over_from_input(prefs):
    def llm(prompt, response_format=None):
        return json.dumps({"summary": "Accessible-first trip."})

    summary = asyncio.run(summarize_user_preferences(prefs(accessibilityNeeds=True), llm=llm))

    assert summary.accessibility_needs is True


@pytest.mark.parametrize("raw", ["nope", json.dumps({"summary": ""}), json.dumps({"text": "hi"})])
def test_malformed_summary_raises_upstream_error(prefs, raw):
    with pytest.raises(UpstreamAPIError):
        asyncio.run(summarize_user_preferences(prefs(), llm=lambda prompt, response_format=None: raw))
