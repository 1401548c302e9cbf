import json
import re
from typing import Any, Dict, Optional

_FENCE = re.compile(r"^\s*```(?:json)?\s*|\s*```\s*$", re.IGNORECASE)


def parse_json_object(text: Any) -> Optional[Dict[str, Any]]:
    """
    Parse an LLM reply into a dict.

    Accepts an already-decoded dict, or a JSON string optionally wrapped in
    Markdown code fences. Returns None for anything that is not a JSON object.
    """
    if isinstance(text, dict):
        return text
    if not isinstance(text, str) or not text.strip():
        return None
    try:
        data = json.loads(_FENCE.sub("", text))
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def name_key(name: str) -> str:
    """Case- and whitespace-insensitive key for matching place names."""
    return " ".join(name.split()).casefold()
