"""
Runtime configuration for DayWeaver.

Values come from the environment (a local .env file is loaded first) and are
read once at import time into the module-level CONFIG object.
"""

import os
from typing import Final, List, Optional

from dotenv import load_dotenv

load_dotenv()


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


class _Config:
    def __init__(self) -> None:
        # LLM
        self.openai_api_key: Optional[str] = os.getenv("OPENAI_API_KEY")
        self.openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
        self.openai_timeout_sec: float = _float_env("OPENAI_TIMEOUT_SEC", 60.0)
        self.openai_temperature: float = _float_env("OPENAI_TEMPERATURE", 0.2)
        self.max_tool_rounds: int = _int_env("MAX_TOOL_ROUNDS", 12)

        # Places
        self.google_places_api_key: Optional[str] = os.getenv("GOOGLE_PLACES_API_KEY")
        self.target_city: str = os.getenv("TARGET_CITY", "Athens, Greece")
        self.places_max_results: int = _int_env("PLACES_MAX_RESULTS", 5)

        # Orchestration
        self.day_timeout_sec: float = _float_env("DAY_TIMEOUT_SEC", 120.0)
        self.context_max_days: int = _int_env("CONTEXT_MAX_DAYS", 0)
        self.max_trip_days: int = _int_env("MAX_TRIP_DAYS", 14)

        # Service
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.cors_origins: List[str] = [
            o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
        ]


CONFIG: Final[_Config] = _Config()
