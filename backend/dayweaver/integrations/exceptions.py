class IntegrationError(Exception):
    """Base exception for integration-level failures (config, connectivity, auth)."""


class UpstreamAPIError(Exception):
    """Represents an upstream API call failure (quota, 4xx/5xx, malformed response)."""


class PlaceSearchError(UpstreamAPIError):
    """The place text search itself failed; callers may retry the whole request."""


class ItineraryGenerationError(RuntimeError):
    """Raised when an itinerary run stops on a failed day."""

    def __init__(self, day: int, message: str):
        super().__init__(f"Day {day}: {message}")
        self.day = day
        self.message = message
