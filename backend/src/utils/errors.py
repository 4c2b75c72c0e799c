"""Exceptions raised by the drying engine."""


class DryingEngineError(Exception):
    """Base class for drying engine errors."""


class NotApplicableError(DryingEngineError):
    """Raised when a route lacks the GPS data drying estimates need.

    Not retryable. Callers should say "no GPS data" for the route instead of
    showing an error.
    """

    def __init__(self, route_id: str, reason: str = "no GPS data"):
        self.route_id = route_id
        self.reason = reason
        super().__init__(f"Drying status not applicable for route {route_id}: {reason}")


class DataUnavailableError(DryingEngineError):
    """Raised when upstream data is missing and no degraded estimate is possible."""

    def __init__(self, route_id: str, reason: str = "weather data unavailable"):
        self.route_id = route_id
        self.reason = reason
        super().__init__(f"Drying data unavailable for route {route_id}: {reason}")


class InvalidArgumentError(DryingEngineError, ValueError):
    """Raised for malformed or oversized batch requests, before any work."""
