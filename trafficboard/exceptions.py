"""Exception hierarchy for trafficboard.

Errors fall into three families:
- ConfigurationError: the active store configuration is missing or incomplete.
- StoreFetchError: a query or mutation against the external store failed.
- ValidationError: caller input is malformed or contradictory (raised before any I/O).
"""


class TrafficboardError(Exception):
    """Base class for trafficboard errors."""


class ConfigurationError(TrafficboardError):
    """Store configuration is missing or incomplete. Not retried automatically."""


class ValidationError(TrafficboardError, ValueError):
    """Input rejected before any upstream call was attempted."""


class NotionAPIError(TrafficboardError):
    """Non-2xx response from the Notion API."""

    def __init__(self, status_code: int, code: str, message: str):
        super().__init__(f"Notion API error {status_code} ({code}): {message}")
        self.status_code = status_code
        self.code = code
        self.message = message


class StoreFetchError(TrafficboardError):
    """An external store call failed; wraps the original error with operation context."""

    def __init__(self, operation: str, original_error: Exception):
        super().__init__(f"Failed to {operation}: {original_error}")
        self.operation = operation
        self.original_error = original_error
