"""Exceptions raised while syncing subscriptions."""
from typing import Optional


class CalendarSyncError(Exception):
    """Base class for sync errors."""


class MalformedIdentifier(CalendarSyncError):
    """Source UID has no characters usable in a destination event id."""

    def __init__(self, uid: str):
        super().__init__(f"UID {uid!r} yields an empty event id")
        self.uid = uid


class TransformError(CalendarSyncError):
    """Override function raised or returned an invalid result."""


class FetchError(CalendarSyncError):
    """ICS feed could not be retrieved."""


class ParseError(CalendarSyncError):
    """ICS feed text could not be parsed."""


class ApiError(CalendarSyncError):
    """Destination calendar API call failed."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ConfigurationError(CalendarSyncError):
    """Invalid environment configuration."""
