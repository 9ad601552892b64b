"""Comparison of canonical and destination events."""
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional, Union

from processor.models import CanonicalEvent, DestinationEvent

EventLike = Union[CanonicalEvent, DestinationEvent, Dict[str, Any]]

TEXT_FIELDS = ('summary', 'location', 'description')


def events_equal(a: EventLike, b: EventLike) -> bool:
    """
    Check whether two events match on every externally visible field.

    Text fields must be identical, with a missing field read as an empty
    string. Start and end must have the same shape; timed values are
    compared as instants and their time zone names must match.

    Args:
        a: First event
        b: Second event

    Returns:
        True if the events are in sync, False otherwise
    """
    first = _as_resource(a)
    second = _as_resource(b)

    for name in TEXT_FIELDS:
        if (first.get(name) or '') != (second.get(name) or ''):
            return False

    return (
        _times_equal(first.get('start'), second.get('start')) and
        _times_equal(first.get('end'), second.get('end'))
    )


def _as_resource(event: EventLike) -> Dict[str, Any]:
    if isinstance(event, CanonicalEvent):
        return event.to_resource()
    if isinstance(event, DestinationEvent):
        return event.resource
    return event


def _times_equal(a: Optional[Dict[str, Any]], b: Optional[Dict[str, Any]]) -> bool:
    a = a or {}
    b = b or {}

    if a.get('date') is not None or b.get('date') is not None:
        first = _parse_date(a.get('date'))
        second = _parse_date(b.get('date'))
        return first is not None and first == second

    first = _parse_instant(a.get('dateTime'))
    second = _parse_instant(b.get('dateTime'))
    if first is None or second is None:
        return False

    return first == second and a.get('timeZone') == b.get('timeZone')


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _parse_instant(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 date-time, reading naive values as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
