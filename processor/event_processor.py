"""Event processor for converting parsed ICS events to canonical events."""
import logging
import re
from datetime import datetime, timezone
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from processor.errors import MalformedIdentifier
from processor.models import CanonicalEvent, RawSourceEvent, RawTimestamp, TimeSpec

logger = logging.getLogger(__name__)


class EventProcessor:
    """Processor for canonicalizing raw ICS events."""

    # Base32hex alphabet accepted in destination event ids
    INVALID_ID_CHARS = re.compile(r'[^0-9a-v]')
    INSTANT_FORMAT = '%Y-%m-%dT%H:%M:%SZ'

    def __init__(self):
        self.skipped = 0

    def process_events(self, raw_events: List[RawSourceEvent]) -> List[CanonicalEvent]:
        """
        Canonicalize raw events, skipping those with unusable or repeated ids.

        When several events map to the same id, the first one is kept.

        Args:
            raw_events: List of RawSourceEvent objects from the parser

        Returns:
            List of CanonicalEvent objects in source order
        """
        canonical_events = []
        seen_ids = set()
        self.skipped = 0

        for event in raw_events:
            try:
                canonical_event = self.canonicalize(event)
            except MalformedIdentifier as e:
                self.skipped += 1
                logger.warning(
                    f"Skipping event '{event.summary}': {e}"
                )
                continue

            if canonical_event.id in seen_ids:
                self.skipped += 1
                logger.warning(
                    f"Skipping event '{event.summary}': duplicate id {canonical_event.id}"
                )
                continue

            seen_ids.add(canonical_event.id)
            canonical_events.append(canonical_event)

        logger.info(
            f"Canonicalized {len(canonical_events)} events out of "
            f"{len(raw_events)} total events"
        )
        return canonical_events

    def canonicalize(self, event: RawSourceEvent) -> CanonicalEvent:
        """
        Convert a single raw event to its canonical form.

        Args:
            event: Raw event from the ICS parser

        Returns:
            CanonicalEvent object

        Raises:
            MalformedIdentifier: If the UID yields an empty event id
        """
        return CanonicalEvent(
            id=self.generate_event_id(event.uid),
            summary=event.summary or '',
            location=event.location or '',
            description=event.description or '',
            start=self.convert_timestamp(event.start),
            end=self.convert_timestamp(event.end)
        )

    def generate_event_id(self, uid: Optional[str]) -> str:
        """
        Derive a destination-safe event id from a source UID.

        Only the part before the first "@" is used. It is lowercased and
        every character outside the base32hex alphabet (0-9, a-v) is
        removed, so "9B37-XYZ@group" becomes "9b37".

        Args:
            uid: UID of the source event

        Returns:
            Event id made of base32hex characters

        Raises:
            MalformedIdentifier: If nothing remains after filtering
        """
        local_part = (uid or '').split('@')[0]
        event_id = self.INVALID_ID_CHARS.sub('', local_part.lower())
        if not event_id:
            raise MalformedIdentifier(uid)
        return event_id

    def convert_timestamp(self, timestamp: RawTimestamp) -> TimeSpec:
        """
        Convert a raw start/end descriptor to a TimeSpec.

        Args:
            timestamp: RawTimestamp from the parser

        Returns:
            All-day TimeSpec for date values, otherwise a UTC instant
            carrying the source time zone name when one was given
        """
        if timestamp.is_date:
            value = timestamp.value
            if isinstance(value, datetime):
                value = value.date()
            return TimeSpec(date=value.isoformat())

        value = timestamp.value
        if not isinstance(value, datetime):
            value = datetime(value.year, value.month, value.day)
        if value.tzinfo is None:
            value = value.replace(tzinfo=self._zone(timestamp.tzid))

        return TimeSpec(
            date_time=value.astimezone(timezone.utc).strftime(self.INSTANT_FORMAT),
            time_zone=timestamp.tzid or None
        )

    def _zone(self, tzid: Optional[str]):
        """Resolve a TZID for floating times, falling back to UTC."""
        if not tzid:
            return timezone.utc
        try:
            return ZoneInfo(tzid)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown time zone '{tzid}', interpreting as UTC")
            return timezone.utc
