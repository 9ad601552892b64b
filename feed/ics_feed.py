"""Fetching and parsing of ICS subscription feeds."""
import logging
import time
from datetime import datetime, timedelta
from typing import List, Optional

import requests
from icalendar import Calendar

from processor.errors import FetchError, ParseError
from processor.models import RawSourceEvent, RawTimestamp

logger = logging.getLogger(__name__)


class IcsFeedFetcher:
    """HTTP client for ICS subscription feeds."""

    def __init__(self, timeout: int = 30, max_retries: int = 3, base_delay: float = 1):
        """
        Initialize the feed fetcher.

        Args:
            timeout: HTTP request timeout in seconds (default: 30)
            max_retries: Attempts before giving up (default: 3)
            base_delay: First retry delay in seconds, doubled per attempt
        """
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_delay = base_delay

    def fetch_text(self, uri: str) -> str:
        """
        Fetch the ICS text of a subscription with retry logic.

        Args:
            uri: Feed URI; webcal:// is fetched over https

        Returns:
            ICS text

        Raises:
            FetchError: If all retry attempts fail
        """
        url = self._http_url(uri)

        for attempt in range(self.max_retries):
            try:
                logger.info(f"Fetching feed {url} (attempt {attempt + 1}/{self.max_retries})")
                response = requests.get(url, timeout=self.timeout)
                response.raise_for_status()
                return response.text

            except requests.RequestException as e:
                if attempt < self.max_retries - 1:
                    delay = self.base_delay * (2 ** attempt)
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{self.max_retries}): {e}. "
                        f"Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"All {self.max_retries} retry attempts failed. Last error: {e}"
                    )
                    raise FetchError(f"Failed to fetch {url}: {e}") from e

        raise FetchError(f"Failed to fetch {url}: no attempts made")

    @staticmethod
    def _http_url(uri: str) -> str:
        if uri.startswith('webcal://'):
            return 'https://' + uri[len('webcal://'):]
        return uri


class IcsParser:
    """Parser turning ICS text into raw source events."""

    def parse(self, text: str) -> List[RawSourceEvent]:
        """
        Parse the single (non-recurring) VEVENTs of an ICS document.

        Recurring masters (RRULE) and their moved instances
        (RECURRENCE-ID) share one UID and are skipped.

        Args:
            text: ICS document

        Returns:
            List of RawSourceEvent objects in document order

        Raises:
            ParseError: If the text is not a valid calendar
        """
        try:
            calendar = Calendar.from_ical(text)
        except (ValueError, IndexError, KeyError) as e:
            raise ParseError(f"Invalid ICS document: {e}") from e

        events = []
        recurring = 0
        for component in calendar.walk('VEVENT'):
            if 'RRULE' in component or 'RECURRENCE-ID' in component:
                recurring += 1
                continue
            event = self._parse_component(component)
            if event:
                events.append(event)

        if recurring:
            logger.info(f"Skipped {recurring} recurring event components")
        logger.info(f"Parsed {len(events)} events from feed")
        return events

    def _parse_component(self, component) -> Optional[RawSourceEvent]:
        """
        Parse a single VEVENT component.

        Args:
            component: icalendar Event component

        Returns:
            RawSourceEvent object or None if it has no start
        """
        uid = str(component.get('uid', ''))
        summary = str(component.get('summary', ''))

        start = self._timestamp(component.get('dtstart'))
        if start is None:
            logger.warning(f"Skipping event '{summary}' ({uid}): missing DTSTART")
            return None

        end = self._timestamp(component.get('dtend'))
        if end is None:
            end = self._derive_end(start, component.get('duration'))

        return RawSourceEvent(
            uid=uid,
            summary=summary,
            location=str(component.get('location', '')),
            description=str(component.get('description', '')),
            start=start,
            end=end
        )

    @staticmethod
    def _timestamp(prop) -> Optional[RawTimestamp]:
        if prop is None:
            return None
        value = prop.dt
        tzid = prop.params.get('TZID') if hasattr(prop, 'params') else None
        return RawTimestamp(
            value=value,
            is_date=not isinstance(value, datetime),
            tzid=str(tzid) if tzid else None
        )

    @staticmethod
    def _derive_end(start: RawTimestamp, duration) -> RawTimestamp:
        """End from DURATION, else one day after an all-day start, else the start."""
        if duration is not None and isinstance(duration.dt, timedelta):
            delta = duration.dt
        elif start.is_date:
            delta = timedelta(days=1)
        else:
            delta = timedelta(0)
        return RawTimestamp(value=start.value + delta, is_date=start.is_date, tzid=start.tzid)
