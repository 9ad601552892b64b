"""Google Calendar client for destination event operations."""
import logging
from typing import Any, Dict, List

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from processor.errors import ApiError
from processor.models import CanonicalEvent, DestinationEvent

logger = logging.getLogger(__name__)


class GoogleCalendarClient:
    """Client for Google Calendar v3 event operations."""

    PAGE_SIZE = 2500  # Calendar API maximum for events.list

    def __init__(self, service):
        """
        Initialize the client with a Calendar API service.

        Args:
            service: Resource built by googleapiclient.discovery.build
        """
        self.service = service

    @classmethod
    def from_credentials(cls, credentials) -> 'GoogleCalendarClient':
        """Build the Calendar v3 service for the given credentials."""
        service = build('calendar', 'v3', credentials=credentials, cache_discovery=False)
        logger.info("Google Calendar service initialized")
        return cls(service)

    def list(self, calendar_id: str) -> List[DestinationEvent]:
        """
        Retrieve all events of a calendar, following pagination.

        Args:
            calendar_id: Destination calendar id

        Returns:
            List of DestinationEvent objects

        Raises:
            ApiError: If the API call fails
        """
        logger.info(f"Listing events of calendar {calendar_id}")
        events = []
        page_token = None

        try:
            while True:
                response = self.service.events().list(
                    calendarId=calendar_id,
                    maxResults=self.PAGE_SIZE,
                    showDeleted=False,
                    pageToken=page_token
                ).execute()

                for item in response.get('items', []):
                    if 'id' in item:
                        events.append(DestinationEvent.from_resource(item))

                page_token = response.get('nextPageToken')
                if not page_token:
                    break

        except HttpError as e:
            raise self._api_error(f"Error listing events of {calendar_id}", e) from e

        logger.info(f"Retrieved {len(events)} events from calendar {calendar_id}")
        return events

    def create(self, calendar_id: str, event: CanonicalEvent) -> DestinationEvent:
        """
        Insert a canonical event, keeping its id.

        Raises:
            ApiError: If the API call fails
        """
        try:
            created = self.service.events().insert(
                calendarId=calendar_id,
                body=event.to_resource()
            ).execute()
        except HttpError as e:
            raise self._api_error(f"Error creating event {event.id} in {calendar_id}", e) from e

        logger.info(f"Created event {event.id} in calendar {calendar_id}")
        return DestinationEvent.from_resource(created)

    def update(self, calendar_id: str, event_id: str, resource: Dict[str, Any]) -> DestinationEvent:
        """
        Replace an existing event with the given resource.

        Raises:
            ApiError: If the API call fails
        """
        try:
            updated = self.service.events().update(
                calendarId=calendar_id,
                eventId=event_id,
                body=resource
            ).execute()
        except HttpError as e:
            raise self._api_error(f"Error updating event {event_id} in {calendar_id}", e) from e

        logger.info(f"Updated event {event_id} in calendar {calendar_id}")
        return DestinationEvent.from_resource(updated)

    @staticmethod
    def _api_error(message: str, error: HttpError) -> ApiError:
        status = getattr(error.resp, 'status', None)
        logger.error(f"{message}: {error}")
        return ApiError(f"{message}: {error}", status=int(status) if status else None)
