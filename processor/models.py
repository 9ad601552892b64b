"""Data models for event reconciliation."""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple, Union


@dataclass
class RawTimestamp:
    """Start or end descriptor of a parsed ICS event."""
    value: Union[date, datetime]
    is_date: bool = False
    tzid: Optional[str] = None


@dataclass
class RawSourceEvent:
    """Raw event from the ICS parser."""
    uid: str
    summary: str
    location: str
    description: str
    start: RawTimestamp
    end: RawTimestamp


@dataclass
class TimeSpec:
    """All-day date or absolute instant with an optional time zone name."""
    date: Optional[str] = None
    date_time: Optional[str] = None
    time_zone: Optional[str] = None

    @property
    def is_all_day(self) -> bool:
        return self.date is not None

    def to_resource(self) -> Dict[str, str]:
        if self.date is not None:
            return {'date': self.date}
        resource = {'dateTime': self.date_time}
        if self.time_zone:
            resource['timeZone'] = self.time_zone
        return resource

    @classmethod
    def from_resource(cls, resource: Optional[Dict[str, Any]]) -> 'TimeSpec':
        resource = resource or {}
        if 'date' in resource:
            return cls(date=resource['date'])
        return cls(
            date_time=resource.get('dateTime'),
            time_zone=resource.get('timeZone')
        )


@dataclass
class CanonicalEvent:
    """Normalized event, recomputed from the feed on every run."""
    id: str
    summary: str
    location: str
    description: str
    start: TimeSpec
    end: TimeSpec

    def to_resource(self) -> Dict[str, Any]:
        """Render the full canonical field set as a destination resource."""
        return {
            'id': self.id,
            'summary': self.summary,
            'location': self.location,
            'description': self.description,
            'start': self.start.to_resource(),
            'end': self.end.to_resource()
        }


@dataclass
class DestinationEvent:
    """Existing event owned by a destination calendar."""
    event_id: str
    resource: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_resource(cls, resource: Dict[str, Any]) -> 'DestinationEvent':
        return cls(event_id=resource['id'], resource=dict(resource))


@dataclass
class CreateOperation:
    """Insert a canonical event into the destination."""
    event: CanonicalEvent


@dataclass
class UpdateOperation:
    """Replace a destination event with the merged resource."""
    event_id: str
    resource: Dict[str, Any]


Operation = Union[CreateOperation, UpdateOperation]


@dataclass
class Destination:
    """Configured destination calendar and its source feed."""
    calendar_id: str
    uri: str
    transform: Optional[str] = None


@dataclass
class SyncResult:
    """Result of reconciling one destination."""
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0
    transform_failed: bool = False
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            'events_created': self.created,
            'events_updated': self.updated,
            'events_unchanged': self.unchanged,
            'events_skipped': self.skipped,
            'transform_failed': self.transform_failed,
            'errors': self.errors
        }


@dataclass
class RunResult:
    """Per-destination results of one run, in declaration order."""
    results: List[Tuple[str, SyncResult]] = field(default_factory=list)

    @property
    def succeeded(self) -> List[str]:
        return [calendar_id for calendar_id, result in self.results if result.ok]

    @property
    def failed(self) -> List[str]:
        return [calendar_id for calendar_id, result in self.results if not result.ok]
