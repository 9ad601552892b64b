"""Per-destination transforms applied to canonical events before syncing."""
import logging
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from bs4 import BeautifulSoup

from processor.errors import ConfigurationError, TransformError
from processor.models import CanonicalEvent

logger = logging.getLogger(__name__)

Transform = Callable[[List[CanonicalEvent]], Sequence[CanonicalEvent]]


def first_line_description(events: List[CanonicalEvent]) -> List[CanonicalEvent]:
    """Keep only the first line of each description."""
    return [
        replace(event, description=event.description.split('\n')[0].strip())
        for event in events
    ]


def strip_html_description(events: List[CanonicalEvent]) -> List[CanonicalEvent]:
    """Convert HTML descriptions to plain text."""
    result = []
    for event in events:
        soup = BeautifulSoup(event.description, 'html.parser')
        for br in soup.find_all('br'):
            br.replace_with('\n')
        result.append(replace(event, description=soup.get_text().strip()))
    return result


TRANSFORMS: Dict[str, Transform] = {
    'first_line_description': first_line_description,
    'strip_html_description': strip_html_description,
}


class OverrideRegistry:
    """Mapping from destination calendar id to its transform."""

    def __init__(self, overrides: Optional[Mapping[str, Transform]] = None):
        self._overrides: Dict[str, Transform] = dict(overrides or {})

    @classmethod
    def from_config(cls, transform_names: Mapping[str, str]) -> 'OverrideRegistry':
        """
        Build a registry from destination ids mapped to transform names.

        Args:
            transform_names: Destination calendar id to a name in TRANSFORMS

        Returns:
            OverrideRegistry instance

        Raises:
            ConfigurationError: If a transform name is unknown
        """
        return cls(cls._resolve_names(transform_names))

    def reload(self, transform_names: Mapping[str, str]) -> None:
        """Replace every registered transform at once."""
        self._overrides = self._resolve_names(transform_names)
        logger.info(f"Reloaded {len(self._overrides)} transform overrides")

    def register(self, destination_id: str, transform: Transform) -> None:
        self._overrides[destination_id] = transform

    def resolve(self, destination_id: str) -> Optional[Transform]:
        return self._overrides.get(destination_id)

    @staticmethod
    def _resolve_names(transform_names: Mapping[str, str]) -> Dict[str, Transform]:
        overrides = {}
        for destination_id, name in transform_names.items():
            if name not in TRANSFORMS:
                raise ConfigurationError(
                    f"Unknown transform '{name}' for destination {destination_id}"
                )
            overrides[destination_id] = TRANSFORMS[name]
        return overrides


@dataclass
class TransformOutcome:
    """Events to reconcile and whether the override fell back."""
    events: List[CanonicalEvent]
    failed: bool = False


def apply_override(
    override: Optional[Transform],
    events: Sequence[CanonicalEvent],
    destination_id: Optional[str] = None
) -> TransformOutcome:
    """
    Apply an override to the canonical events of one destination.

    A failing override never aborts the sync: the error is logged and
    the untransformed events are returned instead.

    Args:
        override: Transform for the destination, or None
        events: Canonical events in source order
        destination_id: Destination calendar id, used for logging

    Returns:
        TransformOutcome with the events to reconcile
    """
    events = list(events)
    if override is None:
        return TransformOutcome(events=events)

    try:
        transformed = override(list(events))
        if not isinstance(transformed, (list, tuple)):
            raise TransformError(
                f"Override returned {type(transformed).__name__}, expected a list"
            )
        transformed = list(transformed)
        for item in transformed:
            if not isinstance(item, CanonicalEvent):
                raise TransformError(
                    f"Override returned {type(item).__name__} item, "
                    f"expected CanonicalEvent"
                )
    except Exception as e:
        logger.error(
            f"Override for {destination_id} failed, using untransformed events: {e}",
            extra={'destination_id': destination_id, 'error_type': type(e).__name__},
            exc_info=True
        )
        return TransformOutcome(events=events, failed=True)

    logger.info(f"Applied override for {destination_id}: {len(transformed)} events")
    return TransformOutcome(events=transformed)
