"""Reconciliation of canonical events against a destination calendar."""
import logging
from typing import Callable, Dict, List, Sequence

from processor.equality import events_equal
from processor.models import (
    CanonicalEvent,
    CreateOperation,
    DestinationEvent,
    Operation,
    UpdateOperation,
)

logger = logging.getLogger(__name__)


def reconcile(
    destination_id: str,
    existing: Sequence[DestinationEvent],
    canonical: Sequence[CanonicalEvent],
    is_equal: Callable[[CanonicalEvent, DestinationEvent], bool] = events_equal
) -> List[Operation]:
    """
    Plan the creates and updates that bring a destination in line with
    the canonical events.

    Existing events absent from the canonical set are left alone; nothing
    is ever deleted. When several existing events share an id, the first
    one is used.

    Args:
        destination_id: Destination calendar id, used for logging
        existing: Events currently in the destination
        canonical: Canonical events in source order
        is_equal: Equality check between a canonical and existing event

    Returns:
        Operations to execute, in canonical event order
    """
    existing_by_id: Dict[str, DestinationEvent] = {}
    for event in existing:
        existing_by_id.setdefault(event.event_id, event)

    operations: List[Operation] = []
    unchanged = 0

    for event in canonical:
        match = existing_by_id.get(event.id)

        if match is None:
            operations.append(CreateOperation(event=event))
        elif is_equal(event, match):
            unchanged += 1
        else:
            merged = dict(match.resource)
            merged.update(event.to_resource())
            operations.append(
                UpdateOperation(event_id=match.event_id, resource=merged)
            )

    creates = sum(1 for op in operations if isinstance(op, CreateOperation))
    logger.info(
        f"Sync plan for {destination_id}: {creates} to create, "
        f"{len(operations) - creates} to update, {unchanged} unchanged"
    )
    return operations
