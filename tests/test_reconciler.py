"""Unit tests for the reconciler."""
import pytest

from processor.models import (
    CanonicalEvent,
    CreateOperation,
    DestinationEvent,
    TimeSpec,
    UpdateOperation,
)
from processor.reconciler import reconcile


def make_event(event_id='abc', summary='Standup', **overrides):
    fields = {
        'id': event_id,
        'summary': summary,
        'location': '',
        'description': '',
        'start': TimeSpec(date_time='2024-01-01T09:00:00Z'),
        'end': TimeSpec(date_time='2024-01-01T09:15:00Z'),
    }
    fields.update(overrides)
    return CanonicalEvent(**fields)


def as_destination(event, **extra):
    resource = event.to_resource()
    resource.update(extra)
    return DestinationEvent(event_id=event.id, resource=resource)


def apply_operations(existing, operations):
    """Simulate a destination applying the planned operations."""
    events = {event.event_id: event for event in existing}
    for operation in operations:
        if isinstance(operation, CreateOperation):
            events[operation.event.id] = as_destination(operation.event)
        else:
            events[operation.event_id] = DestinationEvent(
                event_id=operation.event_id, resource=dict(operation.resource)
            )
    return list(events.values())


class TestReconcile:
    """Test cases for reconcile."""

    def test_create_when_missing(self):
        """Test that a new event yields exactly one Create."""
        event = make_event()

        operations = reconcile('cal', [], [event])

        assert operations == [CreateOperation(event=event)]
        assert operations[0].event.to_resource() == {
            'id': 'abc',
            'summary': 'Standup',
            'location': '',
            'description': '',
            'start': {'dateTime': '2024-01-01T09:00:00Z'},
            'end': {'dateTime': '2024-01-01T09:15:00Z'}
        }

    def test_no_op_when_equal(self):
        """Test that an in-sync event yields no operations."""
        event = make_event()

        assert reconcile('cal', [as_destination(event)], [event]) == []

    def test_update_merges_destination_fields(self):
        """Test that an update keeps destination-only fields."""
        existing = as_destination(make_event(summary='Old standup'), color='blue')
        event = make_event(summary='Standup')

        operations = reconcile('cal', [existing], [event])

        assert len(operations) == 1
        operation = operations[0]
        assert isinstance(operation, UpdateOperation)
        assert operation.event_id == 'abc'
        assert operation.resource['color'] == 'blue'
        assert operation.resource['summary'] == 'Standup'

    def test_update_does_not_mutate_existing(self):
        """Test that the existing resource is left untouched."""
        existing = as_destination(make_event(summary='Old'))

        reconcile('cal', [existing], [make_event(summary='New')])

        assert existing.resource['summary'] == 'Old'

    def test_first_duplicate_is_used(self):
        """Test that the first existing event with the id is matched."""
        first = as_destination(make_event(summary='Old'), etag='first')
        second = as_destination(make_event(), etag='second')

        operations = reconcile('cal', [first, second], [make_event()])

        assert len(operations) == 1
        assert operations[0].resource['etag'] == 'first'

    def test_no_delete(self):
        """Test that events absent from the feed are never touched."""
        stale = as_destination(make_event(event_id='old'))
        event = make_event(event_id='new')

        operations = reconcile('cal', [stale], [event])

        assert operations == [CreateOperation(event=event)]
        assert all(
            not isinstance(op, UpdateOperation) or op.event_id != 'old'
            for op in operations
        )

    def test_operations_in_canonical_order(self):
        """Test that operations follow the canonical event order."""
        events = [make_event(event_id=i) for i in ('c', 'a', 'b')]
        existing = [as_destination(make_event(event_id='a', summary='Old'))]

        operations = reconcile('cal', existing, events)

        assert [
            op.event.id if isinstance(op, CreateOperation) else op.event_id
            for op in operations
        ] == ['c', 'a', 'b']

    def test_custom_equality(self):
        """Test that the equality check can be injected."""
        event = make_event()
        existing = as_destination(event)

        operations = reconcile('cal', [existing], [event], is_equal=lambda a, b: False)

        assert len(operations) == 1
        assert isinstance(operations[0], UpdateOperation)

    @pytest.mark.parametrize('existing_events', [
        [],
        [make_event(summary='Old')],
        [make_event(start=TimeSpec(date='2024-01-01'), end=TimeSpec(date='2024-01-02'))],
        [make_event(event_id='unrelated'), make_event(location='Elsewhere')],
    ])
    def test_convergence(self, existing_events):
        """Test that reconciling after applying the operations is a no-op."""
        existing = [as_destination(e, colorId='5') for e in existing_events]
        canonical = [
            make_event(),
            make_event(event_id='allday', start=TimeSpec(date='2024-02-01'),
                       end=TimeSpec(date='2024-02-02')),
            make_event(event_id='zoned', start=TimeSpec(
                date_time='2024-03-01T09:00:00Z', time_zone='Europe/Paris')),
        ]

        operations = reconcile('cal', existing, canonical)
        converged = apply_operations(existing, operations)

        assert reconcile('cal', converged, canonical) == []
        assert {e.event_id for e in existing} <= {e.event_id for e in converged}
