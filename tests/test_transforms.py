"""Unit tests for per-destination transforms."""
import logging

import pytest

from processor.errors import ConfigurationError
from processor.models import CanonicalEvent, TimeSpec
from processor.transforms import (
    OverrideRegistry,
    apply_override,
    first_line_description,
    strip_html_description,
)


def make_event(event_id='abc', description='Line one\nLine two'):
    return CanonicalEvent(
        id=event_id,
        summary='Lecture',
        location='Hall A',
        description=description,
        start=TimeSpec(date_time='2024-01-01T09:00:00Z'),
        end=TimeSpec(date_time='2024-01-01T10:00:00Z')
    )


class TestApplyOverride:
    """Test cases for apply_override."""

    def test_no_override_is_identity(self):
        """Test that events pass through unchanged without an override."""
        events = [make_event('a'), make_event('b')]

        outcome = apply_override(None, events)

        assert outcome.events == events
        assert not outcome.failed

    def test_override_result_is_used(self):
        """Test that the override receives the full sequence."""
        received = []

        def keep_first(events):
            received.extend(events)
            return events[:1]

        events = [make_event('a'), make_event('b')]
        outcome = apply_override(keep_first, events, 'cal')

        assert [e.id for e in received] == ['a', 'b']
        assert [e.id for e in outcome.events] == ['a']
        assert not outcome.failed

    def test_raising_override_falls_back(self, caplog):
        """Test that a throwing override yields the untransformed events."""
        def broken(events):
            raise RuntimeError('boom')

        events = [make_event('a')]
        with caplog.at_level(logging.ERROR, logger='processor.transforms'):
            outcome = apply_override(broken, events, 'cal')

        assert outcome.events == events
        assert outcome.failed
        assert any('boom' in record.message for record in caplog.records)

    def test_invalid_result_falls_back(self):
        """Test that a non-list or wrong item type is treated as a failure."""
        events = [make_event('a')]

        assert apply_override(lambda e: None, events).failed
        assert apply_override(lambda e: ['not an event'], events).failed
        assert apply_override(lambda e: None, events).events == events

    def test_override_cannot_mutate_input_list(self):
        """Test that the fallback list is not the one given to the override."""
        def clear_then_fail(events):
            events.clear()
            raise ValueError('bad')

        events = [make_event('a')]
        outcome = apply_override(clear_then_fail, events)

        assert [e.id for e in outcome.events] == ['a']


class TestOverrideRegistry:
    """Test cases for OverrideRegistry."""

    def test_resolve_missing_is_none(self):
        """Test that an unknown destination has no override."""
        assert OverrideRegistry().resolve('cal') is None

    def test_register_and_resolve(self):
        """Test explicit registration."""
        registry = OverrideRegistry()
        registry.register('cal', first_line_description)

        assert registry.resolve('cal') is first_line_description

    def test_from_config(self):
        """Test building a registry from transform names."""
        registry = OverrideRegistry.from_config({'cal': 'strip_html_description'})

        assert registry.resolve('cal') is strip_html_description

    def test_from_config_unknown_name(self):
        """Test that unknown transform names are rejected."""
        with pytest.raises(ConfigurationError):
            OverrideRegistry.from_config({'cal': 'does_not_exist'})

    def test_reload_replaces_entries(self):
        """Test that reload swaps the whole mapping."""
        registry = OverrideRegistry.from_config({'cal': 'first_line_description'})
        registry.reload({'other': 'strip_html_description'})

        assert registry.resolve('cal') is None
        assert registry.resolve('other') is strip_html_description


class TestBuiltinTransforms:
    """Test cases for the named transforms."""

    def test_first_line_description(self):
        """Test that only the first line is kept."""
        events = first_line_description([make_event(description='  Room 12  \nProf. Smith')])

        assert events[0].description == 'Room 12'
        assert events[0].summary == 'Lecture'

    def test_first_line_description_empty(self):
        """Test that empty descriptions stay empty."""
        assert first_line_description([make_event(description='')])[0].description == ''

    def test_strip_html_description(self):
        """Test that HTML markup is converted to text."""
        events = strip_html_description([
            make_event(description='<p>Join <b>here</b><br>Room 4</p>')
        ])

        assert events[0].description == 'Join here\nRoom 4'

    def test_transforms_do_not_mutate_input(self):
        """Test that the original events are left untouched."""
        event = make_event()
        first_line_description([event])

        assert event.description == 'Line one\nLine two'
