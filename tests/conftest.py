"""Shared fixtures."""
from datetime import datetime, timezone

import pytest

from calendar_events.models import Event, ResolvedLocation, UnresolvedLocation


class FakeHandle:
    """Timer handle returned by FakeLoop.call_later."""

    def __init__(self, loop, when, callback, args):
        self.loop = loop
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeLoop:
    """Manually advanced stand-in for an asyncio loop's call_later."""

    def __init__(self):
        self.now = 0.0
        self.handles = []

    def call_later(self, delay, callback, *args):
        handle = FakeHandle(self, self.now + delay, callback, args)
        self.handles.append(handle)
        return handle

    @property
    def pending(self):
        return [h for h in self.handles if not h.cancelled]

    def advance(self, seconds):
        self.now += seconds
        due = [h for h in self.pending if h.when <= self.now]
        for handle in sorted(due, key=lambda h: h.when):
            self.handles.remove(handle)
            if not handle.cancelled:
                handle.callback(*handle.args)


@pytest.fixture
def fake_loop():
    return FakeLoop()


@pytest.fixture
def make_event():
    """Factory for events; lat/lng None gives an unresolved location."""
    counter = {'n': 0}

    def _make_event(
        lat=None,
        lng=None,
        name=None,
        event_id=None,
        start=datetime(2025, 6, 1, 18, 0, tzinfo=timezone.utc),
        end=None,
        location='',
        description='',
        formatted_address='',
        types=()
    ):
        counter['n'] += 1
        if lat is not None and lng is not None:
            resolved = ResolvedLocation(
                lat=lat,
                lng=lng,
                formatted_address=formatted_address,
                types=tuple(types),
                original_location=location
            )
        else:
            resolved = UnresolvedLocation(original_location=location)
        return Event(
            id=event_id or f"evt-{counter['n']}",
            name=name or f"Event {counter['n']}",
            start=start,
            end=end or start,
            location=location,
            description=description,
            resolved_location=resolved
        )

    return _make_event
