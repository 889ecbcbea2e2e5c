"""Unit tests for Debouncer."""
import asyncio

import pytest

from mapsync.debounce import Debouncer


class TestDebouncer:
    """Test cases for Debouncer class."""

    def test_runs_after_delay(self, fake_loop):
        calls = []
        debouncer = Debouncer(0.5, scheduler=fake_loop)

        debouncer.schedule(calls.append, 'a')
        fake_loop.advance(0.4)
        assert calls == []
        assert debouncer.pending

        fake_loop.advance(0.2)
        assert calls == ['a']
        assert not debouncer.pending

    def test_rescheduling_replaces_pending_call(self, fake_loop):
        calls = []
        debouncer = Debouncer(0.5, scheduler=fake_loop)

        debouncer.schedule(calls.append, 'first')
        fake_loop.advance(0.3)
        debouncer.schedule(calls.append, 'second')
        fake_loop.advance(0.3)

        assert calls == []
        assert len(fake_loop.pending) == 1

        fake_loop.advance(0.25)
        assert calls == ['second']

    def test_cancel(self, fake_loop):
        calls = []
        debouncer = Debouncer(0.5, scheduler=fake_loop)
        debouncer.schedule(calls.append, 'x')

        assert debouncer.cancel() is True
        assert debouncer.cancel() is False
        fake_loop.advance(1.0)
        assert calls == []

    def test_without_scheduler_or_event_loop_raises(self):
        calls = []
        debouncer = Debouncer(0.5)

        with pytest.raises(RuntimeError):
            debouncer.schedule(calls.append, 'never')

        assert calls == []
        assert not debouncer.pending

    def test_zero_delay_runs_immediately(self, fake_loop):
        calls = []
        debouncer = Debouncer(0, scheduler=fake_loop)

        debouncer.schedule(calls.append, 'now')

        assert calls == ['now']
        assert fake_loop.pending == []
        assert not debouncer.pending

    def test_uses_running_asyncio_loop(self):
        calls = []

        async def scenario():
            debouncer = Debouncer(0.01)
            debouncer.schedule(calls.append, 1)
            debouncer.schedule(calls.append, 2)
            assert debouncer.pending
            await asyncio.sleep(0.05)
            return debouncer.pending

        assert asyncio.run(scenario()) is False
        assert calls == [2]
