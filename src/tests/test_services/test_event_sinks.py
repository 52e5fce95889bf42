"""
Tests for EventSinks
"""

import logging

from pglog.models import Severity
from pglog.services.event_sinks import EventSinks


class TestEventSinksRegistration:
    """Tests for adding and removing sinks"""

    def test_add_sink(self):
        """Test a registered sink is listed"""
        sinks = EventSinks()

        def sink(event, context):
            pass

        sinks.add(sink)
        assert sink in sinks
        assert len(sinks) == 1

    def test_duplicate_add_ignored(self):
        """Test adding the same sink twice keeps one entry"""
        sinks = EventSinks()

        def sink(event, context):
            pass

        sinks.add(sink)
        sinks.add(sink)
        assert len(sinks) == 1

    def test_remove_sink(self):
        """Test removal reports whether the sink was registered"""
        sinks = EventSinks()

        def sink(event, context):
            pass

        sinks.add(sink)
        assert sinks.remove(sink) is True
        assert sinks.remove(sink) is False
        assert len(sinks) == 0

    def test_clear(self):
        """Test clear removes everything"""
        sinks = EventSinks()
        sinks.add(lambda e, c: None)
        sinks.add(lambda e, c: None)
        sinks.clear()
        assert sinks.sinks == []


class TestEventSinksDispatch:
    """Tests for delivery order and isolation"""

    def test_dispatch_in_order(self, make_event, context):
        """Test sinks receive the event in registration order"""
        sinks = EventSinks()
        calls = []
        sinks.add(lambda e, c: calls.append(("first", e.message)))
        sinks.add(lambda e, c: calls.append(("second", e.message)))

        sinks.dispatch(make_event("hello"), context)

        assert calls == [("first", "hello"), ("second", "hello")]

    def test_failing_sink_does_not_block_later_sinks(self, make_event, context, caplog):
        """Test an exception in one sink is logged and the next sink still runs"""
        sinks = EventSinks()
        received = []

        def broken(event, context):
            raise RuntimeError("sink exploded")

        sinks.add(broken)
        sinks.add(lambda e, c: received.append(e.severity))

        with caplog.at_level(logging.ERROR, logger="pglog.services.event_sinks"):
            sinks.dispatch(make_event(severity=Severity.ERROR), context)

        assert received == [Severity.ERROR]
        assert "sink exploded" in caplog.text

    def test_stats(self, make_event, context):
        """Test dispatch counters"""
        sinks = EventSinks()
        sinks.add(lambda e, c: None)
        sinks.add(lambda e, c: 1 / 0)

        sinks.dispatch(make_event(), context)
        sinks.dispatch(make_event(), context)

        stats = sinks.get_stats()
        assert stats["sink_count"] == 2
        assert stats["events_dispatched"] == 2
        assert stats["deliveries"] == 2
        assert stats["errors"] == 2

    def test_dispatch_with_no_sinks(self, make_event, context):
        """Test dispatching to an empty list is a no-op"""
        sinks = EventSinks()
        sinks.dispatch(make_event(), context)
        assert sinks.get_stats()["events_dispatched"] == 1
