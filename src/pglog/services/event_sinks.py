"""
Event Sinks - ordered, synchronous fan-out of log events

Every event is delivered to every registered sink, in registration order,
on the caller's thread. Sinks are independent: one failing sink is logged
and never keeps the event from the sinks after it.
"""

import logging
from collections.abc import Callable
from typing import Any

from pglog.models.log_event import LogEvent, ProcessContext

logger = logging.getLogger(__name__)

EventSink = Callable[[LogEvent, ProcessContext], Any]


class EventSinks:
    """
    Ordered list of event sinks.

    Usage:
        sinks = EventSinks()
        sinks.add(spooler.handle)
        sinks.add(lambda event, context: print(event.message))
        sinks.dispatch(event, context)
    """

    def __init__(self):
        self._sinks: list[EventSink] = []
        self._stats = {
            "events_dispatched": 0,
            "deliveries": 0,
            "errors": 0,
        }

    def __len__(self) -> int:
        return len(self._sinks)

    def __contains__(self, sink: EventSink) -> bool:
        return any(existing == sink for existing in self._sinks)

    @property
    def sinks(self) -> list[EventSink]:
        """Registered sinks, in delivery order"""
        return list(self._sinks)

    def add(self, sink: EventSink) -> None:
        """
        Register a sink at the end of the delivery order.

        Registering the same sink twice is a no-op.
        """
        if sink in self:
            logger.debug(f"Sink already registered, skipping duplicate: {sink!r}")
            return
        self._sinks.append(sink)
        logger.debug(f"Registered event sink {sink!r} ({len(self._sinks)} total)")

    def remove(self, sink: EventSink) -> bool:
        """
        Unregister a sink.

        Returns:
            True if the sink was registered
        """
        for i, existing in enumerate(self._sinks):
            if existing == sink:
                del self._sinks[i]
                logger.debug(f"Removed event sink {sink!r}")
                return True
        return False

    def dispatch(self, event: LogEvent, context: ProcessContext) -> None:
        """Deliver an event to every sink, in order"""
        self._stats["events_dispatched"] += 1
        for sink in list(self._sinks):
            try:
                sink(event, context)
                self._stats["deliveries"] += 1
            except Exception as e:
                self._stats["errors"] += 1
                logger.error(f"Error in event sink {sink!r}: {e}", exc_info=True)

    def get_stats(self) -> dict[str, Any]:
        """Dispatch counters plus the current sink count"""
        return {"sink_count": len(self._sinks), **self._stats}

    def clear(self) -> None:
        """Remove all sinks (for testing/cleanup)"""
        self._sinks.clear()
        logger.debug("All event sinks cleared")
