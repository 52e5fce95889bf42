"""
Spool Log Handler - feed Python logging records into the event sinks

Lets an application spool its own log output:

    sinks = EventSinks()
    init_spooling(settings, sinks)
    logging.getLogger().addHandler(SpoolLogHandler(sinks, application_name="api"))

Records emitted while the handler is already emitting (for example the
spooler's own warning about a failed write) are dropped instead of
recursing.
"""

import logging
import os
import traceback
from datetime import datetime

from pglog.models.log_event import LogEvent, ProcessContext
from pglog.models.severity import Severity
from pglog.services.event_sinks import EventSinks

# Extra attributes copied from a LogRecord onto the event when present
_EVENT_EXTRAS = ("detail", "detail_log", "hint", "query", "cursor_pos", "sql_state", "hide_stmt")


def severity_for_level(levelno: int) -> Severity:
    """Map a logging level number onto a severity"""
    if levelno >= logging.CRITICAL:
        return Severity.FATAL
    if levelno >= logging.ERROR:
        return Severity.ERROR
    if levelno >= logging.WARNING:
        return Severity.WARNING
    if levelno >= logging.INFO:
        return Severity.INFO
    return Severity.DEBUG1


class SpoolLogHandler(logging.Handler):
    """logging.Handler that dispatches every record as a LogEvent"""

    def __init__(
        self,
        sinks: EventSinks,
        application_name: str | None = None,
        level: int = logging.NOTSET,
    ):
        super().__init__(level)
        self._sinks = sinks
        self._application_name = application_name
        self._context: ProcessContext | None = None
        self._emitting = False

    def context(self) -> ProcessContext:
        """Ambient context for the current process, rebuilt after a fork"""
        if self._context is None or self._context.pid != os.getpid():
            self._context = ProcessContext.for_current_process(
                application_name=self._application_name
            )
        return self._context

    def to_event(self, record: logging.LogRecord) -> LogEvent:
        """Convert a LogRecord into a LogEvent"""
        values = {
            "severity": severity_for_level(record.levelno),
            "message": record.getMessage(),
            "funcname": record.funcName,
            "filename": record.filename,
            "lineno": record.lineno,
            "timestamp": datetime.fromtimestamp(record.created).astimezone(),
        }
        if record.exc_info:
            values["context"] = "".join(traceback.format_exception(*record.exc_info)).rstrip()
        for name in _EVENT_EXTRAS:
            if name in record.__dict__:
                values[name] = record.__dict__[name]
        return LogEvent(**values)

    def emit(self, record: logging.LogRecord) -> None:
        if self._emitting:
            return
        self._emitting = True
        try:
            self._sinks.dispatch(self.to_event(record), self.context())
        except Exception:
            self.handleError(record)
        finally:
            self._emitting = False
