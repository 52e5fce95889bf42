"""Write path: format events and append them to rotating segment files."""

from pglog.services.spool.formatter import EventFormatter
from pglog.services.spool.handler import SpoolLogHandler, severity_for_level
from pglog.services.spool.service import (
    EventSpooler,
    get_spooler,
    get_spooler_sinks,
    init_spooling,
    shutdown_spooling,
)
from pglog.services.spool.state import SpoolerState, WriterState
from pglog.services.spool.writer import SpoolSegment, SpoolWriter, WriteResult

__all__ = [
    "EventFormatter",
    "EventSpooler",
    "SpoolLogHandler",
    "SpoolSegment",
    "SpoolWriter",
    "SpoolerState",
    "WriteResult",
    "WriterState",
    "get_spooler",
    "get_spooler_sinks",
    "init_spooling",
    "severity_for_level",
    "shutdown_spooling",
]
