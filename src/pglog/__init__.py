"""
pglog - spool structured diagnostic events into rotating segment files and
scan them back as a relation.

Write path: pglog.services.spool
Read path:  pglog.services.scan
"""

__version__ = "0.1.0"

from pglog.errors import ConfigError, MalformedRecordError, PglogError, ScanError
from pglog.models import LogEvent, ProcessContext, Severity, SpoolSettings

__all__ = [
    "ConfigError",
    "LogEvent",
    "MalformedRecordError",
    "PglogError",
    "ProcessContext",
    "ScanError",
    "Severity",
    "SpoolSettings",
    "__version__",
]
