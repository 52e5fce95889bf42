"""
Data models for pglog: events, ambient process context, severities, settings.
"""

from .log_event import LogEvent, ProcessContext
from .settings import SpoolSettings, build_settings
from .severity import (
    MESSAGE_LEVEL_OPTIONS,
    SEVERITY_NAMES,
    ErrorVerbosity,
    Severity,
    is_log_level_output,
    parse_severity,
    parse_verbosity,
    severity_name,
)

__all__ = [
    "ErrorVerbosity",
    "LogEvent",
    "MESSAGE_LEVEL_OPTIONS",
    "ProcessContext",
    "SEVERITY_NAMES",
    "Severity",
    "SpoolSettings",
    "build_settings",
    "is_log_level_output",
    "parse_severity",
    "parse_verbosity",
    "severity_name",
]
