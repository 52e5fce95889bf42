"""
Severity levels for spooled events

Numeric values follow the server's message levels so that ordering
comparisons work the same way. LOG sorts between ERROR and FATAL for
server-log purposes, which is what is_log_level_output() encodes.
"""

from enum import IntEnum


class Severity(IntEnum):
    """Message severity, lowest to highest"""

    DEBUG5 = 10
    DEBUG4 = 11
    DEBUG3 = 12
    DEBUG2 = 13
    DEBUG1 = 14
    LOG = 15
    COMMERROR = 16  # Client communication problem, never sent to the client
    INFO = 17
    NOTICE = 18
    WARNING = 19
    ERROR = 20
    FATAL = 21
    PANIC = 22


class ErrorVerbosity(IntEnum):
    """How much detail goes into each record"""

    TERSE = 0
    DEFAULT = 1
    VERBOSE = 2


# Option names accepted for severity settings ("debug" is an alias for debug2)
MESSAGE_LEVEL_OPTIONS: dict[str, Severity] = {
    "debug": Severity.DEBUG2,
    "debug5": Severity.DEBUG5,
    "debug4": Severity.DEBUG4,
    "debug3": Severity.DEBUG3,
    "debug2": Severity.DEBUG2,
    "debug1": Severity.DEBUG1,
    "info": Severity.INFO,
    "notice": Severity.NOTICE,
    "warning": Severity.WARNING,
    "error": Severity.ERROR,
    "log": Severity.LOG,
    "fatal": Severity.FATAL,
    "panic": Severity.PANIC,
}

VERBOSITY_OPTIONS: dict[str, ErrorVerbosity] = {
    "terse": ErrorVerbosity.TERSE,
    "default": ErrorVerbosity.DEFAULT,
    "verbose": ErrorVerbosity.VERBOSE,
}

UNKNOWN_SEVERITY_NAME = "???"

# Every name severity_name() can produce, in the order of the record column type
SEVERITY_NAMES = (
    "DEBUG",
    "INFO",
    "NOTICE",
    "WARNING",
    "ERROR",
    "LOG",
    "FATAL",
    "PANIC",
    UNKNOWN_SEVERITY_NAME,
)


def severity_name(level: int) -> str:
    """Record name for a severity level"""
    if Severity.DEBUG5 <= level <= Severity.DEBUG1:
        return "DEBUG"
    if level in (Severity.LOG, Severity.COMMERROR):
        return "LOG"
    try:
        member = Severity(level)
    except ValueError:
        return UNKNOWN_SEVERITY_NAME
    return member.name


def parse_severity(value: str | int | Severity) -> Severity:
    """
    Resolve a severity option value.

    Accepts Severity members, their integer values, or option names
    (case-insensitive).

    Raises:
        ValueError: If the value names no known level
    """
    if isinstance(value, Severity):
        return value
    if isinstance(value, int):
        return Severity(value)
    key = str(value).strip().lower()
    if key not in MESSAGE_LEVEL_OPTIONS:
        allowed = ", ".join(MESSAGE_LEVEL_OPTIONS)
        raise ValueError(f"invalid severity {value!r}; expected one of: {allowed}")
    return MESSAGE_LEVEL_OPTIONS[key]


def parse_verbosity(value: str | int | ErrorVerbosity) -> ErrorVerbosity:
    """Resolve an error verbosity option value"""
    if isinstance(value, ErrorVerbosity):
        return value
    if isinstance(value, int):
        return ErrorVerbosity(value)
    key = str(value).strip().lower()
    if key not in VERBOSITY_OPTIONS:
        allowed = ", ".join(VERBOSITY_OPTIONS)
        raise ValueError(f"invalid error verbosity {value!r}; expected one of: {allowed}")
    return VERBOSITY_OPTIONS[key]


def is_log_level_output(level: int, min_level: int) -> bool:
    """
    Is level logically >= min_level for server-log output?

    LOG (and COMMERROR) sort between ERROR and FATAL here, unlike the plain
    numeric ordering used for client messages.
    """
    if level in (Severity.LOG, Severity.COMMERROR):
        return min_level == Severity.LOG or min_level <= Severity.ERROR
    if min_level == Severity.LOG:
        return level >= Severity.FATAL
    return level >= min_level
