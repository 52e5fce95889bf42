"""
pglog exceptions

Operational failures on the write path never raise; they degrade the
spooler instead. Everything here is for configuration and the scan path.
"""

from pathlib import Path


class PglogError(Exception):
    """Base class for pglog errors"""

    pass


class ConfigError(PglogError):
    """Configuration validation error"""

    pass


class MalformedRecordError(PglogError):
    """A spooled record could not be decoded"""

    pass


class ScanError(PglogError):
    """
    Fatal error while scanning segment files.

    Attributes:
        path: Segment being read when the error happened
        line_number: Physical line of the failing record (None if unknown)
    """

    def __init__(self, message: str, path: Path | None = None, line_number: int | None = None):
        self.path = path
        self.line_number = line_number
        location = ""
        if path is not None:
            location = f" ({path}"
            if line_number is not None:
                location += f", line {line_number}"
            location += ")"
        super().__init__(f"{message}{location}")
