"""
Spool Settings Model

Validated option values for the event spooler. Every value is checked
(and the directory canonicalised) before it can take effect, so a rejected
assignment leaves the previous settings untouched.
"""

import os
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from pglog.errors import ConfigError
from pglog.models.severity import ErrorVerbosity, Severity, parse_severity, parse_verbosity


class SpoolSettings(BaseModel):
    """
    Spooler options.

    Attributes:
        directory: Where segment files go (None disables spooling)
        min_messages: Lowest severity that gets spooled
        min_error_statement: Lowest severity whose statement text is recorded
        error_verbosity: Controls the location cell
        file_mode: Permission bits for new segment files
    """

    directory: Optional[str] = Field("pglog_spool", description="Spool directory")
    min_messages: Severity = Field(Severity.WARNING, description="Minimum severity to spool")
    min_error_statement: Severity = Field(
        Severity.ERROR, description="Minimum severity for statement logging"
    )
    error_verbosity: ErrorVerbosity = Field(ErrorVerbosity.DEFAULT, description="Record verbosity")
    file_mode: int = Field(0o600, description="Segment file permission bits")

    class Config:
        validate_assignment = True

    @field_validator("directory", mode="before")
    @classmethod
    def canonicalize_directory(cls, v):
        if v is None:
            return None
        if isinstance(v, os.PathLike):
            v = os.fspath(v)
        if not isinstance(v, str):
            raise ValueError(f"directory must be a string, got {type(v).__name__}")
        if "\x00" in v:
            raise ValueError("directory must not contain NUL bytes")
        v = v.strip()
        if not v:
            return None
        return os.path.normpath(v)

    @field_validator("min_messages", "min_error_statement", mode="before")
    @classmethod
    def coerce_severity(cls, v):
        return parse_severity(v)

    @field_validator("error_verbosity", mode="before")
    @classmethod
    def coerce_verbosity(cls, v):
        return parse_verbosity(v)

    @field_validator("file_mode", mode="before")
    @classmethod
    def coerce_file_mode(cls, v):
        if isinstance(v, str):
            v = int(v, 8)
        if not isinstance(v, int) or not 0 <= v <= 0o777:
            raise ValueError(f"file_mode must be between 0 and 0o777, got {v!r}")
        return v

    @property
    def spooling_configured(self) -> bool:
        """True if a spool directory is set"""
        return self.directory is not None

    def merged(self, **changes) -> "SpoolSettings":
        """
        Return a validated copy with changes applied.

        Raises:
            ConfigError: If any changed value is rejected
        """
        unknown = set(changes) - set(type(self).model_fields)
        if unknown:
            raise ConfigError(f"unknown spool option(s): {', '.join(sorted(unknown))}")
        return build_settings(**{**self.model_dump(), **changes})


def build_settings(**values) -> SpoolSettings:
    """
    Construct SpoolSettings, reporting validation failures as ConfigError.

    Raises:
        ConfigError: If any value is rejected
    """
    try:
        return SpoolSettings(**values)
    except ValidationError as e:
        raise ConfigError(f"invalid spool settings: {e}") from e
