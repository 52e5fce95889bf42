"""
Event Spooler Service - the write path as an event sink

Receives events from EventSinks, filters by severity, formats them and
appends them to the current segment. Rotation requested by configuration
changes is applied lazily on the next event.

A logging failure never reaches the code that reported the event: the
writer disables itself and the event still goes to every other sink.

One spooler per process:
    spooler = init_spooling(settings, sinks)
    ...
    shutdown_spooling()
"""

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from pglog.models.log_event import LogEvent, ProcessContext
from pglog.models.settings import SpoolSettings
from pglog.models.severity import is_log_level_output
from pglog.services.event_sinks import EventSinks
from pglog.services.spool.formatter import EventFormatter
from pglog.services.spool.writer import SpoolWriter, WriteResult

logger = logging.getLogger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


class EventSpooler:
    """
    Spools events into rotating segment files.

    Usage:
        spooler = EventSpooler(SpoolSettings(directory="/var/spool/pglog"))
        spooler.handle(event, ProcessContext.for_current_process())
        spooler.configure(directory="/srv/pglog")   # rotates on next event
        spooler.close()
    """

    def __init__(
        self,
        settings: SpoolSettings | None = None,
        clock: Callable[[], datetime] = _local_now,
    ):
        """
        Args:
            settings: Validated spool settings (defaults if None)
            clock: Time source for record timestamps and segment names
        """
        self._settings = settings or SpoolSettings()
        self._writer = SpoolWriter(file_mode=self._settings.file_mode, clock=clock)
        self._formatter = EventFormatter(
            error_verbosity=self._settings.error_verbosity,
            min_error_statement=self._settings.min_error_statement,
            clock=clock,
        )
        self._records_written = 0

        logger.info(
            f"EventSpooler initialized: directory={self._settings.directory}, "
            f"min_messages={self._settings.min_messages.name}"
        )

    @property
    def settings(self) -> SpoolSettings:
        return self._settings

    @property
    def writer(self) -> SpoolWriter:
        return self._writer

    @property
    def is_enabled(self) -> bool:
        return self._writer.is_enabled

    @property
    def records_written(self) -> int:
        return self._records_written

    @property
    def current_path(self) -> Path | None:
        return self._writer.current_path

    def configure(self, **changes) -> SpoolSettings:
        """
        Apply option changes.

        All values are validated together before any takes effect. A new
        directory requests rotation, which happens on the next event.

        Raises:
            ConfigError: If any value is rejected
        """
        new_settings = self._settings.merged(**changes)
        directory_changed = new_settings.directory != self._settings.directory

        self._settings = new_settings
        self._writer.file_mode = new_settings.file_mode
        self._formatter.error_verbosity = new_settings.error_verbosity
        self._formatter.min_error_statement = new_settings.min_error_statement

        if directory_changed:
            self._writer.request_rotation()
            logger.info(f"Spool directory changed to {new_settings.directory}, rotation pending")
        return new_settings

    def request_rotation(self) -> None:
        """Start a new segment on the next event"""
        self._writer.request_rotation()

    def handle(self, event: LogEvent, context: ProcessContext) -> WriteResult | None:
        """
        Spool one event.

        Returns:
            The write outcome, or None if the event was not written
            (spooling off, disabled with no rotation pending, severity
            below min_messages, or the new segment could not be opened)
        """
        directory = self._settings.directory
        if not directory:
            # Turning spooling off must not leave a segment open
            self._writer.close()
            return None

        # A disabled writer stays quiet until something requests rotation
        if not self._writer.is_enabled and not self._writer.rotation_pending:
            self._writer.close()
            return None

        if not is_log_level_output(event.severity, self._settings.min_messages):
            return None

        if self._writer.segment is None or self._writer.rotation_pending:
            if not self._writer.rotate(directory):
                return None

        line = self._formatter.format(event, context, self._writer.state)
        result = self._writer.write(line)
        if result.ok:
            self._records_written += 1
        return result

    def __call__(self, event: LogEvent, context: ProcessContext) -> WriteResult | None:
        return self.handle(event, context)

    def close(self) -> None:
        """Release the open segment. Safe to call multiple times."""
        self._writer.close()
        logger.debug(f"EventSpooler closed: {self._records_written} records written")


# Global spooler instance
_spooler: EventSpooler | None = None
_spooler_sinks: EventSinks | None = None


def init_spooling(settings: SpoolSettings | None = None, sinks: EventSinks | None = None) -> EventSpooler:
    """
    Create the process-wide spooler and register it as a sink.

    Sinks already registered keep receiving every event; the spooler is
    added after them.

    Args:
        settings: Spool settings (defaults if None)
        sinks: Sink list to join (a new one if None)

    Raises:
        RuntimeError: If spooling is already initialized
    """
    global _spooler, _spooler_sinks

    if _spooler is not None:
        raise RuntimeError("Spooling already initialized; call shutdown_spooling() first")

    _spooler = EventSpooler(settings)
    _spooler_sinks = sinks if sinks is not None else EventSinks()
    _spooler_sinks.add(_spooler.handle)
    logger.info("Event spooling started")
    return _spooler


def get_spooler() -> EventSpooler | None:
    """The active process-wide spooler, if any"""
    return _spooler


def get_spooler_sinks() -> EventSinks | None:
    """The sink list the active spooler is registered on"""
    return _spooler_sinks


def shutdown_spooling() -> None:
    """Unregister and close the process-wide spooler. Safe to call multiple times."""
    global _spooler, _spooler_sinks

    if _spooler is None:
        return
    if _spooler_sinks is not None:
        _spooler_sinks.remove(_spooler.handle)
    _spooler.close()
    _spooler = None
    _spooler_sinks = None
    logger.info("Event spooling stopped")
