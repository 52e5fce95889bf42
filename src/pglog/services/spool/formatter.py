"""
Event Formatter - one event plus ambient context into one record line

Field order is LOG_COLUMNS. Text cells are double-quoted with embedded
quotes doubled, numeric cells are bare, and an absent value is an empty
cell so every record has the same number of cells.

Formatting never raises: an ambient value that cannot be rendered becomes
an empty cell.
"""

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Optional

from pglog.models.log_event import LogEvent, ProcessContext
from pglog.models.severity import (
    ErrorVerbosity,
    Severity,
    is_log_level_output,
    severity_name,
)
from pglog.services.spool.state import SpoolerState

logger = logging.getLogger(__name__)

SUCCESSFUL_COMPLETION = '00000'

_RENDER_ERRORS = (ValueError, OverflowError, OSError, TypeError)


def quote_text(value: Optional[str]) -> str:
    """Quote a text cell; None stays an empty cell"""
    if value is None:
        return ''
    return '"' + value.replace('"', '""') + '"'


def unpack_sql_state(code: int) -> str:
    """Unpack a six-bits-per-character SQLSTATE integer"""
    return ''.join(chr(((code >> (6 * i)) & 0x3F) + ord('0')) for i in range(5))


def normalize_sql_state(value: str | int | None) -> str:
    """Five upper-case alphanumerics; absent means successful completion"""
    if value is None:
        return SUCCESSFUL_COMPLETION
    if isinstance(value, int):
        value = unpack_sql_state(value)
    cleaned = ''.join(c for c in str(value).upper() if c.isascii() and c.isalnum())
    if not cleaned:
        return SUCCESSFUL_COMPLETION
    return cleaned[:5].ljust(5, '0')


def format_log_time(ts: datetime) -> str:
    """'YYYY-MM-DD HH:MM:SS.mmm +HHMM' (offset omitted for naive times)"""
    text = ts.strftime('%Y-%m-%d %H:%M:%S') + f'.{ts.microsecond // 1000:03d}'
    offset = ts.strftime('%z')
    return f'{text} {offset}' if offset else text


def format_start_time(ts: datetime) -> str:
    """'YYYY-MM-DD HH:MM:SS +HHMM' (offset omitted for naive times)"""
    text = ts.strftime('%Y-%m-%d %H:%M:%S')
    offset = ts.strftime('%z')
    return f'{text} {offset}' if offset else text


def format_location(event: LogEvent) -> str:
    """Source location text, '' when nothing is known"""
    if event.filename and event.funcname:
        return f'{event.funcname}, {event.filename}:{event.lineno or 0}'
    if event.filename:
        return f'{event.filename}:{event.lineno or 0}'
    return ''


def _local_now() -> datetime:
    return datetime.now().astimezone()


class EventFormatter:
    """
    Renders LogEvents as record lines.

    Usage:
        formatter = EventFormatter(error_verbosity=ErrorVerbosity.VERBOSE)
        line = formatter.format(event, ProcessContext.for_current_process(), state)
    """

    def __init__(
        self,
        error_verbosity: ErrorVerbosity = ErrorVerbosity.DEFAULT,
        min_error_statement: Severity = Severity.ERROR,
        clock: Callable[[], datetime] = _local_now,
    ):
        """
        Args:
            error_verbosity: VERBOSE adds the source location cell
            min_error_statement: Lowest severity whose statement text is kept
            clock: Time source for events without their own timestamp
        """
        self.error_verbosity = error_verbosity
        self.min_error_statement = min_error_statement
        self._clock = clock

    def format(self, event: LogEvent, context: ProcessContext, state: SpoolerState) -> str:
        """
        Format one record, advancing the per-process line counter in state.

        Returns:
            The record text including its trailing newline
        """
        line_number = state.next_line_number(context.pid)
        cells = [
            self._log_time(event),
            quote_text(context.user_name),
            quote_text(context.database_name),
            self._number(context.pid if context.pid else None),
            self._connection_from(context),
            self._session_id(context),
            str(line_number),
            quote_text(context.activity),
            self._start_time(context, state),
            self._vxid(context),
            self._number(context.transaction_id),
            severity_name(event.severity),
            normalize_sql_state(event.sql_state),
            quote_text(event.message),
            quote_text(event.detail_log if event.detail_log is not None else event.detail),
            quote_text(event.hint),
            quote_text(event.internal_query),
            self._internal_pos(event),
            quote_text(event.context),
        ]
        cells.extend(self._statement(event))
        cells.append(self._location(event))
        cells.append(quote_text(context.application_name))
        return ','.join(cells) + '\n'

    def _log_time(self, event: LogEvent) -> str:
        try:
            return format_log_time(event.timestamp or self._clock())
        except _RENDER_ERRORS as e:
            logger.debug(f"Unrenderable event timestamp: {e}")
            return ''

    @staticmethod
    def _number(value: Optional[int]) -> str:
        return '' if value is None else str(value)

    @staticmethod
    def _connection_from(context: ProcessContext) -> str:
        if not context.remote_host:
            return ''
        remote = context.remote_host
        if context.remote_port:
            remote = f'{remote}:{context.remote_port}'
        return quote_text(remote)

    @staticmethod
    def _session_id(context: ProcessContext) -> str:
        if context.start_time is None or not context.pid:
            return ''
        try:
            return f'{int(context.start_time.timestamp()):x}.{context.pid:x}'
        except _RENDER_ERRORS:
            return ''

    @staticmethod
    def _start_time(context: ProcessContext, state: SpoolerState) -> str:
        if state.formatted_start_time is None:
            if context.start_time is None:
                return ''
            try:
                state.formatted_start_time = format_start_time(context.start_time)
            except _RENDER_ERRORS:
                return ''
        return state.formatted_start_time

    @staticmethod
    def _vxid(context: ProcessContext) -> str:
        if context.backend_id is None:
            return ''
        return f'{context.backend_id}/{context.local_xid or 0}'

    @staticmethod
    def _internal_pos(event: LogEvent) -> str:
        if event.internal_query is not None and event.internal_pos and event.internal_pos > 0:
            return str(event.internal_pos)
        return ''

    def _statement(self, event: LogEvent) -> list[str]:
        """Query text and cursor position cells"""
        print_stmt = (
            not event.hide_stmt
            and event.query is not None
            and is_log_level_output(event.severity, self.min_error_statement)
        )
        if not print_stmt:
            return ['', '']
        cursor = str(event.cursor_pos) if event.cursor_pos and event.cursor_pos > 0 else ''
        return [quote_text(event.query), cursor]

    def _location(self, event: LogEvent) -> str:
        if self.error_verbosity < ErrorVerbosity.VERBOSE:
            return ''
        return quote_text(format_location(event))
