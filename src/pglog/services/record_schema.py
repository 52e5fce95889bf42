"""
Record Schema - the declared columns of a spooled record

Schema Version: 1.0.0

The same column list drives the formatter (cell order), the reader
(cell count and typed decoding) and Arrow materialization.
"""

from dataclasses import dataclass
from enum import Enum

import pyarrow as pa

from pglog.models.severity import SEVERITY_NAMES


class ColumnKind(str, Enum):
    """How a cell is rendered and decoded"""

    TIMESTAMP = 'timestamp'  # Unquoted, "YYYY-MM-DD HH:MM:SS[.mmm] +HHMM"
    TEXT = 'text'            # Quoted, doubled-quote escaping
    INTEGER = 'integer'      # Unquoted decimal
    SEVERITY = 'severity'    # Unquoted severity name


@dataclass(frozen=True)
class LogColumn:
    """One declared column"""

    name: str
    kind: ColumnKind
    description: str = ''


LOG_COLUMNS: tuple[LogColumn, ...] = (
    LogColumn('log_time', ColumnKind.TIMESTAMP, 'Event time with milliseconds'),
    LogColumn('user_name', ColumnKind.TEXT, 'Session user'),
    LogColumn('database_name', ColumnKind.TEXT, 'Connected database'),
    LogColumn('process_id', ColumnKind.INTEGER, 'Reporting process id'),
    LogColumn('connection_from', ColumnKind.TEXT, 'Remote host[:port]'),
    LogColumn('session_id', ColumnKind.TEXT, 'Hex start time . hex pid'),
    LogColumn('session_line_num', ColumnKind.INTEGER, 'Per-process line sequence number'),
    LogColumn('command_tag', ColumnKind.TEXT, 'Activity descriptor'),
    LogColumn('session_start_time', ColumnKind.TIMESTAMP, 'Process start time'),
    LogColumn('virtual_transaction_id', ColumnKind.TEXT, 'backend/local xid'),
    LogColumn('transaction_id', ColumnKind.INTEGER, 'Top transaction id'),
    LogColumn('error_severity', ColumnKind.SEVERITY, 'Severity name'),
    LogColumn('sql_state_code', ColumnKind.TEXT, 'Five character SQLSTATE'),
    LogColumn('message', ColumnKind.TEXT, 'Primary message'),
    LogColumn('detail', ColumnKind.TEXT, 'Detail'),
    LogColumn('hint', ColumnKind.TEXT, 'Hint'),
    LogColumn('internal_query', ColumnKind.TEXT, 'Internal query text'),
    LogColumn('internal_query_pos', ColumnKind.INTEGER, 'Position in internal query'),
    LogColumn('context', ColumnKind.TEXT, 'Context'),
    LogColumn('query', ColumnKind.TEXT, 'Statement text'),
    LogColumn('query_pos', ColumnKind.INTEGER, 'Position in statement'),
    LogColumn('location', ColumnKind.TEXT, 'Source location'),
    LogColumn('application_name', ColumnKind.TEXT, 'Client application'),
)

COLUMN_NAMES: tuple[str, ...] = tuple(c.name for c in LOG_COLUMNS)
COLUMN_COUNT = len(LOG_COLUMNS)

_ARROW_TYPES = {
    ColumnKind.TIMESTAMP: pa.timestamp('ms', tz='UTC'),
    ColumnKind.TEXT: pa.string(),
    ColumnKind.INTEGER: pa.int64(),
    ColumnKind.SEVERITY: pa.string(),
}


def arrow_schema(columns: list[str] | None = None) -> pa.Schema:
    """
    Arrow schema for the relation, optionally projected.

    Args:
        columns: Column names to keep, in this order (all if None)

    Raises:
        KeyError: If a requested column is not declared
    """
    by_name = {c.name: c for c in LOG_COLUMNS}
    names = list(columns) if columns is not None else list(COLUMN_NAMES)
    fields = []
    for name in names:
        column = by_name[name]
        fields.append(pa.field(name, _ARROW_TYPES[column.kind]))
    return pa.schema(fields)


def select_columns(required: list[str] | None) -> list[str] | None:
    """
    Decide whether a scan could be restricted to a subset of columns.

    Returns the needed column names in declared order, or None when every
    column is needed (no list given, a whole-row reference "*", or all
    columns named). An empty list is a valid answer, e.g. for count(*).

    Raises:
        KeyError: If a name is not a declared column
    """
    if required is None:
        return None
    wanted = set()
    for name in required:
        if name == '*':
            return None
        if name not in COLUMN_NAMES:
            raise KeyError(f"unknown column: {name}")
        wanted.add(name)
    if len(wanted) == COLUMN_COUNT:
        return None
    return [name for name in COLUMN_NAMES if name in wanted]


SEVERITY_VALUES = frozenset(SEVERITY_NAMES)
