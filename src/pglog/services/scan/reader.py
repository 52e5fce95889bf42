"""
Record Reader - quote-aware tokenizer and typed decoder for segment records

A record is one line of cells separated by commas, except that a quoted
cell may span line breaks. Inside quotes a doubled quote is a literal
quote. An unquoted empty cell is absent (None); a quoted empty cell is
the empty string.

The csv module cannot tell those two apart, so records are tokenized here.
"""

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from pglog.errors import MalformedRecordError
from pglog.services.record_schema import (
    COLUMN_COUNT,
    LOG_COLUMNS,
    SEVERITY_VALUES,
    ColumnKind,
)

logger = logging.getLogger(__name__)

_UNQUOTED = re.compile(r'[^,"\r\n]*')
_LINE_ENDINGS = ('', '\n', '\r\n', '\r')
_UTC_NAMES = ('UTC', 'GMT', 'Z')


def parse_record(text: str) -> list[Optional[str]]:
    """
    Split one record into cells.

    Args:
        text: Record text, with or without its line ending

    Raises:
        MalformedRecordError: On a stray quote, an unterminated quoted cell
            or text after the closing quote of a cell
    """
    cells: list[Optional[str]] = []
    pos = 0
    n = len(text)

    while True:
        if pos < n and text[pos] == '"':
            parts = []
            pos += 1
            while True:
                end = text.find('"', pos)
                if end < 0:
                    raise MalformedRecordError(f"unterminated quoted value in cell {len(cells) + 1}")
                parts.append(text[pos:end])
                if end + 1 < n and text[end + 1] == '"':
                    parts.append('"')
                    pos = end + 2
                    continue
                pos = end + 1
                break
            cells.append(''.join(parts))
        else:
            match = _UNQUOTED.match(text, pos)
            end = match.end()
            if end < n and text[end] == '"':
                raise MalformedRecordError(f"unexpected quote in unquoted cell {len(cells) + 1}")
            cells.append(text[pos:end] or None)
            pos = end

        if pos < n and text[pos] == ',':
            pos += 1
            continue
        break

    if text[pos:] not in _LINE_ENDINGS:
        raise MalformedRecordError(f"unexpected text after cell {len(cells)}: {text[pos:pos + 20]!r}")
    return cells


def parse_timestamp(text: str) -> datetime:
    """
    Parse 'YYYY-MM-DD HH:MM:SS[.fff] [zone]'.

    The zone may be a numeric offset (+HHMM, +HH:MM), UTC/GMT/Z, or absent
    (naive result).

    Raises:
        MalformedRecordError: If the text is not such a timestamp
    """
    tokens = text.split(' ')
    if len(tokens) not in (2, 3):
        raise MalformedRecordError(f"invalid timestamp: {text!r}")

    clock = f"{tokens[0]} {tokens[1]}"
    fmt = '%Y-%m-%d %H:%M:%S.%f' if '.' in tokens[1] else '%Y-%m-%d %H:%M:%S'
    try:
        if len(tokens) == 2:
            return datetime.strptime(clock, fmt)
        zone = tokens[2]
        if zone.upper() in _UTC_NAMES:
            return datetime.strptime(clock, fmt).replace(tzinfo=timezone.utc)
        return datetime.strptime(f"{clock} {zone}", f"{fmt} %z")
    except ValueError as e:
        raise MalformedRecordError(f"invalid timestamp: {text!r}") from e


def decode_row(cells: list[Optional[str]]) -> dict[str, Any]:
    """
    Convert a record's cells into a row keyed by column name.

    Raises:
        MalformedRecordError: On a wrong cell count or a cell that does not
            decode as its column kind
    """
    if len(cells) != COLUMN_COUNT:
        raise MalformedRecordError(f"expected {COLUMN_COUNT} cells, got {len(cells)}")

    row: dict[str, Any] = {}
    for column, cell in zip(LOG_COLUMNS, cells):
        if cell is None:
            row[column.name] = None
        elif column.kind is ColumnKind.TIMESTAMP:
            row[column.name] = parse_timestamp(cell)
        elif column.kind is ColumnKind.INTEGER:
            try:
                row[column.name] = int(cell)
            except ValueError as e:
                raise MalformedRecordError(f"invalid integer for {column.name}: {cell!r}") from e
        elif column.kind is ColumnKind.SEVERITY:
            if cell not in SEVERITY_VALUES:
                raise MalformedRecordError(f"invalid severity: {cell!r}")
            row[column.name] = cell
        else:
            row[column.name] = cell
    return row


class RecordReader:
    """
    Reads records one at a time from a segment file.

    Usage:
        with RecordReader(path) as reader:
            while (cells := reader.read_record()) is not None:
                row = reader.decode_row(cells)
    """

    def __init__(self, path: str | Path):
        """
        Open the segment for reading.

        Raises:
            OSError: If the file cannot be opened
        """
        self.path = Path(path)
        self._handle = open(self.path, 'r', encoding='utf-8', newline='')
        self._lines_read = 0
        self.line_number = 0

    @property
    def closed(self) -> bool:
        return self._handle.closed

    def read_record(self) -> Optional[list[str]]:
        """
        Read the next record's cells.

        line_number is set to the physical line the record starts on.

        Returns:
            Cells, or None at end of file

        Raises:
            MalformedRecordError: If the record cannot be tokenized
            OSError: If reading fails
        """
        try:
            first = self._handle.readline()
            if not first:
                return None
            self._lines_read += 1
            self.line_number = self._lines_read

            text = first
            # Quotes come in pairs unless a quoted cell continues on the next line
            while text.count('"') % 2:
                more = self._handle.readline()
                if not more:
                    raise MalformedRecordError("end of file inside quoted value")
                self._lines_read += 1
                text += more
        except UnicodeDecodeError as e:
            raise MalformedRecordError(f"invalid UTF-8: {e}") from e

        return parse_record(text)

    @staticmethod
    def decode_row(cells: list[Optional[str]]) -> dict[str, Any]:
        return decode_row(cells)

    def close(self) -> None:
        """Close the file. Safe to call multiple times."""
        if not self._handle.closed:
            self._handle.close()
            logger.debug(f"Closed segment {self.path} after {self._lines_read} lines")

    def __enter__(self) -> "RecordReader":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
