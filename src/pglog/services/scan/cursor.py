"""
Scan Cursor - sequential read across every segment in a catalog

Files are read one after another in catalog order, each from its first
record to its last. At most one file is open at a time.

States:
    UNOPENED -> FILE_OPEN <-> FILE_EXHAUSTED -> DONE

A failure in the middle of a file closes that file and raises ScanError;
the cursor is DONE afterwards and reset() starts over.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Optional

from pglog.errors import MalformedRecordError, ScanError
from pglog.services.record_schema import select_columns
from pglog.services.scan.catalog import FileCatalog
from pglog.services.scan.reader import RecordReader

logger = logging.getLogger(__name__)


class CursorState(Enum):
    UNOPENED = 'unopened'
    FILE_OPEN = 'file_open'
    FILE_EXHAUSTED = 'file_exhausted'
    DONE = 'done'


class ScanCursor:
    """
    Iterates the rows of every segment in a directory.

    Usage:
        with ScanCursor("/var/spool/pglog") as cursor:
            for row in cursor:
                print(row["log_time"], row["message"])
    """

    def __init__(
        self,
        directory: str | Path,
        catalog: Optional[FileCatalog] = None,
        columns: Optional[list[str]] = None,
    ):
        """
        Args:
            directory: Segment directory
            catalog: File discovery (default FileCatalog())
            columns: Columns the caller needs. Only recorded; rows always
                carry every column.

        Raises:
            KeyError: If columns names an undeclared column
        """
        self.directory = Path(directory)
        self._catalog = catalog or FileCatalog()
        self.selected_columns = select_columns(columns)
        self._files: list[Path] = []
        self._index = 0
        self._reader: Optional[RecordReader] = None
        self._state = CursorState.UNOPENED
        self._rows_read = 0

    @property
    def state(self) -> CursorState:
        return self._state

    @property
    def files(self) -> list[Path]:
        """Files this scan covers (empty until opened)"""
        return list(self._files)

    @property
    def current_path(self) -> Optional[Path]:
        return self._reader.path if self._reader is not None else None

    @property
    def rows_read(self) -> int:
        return self._rows_read

    def open(self) -> None:
        """
        Discover files and open the first one.

        Raises:
            ScanError: If the directory cannot be listed or the first file
                cannot be opened
        """
        if self._state is not CursorState.UNOPENED:
            return
        try:
            self._files = self._catalog.list(self.directory)
        except OSError as e:
            self._state = CursorState.DONE
            raise ScanError(f"could not list segment directory: {e}", path=self.directory) from e

        logger.debug(f"Scan of {self.directory} covers {len(self._files)} files")
        self._index = 0
        self._open_current()

    def _open_current(self) -> None:
        """Open files[index], or finish when the list is used up"""
        if self._index >= len(self._files):
            self._state = CursorState.DONE
            return
        path = self._files[self._index]
        try:
            self._reader = RecordReader(path)
        except OSError as e:
            self._state = CursorState.DONE
            raise ScanError(f"could not open segment: {e}", path=path) from e
        self._state = CursorState.FILE_OPEN
        logger.debug(f"Scanning segment {path}")

    def _close_reader(self) -> None:
        reader, self._reader = self._reader, None
        if reader is not None:
            reader.close()

    def next_row(self) -> Optional[dict[str, Any]]:
        """
        Next row across all files.

        Returns:
            The decoded row, or None once every file has been read

        Raises:
            ScanError: If a file cannot be read or holds a malformed record
        """
        if self._state is CursorState.UNOPENED:
            self.open()

        while self._state is not CursorState.DONE:
            if self._state is CursorState.FILE_EXHAUSTED:
                self._index += 1
                self._open_current()
                continue

            reader = self._reader
            try:
                cells = reader.read_record()
                row = reader.decode_row(cells) if cells is not None else None
            except (OSError, MalformedRecordError) as e:
                line_number = reader.line_number
                self._close_reader()
                self._state = CursorState.DONE
                raise ScanError(str(e), path=reader.path, line_number=line_number) from e

            if row is None:
                self._close_reader()
                self._state = CursorState.FILE_EXHAUSTED
                continue

            self._rows_read += 1
            return row

        return None

    def reset(self) -> None:
        """
        Rewind to the first record of the first file.

        The file list found by open() is kept; a cursor that was never
        opened is opened now.
        """
        self._close_reader()
        self._rows_read = 0
        if self._state is CursorState.UNOPENED:
            self.open()
            return
        self._index = 0
        self._open_current()

    def close(self) -> None:
        """Release the open file. Safe to call multiple times."""
        self._close_reader()
        if self._state is not CursorState.UNOPENED:
            self._state = CursorState.DONE

    def __iter__(self) -> Iterator[dict[str, Any]]:
        while True:
            row = self.next_row()
            if row is None:
                return
            yield row

    def __enter__(self) -> "ScanCursor":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
