"""
Spool Writer - single writable segment with rotation and disable-on-failure

Features:
- Exactly one open segment at a time
- Segments named from the directory and current time, never colliding
  within one writer
- Append mode, owner read/write always granted
- Unbuffered writes, so a record is either handed to the OS or reported
- Any open or write failure disables the writer until the next rotation

Not safe for several processes writing into the same directory.
"""

import logging
import os
import stat
from collections.abc import Callable
from datetime import datetime
from enum import Enum
from pathlib import Path

from pglog.services.spool.state import SpoolerState, WriterState

logger = logging.getLogger(__name__)

SEGMENT_PREFIX = 'pglog'
SEGMENT_SUFFIX = '.dat'
SEGMENT_TIME_FORMAT = '%Y-%m-%d_%H%M%S'


class WriteResult(Enum):
    """Outcome of SpoolWriter.write()"""

    WRITTEN = 'written'
    DISABLED = 'disabled'        # Refused: writer is disabled
    NO_SEGMENT = 'no_segment'    # Refused: nothing open (writer now disabled)
    SHORT_WRITE = 'short_write'  # Fewer bytes accepted than requested
    FAILED = 'failed'            # OS error during write

    @property
    def ok(self) -> bool:
        return self is WriteResult.WRITTEN


class SpoolSegment:
    """One physical segment file opened for append"""

    def __init__(self, path: Path, file_mode: int = 0o600):
        """
        Open (or create) the segment.

        Args:
            path: Segment file path
            file_mode: Permission bits for a newly created file

        Raises:
            OSError: If the file cannot be opened
        """
        self.path = Path(path)
        mode = (file_mode | stat.S_IRUSR | stat.S_IWUSR) & 0o777
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, mode)
        self._handle = os.fdopen(fd, 'ab', buffering=0)

    @property
    def closed(self) -> bool:
        return self._handle.closed

    def write(self, data: bytes) -> int:
        """Write bytes, returning how many the OS accepted"""
        written = self._handle.write(data)
        return 0 if written is None else written

    def close(self) -> None:
        """Close the handle. Safe to call multiple times."""
        if not self._handle.closed:
            self._handle.close()


def _local_now() -> datetime:
    return datetime.now().astimezone()


class SpoolWriter:
    """
    Owns the writable segment and the writer state machine.

    States:
        CLOSED  - nothing open; ensure_open() moves to OPEN
        OPEN    - write() appends records
        DISABLED - write() refuses; only rotate() leaves this state

    Usage:
        writer = SpoolWriter()
        writer.ensure_open("/var/spool/pglog")
        result = writer.write(line)
        if not result.ok:
            ...  # writer is now disabled until writer.rotate(directory)
    """

    def __init__(
        self,
        file_mode: int = 0o600,
        state: SpoolerState | None = None,
        clock: Callable[[], datetime] = _local_now,
    ):
        """
        Args:
            file_mode: Permission bits for new segment files
            state: Existing state to continue from (new one if None)
            clock: Time source for segment names
        """
        self.file_mode = file_mode
        self.state = state or SpoolerState()
        self._clock = clock

    @property
    def is_enabled(self) -> bool:
        return self.state.writer_state is not WriterState.DISABLED

    @property
    def segment(self) -> SpoolSegment | None:
        return self.state.segment

    @property
    def current_path(self) -> Path | None:
        """Path of the open segment, if any"""
        return self.state.segment.path if self.state.segment else None

    @property
    def rotation_pending(self) -> bool:
        return self.state.rotation_required

    def request_rotation(self) -> None:
        """Ask for a new segment on the next event (e.g. after a directory change)"""
        self.state.rotation_required = True

    def disable(self) -> None:
        """Refuse writes until the next successful rotation"""
        if self.state.writer_state is not WriterState.DISABLED:
            logger.debug("Spool writer disabled")
        self.state.writer_state = WriterState.DISABLED

    def segment_path(self, directory: str | Path) -> Path:
        """
        Name for a new segment in directory.

        Second resolution normally; if that name was already used by this
        writer or exists on disk, a microsecond component (and then a
        counter) is added.
        """
        directory = Path(directory)

        def taken(name: str) -> bool:
            return name in self.state.used_names or (directory / name).exists()

        now = self._clock()
        base = f"{SEGMENT_PREFIX}-{now.strftime(SEGMENT_TIME_FORMAT)}"
        name = f"{base}{SEGMENT_SUFFIX}"
        if taken(name):
            base = f"{base}.{now.microsecond:06d}"
            name = f"{base}{SEGMENT_SUFFIX}"
            counter = 1
            while taken(name):
                name = f"{base}-{counter}{SEGMENT_SUFFIX}"
                counter += 1
        return directory / name

    def ensure_open(self, directory: str | Path) -> bool:
        """
        Open a segment in directory unless one is already open.

        Directory creation is attempted and its failure ignored; failing to
        open the segment itself disables the writer.

        Returns:
            True if a segment is open afterwards
        """
        if self.state.segment is not None:
            return True

        path = self.segment_path(directory)
        try:
            os.makedirs(directory, 0o700, exist_ok=True)
        except OSError:
            pass

        try:
            segment = SpoolSegment(path, self.file_mode)
        except OSError as e:
            self.disable()
            logger.warning(f"could not open log file \"{path}\": {e}")
            return False

        self.state.segment = segment
        self.state.used_names.add(path.name)
        if self.state.writer_state is not WriterState.DISABLED:
            self.state.writer_state = WriterState.OPEN
        logger.info(f"Opened spool segment {path}")
        return True

    def rotate(self, directory: str | Path) -> bool:
        """
        Close the current segment, re-enable writing and open a new one.

        Returns:
            True if the new segment is open
        """
        self._close_segment()
        self.state.rotation_required = False
        self.state.writer_state = WriterState.CLOSED
        return self.ensure_open(directory)

    def write(self, record: str | bytes) -> WriteResult:
        """
        Append one record to the open segment.

        Returns:
            WRITTEN on success; anything else means nothing more will be
            written until rotate() succeeds
        """
        if self.state.writer_state is WriterState.DISABLED:
            return WriteResult.DISABLED

        segment = self.state.segment
        if segment is None:
            self.disable()
            logger.warning("could not write log record: no spool segment is open")
            return WriteResult.NO_SEGMENT

        data = record.encode('utf-8', errors='backslashreplace') if isinstance(record, str) else record
        try:
            written = segment.write(data)
        except OSError as e:
            self.disable()
            logger.warning(f"could not write log file \"{segment.path}\": {e}")
            return WriteResult.FAILED

        if written != len(data):
            self.disable()
            logger.warning(
                f"could not write log file \"{segment.path}\": "
                f"wrote {written} of {len(data)} bytes"
            )
            return WriteResult.SHORT_WRITE

        return WriteResult.WRITTEN

    def _close_segment(self) -> None:
        segment = self.state.segment
        self.state.segment = None
        if segment is None:
            return
        try:
            segment.close()
        except OSError as e:
            logger.warning(f"Error closing spool segment {segment.path}: {e}")
        logger.debug(f"Closed spool segment {segment.path}")

    def close(self) -> None:
        """
        Release the open segment, if any.

        Safe to call multiple times. The disabled flag is kept.
        """
        self._close_segment()
        if self.state.writer_state is WriterState.OPEN:
            self.state.writer_state = WriterState.CLOSED

    def __enter__(self) -> "SpoolWriter":
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - releases the segment"""
        self.close()
