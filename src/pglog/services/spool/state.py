"""
Spooler State - the single mutable state value of the write path

One SpoolerState exists per SpoolWriter, and one active spooler exists per
process. Nothing outside the spool package mutates it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from pglog.services.spool.writer import SpoolSegment


class WriterState(Enum):
    """Writer state machine: CLOSED -> OPEN -> (DISABLED) -> rotate -> OPEN"""

    CLOSED = 'closed'      # No segment open, writing allowed once one is
    OPEN = 'open'          # Segment open and accepting records
    DISABLED = 'disabled'  # Refusing writes until the next successful rotation


@dataclass
class SpoolerState:
    """
    Process-scoped spooler state.

    Attributes:
        segment: Currently open segment, if any
        writer_state: Where the writer state machine is
        rotation_required: Set by configuration changes, applied on the next event
        line_number: Records formatted by line_pid so far
        line_pid: Process id the line counter belongs to
        formatted_start_time: Cached process start cell for line_pid
        used_names: Segment file names opened by this writer
    """

    segment: Optional['SpoolSegment'] = None
    writer_state: WriterState = WriterState.CLOSED
    rotation_required: bool = False
    line_number: int = 0
    line_pid: Optional[int] = None
    formatted_start_time: Optional[str] = None
    used_names: set[str] = field(default_factory=set)

    def next_line_number(self, pid: Optional[int]) -> int:
        """
        Advance the per-process line counter.

        A different pid means a new process inherited this state (e.g. after
        fork), so the counter and cached start time start over.
        """
        if pid != self.line_pid:
            self.line_number = 0
            self.line_pid = pid
            self.formatted_start_time = None
        self.line_number += 1
        return self.line_number
