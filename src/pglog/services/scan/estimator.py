"""
Cost Estimator - size, row and cost estimates for a planner

Estimates follow the server's sequential scan model: the segment size gives
a page count, the page count and a row width give a tuple count, and the
cost is page I/O plus per-tuple CPU work.

No file is opened; only sizes are read.
"""

import logging
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

BLOCK_SIZE = 8192
DEFAULT_FILE_SIZE = 10 * BLOCK_SIZE
MAXIMUM_ALIGNOF = 8
TUPLE_OVERHEAD = 24  # Heap tuple header, MAXALIGN'd
SEQ_PAGE_COST = 1.0
CPU_TUPLE_COST = 0.01
PARSE_COST_FACTOR = 10  # Per-tuple CPU multiplier for parsing a text record
MAXIMUM_ROWCOUNT = 1e100


@dataclass(frozen=True)
class RelationStats:
    """Prior statistics for the relation, if a previous analysis left any"""

    pages: int = 0
    tuples: float = 0.0


@dataclass(frozen=True)
class PredicateCost:
    """Evaluation cost of the scan's filter"""

    startup: float = 0.0
    per_tuple: float = 0.0


@dataclass(frozen=True)
class SizeEstimate:
    size_bytes: int
    pages: int
    tuple_count: float


@dataclass(frozen=True)
class ScanEstimate:
    """Answer to the planner: sizes, rows after the filter, and cost"""

    pages: int
    tuple_count: float
    rows: float
    startup_cost: float
    total_cost: float


def maxalign(width: int) -> int:
    return (width + MAXIMUM_ALIGNOF - 1) & ~(MAXIMUM_ALIGNOF - 1)


def clamp_row_est(nrows: float) -> float:
    """
    Force a row estimate into a sane range.

    NaN and anything at or below one become 1; huge values are capped;
    everything else is rounded to a whole row.
    """
    if math.isnan(nrows) or nrows <= 1.0:
        return 1.0
    if nrows > MAXIMUM_ROWCOUNT:
        return MAXIMUM_ROWCOUNT
    return float(round(nrows))


class CostEstimator:
    """
    Planner estimates for a scan over segment files.

    Usage:
        estimator = CostEstimator()
        size = estimator.estimate_size(path, row_width=200)
        rows = estimator.estimate_rows(size.tuple_count, selectivity=0.1)
        startup, total = estimator.estimate_cost(size.pages, size.tuple_count, PredicateCost())
    """

    def __init__(
        self,
        block_size: int = BLOCK_SIZE,
        tuple_overhead: int = TUPLE_OVERHEAD,
        seq_page_cost: float = SEQ_PAGE_COST,
        cpu_tuple_cost: float = CPU_TUPLE_COST,
    ):
        """
        Args:
            block_size: Bytes per page
            tuple_overhead: Per-tuple header bytes added to the row width
            seq_page_cost: Cost of reading one page sequentially
            cpu_tuple_cost: Cost of processing one tuple
        """
        if block_size <= 0:
            raise ValueError(f"block_size must be positive, got {block_size}")
        self.block_size = block_size
        self.tuple_overhead = tuple_overhead
        self.seq_page_cost = seq_page_cost
        self.cpu_tuple_cost = cpu_tuple_cost

    def file_size(self, path: str | Path) -> int:
        """Size of a segment, or the default size if it cannot be stat'ed"""
        try:
            return os.stat(path).st_size
        except OSError as e:
            logger.debug(f"Could not stat {path}, assuming {DEFAULT_FILE_SIZE} bytes: {e}")
            return DEFAULT_FILE_SIZE

    def estimate_size(
        self,
        source: str | Path | int,
        row_width: int,
        stats: Optional[RelationStats] = None,
    ) -> SizeEstimate:
        """
        Pages and tuples for one file.

        Args:
            source: Segment path, or a size in bytes
            row_width: Estimated width of a decoded row
            stats: Prior stats; their tuple density is projected onto the
                current page count when they have any pages
        """
        size = source if isinstance(source, int) else self.file_size(source)
        pages = max(1, math.ceil(size / self.block_size))

        if stats is not None and stats.pages > 0:
            density = stats.tuples / stats.pages
            tuples = clamp_row_est(density * pages)
        else:
            tuple_width = maxalign(max(row_width, 0)) + self.tuple_overhead
            if tuple_width <= 0:
                tuple_width = 1
            tuples = clamp_row_est(size / tuple_width)

        return SizeEstimate(size_bytes=size, pages=pages, tuple_count=tuples)

    def estimate_relation(
        self,
        paths: Iterable[str | Path],
        row_width: int,
        stats: Optional[RelationStats] = None,
    ) -> SizeEstimate:
        """
        Pages and tuples for the whole catalog, sized by the sum of all files.

        An empty catalog is sized as one default-size file.
        """
        sizes = [self.file_size(path) for path in paths]
        total = sum(sizes) if sizes else DEFAULT_FILE_SIZE
        return self.estimate_size(total, row_width, stats)

    @staticmethod
    def estimate_rows(tuple_count: float, selectivity: float) -> float:
        """Rows surviving the filter"""
        return clamp_row_est(tuple_count * selectivity)

    def estimate_cost(
        self,
        pages: int,
        tuple_count: float,
        predicate_cost: Optional[PredicateCost] = None,
    ) -> tuple[float, float]:
        """
        Startup and total cost of scanning every tuple.

        Returns:
            (startup_cost, total_cost)
        """
        predicate_cost = predicate_cost or PredicateCost()
        startup = predicate_cost.startup
        cpu_per_tuple = self.cpu_tuple_cost * PARSE_COST_FACTOR + predicate_cost.per_tuple
        run = self.seq_page_cost * pages + cpu_per_tuple * tuple_count
        return startup, startup + run
