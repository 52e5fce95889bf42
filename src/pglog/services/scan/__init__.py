"""Read path: discover segments, estimate scans, iterate rows."""

from pglog.services.scan.catalog import MAX_LOG_FILES, FileCatalog
from pglog.services.scan.cursor import CursorState, ScanCursor
from pglog.services.scan.estimator import (
    CostEstimator,
    PredicateCost,
    RelationStats,
    ScanEstimate,
    SizeEstimate,
    clamp_row_est,
)
from pglog.services.scan.reader import RecordReader, decode_row, parse_record
from pglog.services.scan.relation import LogRelation

__all__ = [
    "MAX_LOG_FILES",
    "CostEstimator",
    "CursorState",
    "FileCatalog",
    "LogRelation",
    "PredicateCost",
    "RecordReader",
    "RelationStats",
    "ScanCursor",
    "ScanEstimate",
    "SizeEstimate",
    "clamp_row_est",
    "decode_row",
    "parse_record",
]
