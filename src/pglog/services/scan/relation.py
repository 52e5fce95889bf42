"""
Log Relation - planning and execution entry point over a segment directory

Ties the catalog, estimator and cursor together, and materializes rows as
PyArrow tables or pandas DataFrames.

Usage:
    relation = LogRelation("/var/spool/pglog")
    plan = relation.estimate(row_width=200, selectivity=0.1)
    table = relation.to_arrow(columns=["log_time", "message"])
"""

import logging
from itertools import islice
from pathlib import Path
from typing import Optional

import pandas as pd
import pyarrow as pa

from pglog.services.record_schema import COLUMN_NAMES, arrow_schema, select_columns
from pglog.services.scan.catalog import FileCatalog
from pglog.services.scan.cursor import ScanCursor
from pglog.services.scan.estimator import (
    CostEstimator,
    PredicateCost,
    RelationStats,
    ScanEstimate,
)

logger = logging.getLogger(__name__)


class LogRelation:
    """A directory of segments seen as one relation"""

    def __init__(
        self,
        directory: str | Path,
        catalog: Optional[FileCatalog] = None,
        estimator: Optional[CostEstimator] = None,
    ):
        self.directory = Path(directory)
        self.catalog = catalog or FileCatalog()
        self.estimator = estimator or CostEstimator()

    def files(self) -> list[Path]:
        """Segments a scan would read right now"""
        return self.catalog.list(self.directory)

    def estimate(
        self,
        row_width: int,
        selectivity: float = 1.0,
        predicate_cost: Optional[PredicateCost] = None,
        stats: Optional[RelationStats] = None,
    ) -> ScanEstimate:
        """
        Estimate a full scan with a filter of the given selectivity.

        Args:
            row_width: Estimated width of a decoded row in bytes
            selectivity: Fraction of rows the filter keeps (0.0 - 1.0)
            predicate_cost: Cost of evaluating the filter
            stats: Prior stats for density projection
        """
        size = self.estimator.estimate_relation(self.files(), row_width, stats)
        rows = self.estimator.estimate_rows(size.tuple_count, selectivity)
        startup, total = self.estimator.estimate_cost(size.pages, size.tuple_count, predicate_cost)
        estimate = ScanEstimate(
            pages=size.pages,
            tuple_count=size.tuple_count,
            rows=rows,
            startup_cost=startup,
            total_cost=total,
        )
        logger.debug(f"Estimate for {self.directory}: {estimate}")
        return estimate

    def scan(self, columns: Optional[list[str]] = None) -> ScanCursor:
        """New cursor over the relation; columns is recorded as a hint only"""
        return ScanCursor(self.directory, catalog=self.catalog, columns=columns)

    # =========================================================================
    # Materialization
    # =========================================================================

    def to_arrow(self, columns: Optional[list[str]] = None, limit: Optional[int] = None) -> pa.Table:
        """
        Read rows into a PyArrow table.

        Args:
            columns: Columns to keep, in declared order (all if None). An
                empty list keeps only the row count.
            limit: Stop after this many rows (all if None)

        Raises:
            ScanError: If a segment cannot be read
            KeyError: If columns names an undeclared column
        """
        selected = select_columns(columns)
        names = list(COLUMN_NAMES) if selected is None else selected

        with self.scan(columns) as cursor:
            rows = [{name: row[name] for name in names} for row in islice(cursor, limit)]

        if names:
            table = pa.Table.from_pylist(rows, schema=arrow_schema(names))
        else:
            table = pa.table({"_": pa.nulls(len(rows))}).select([])
        logger.info(f"Materialized {table.num_rows} rows from {self.directory}")
        return table

    def to_pandas(self, columns: Optional[list[str]] = None, limit: Optional[int] = None) -> pd.DataFrame:
        """Read rows into a pandas DataFrame"""
        table = self.to_arrow(columns, limit)
        if table.num_columns == 0:
            return pd.DataFrame(index=pd.RangeIndex(table.num_rows))
        return table.to_pandas()
