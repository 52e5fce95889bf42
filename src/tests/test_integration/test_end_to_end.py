"""
End-to-end: spool events into two segments, then plan and scan them back.
"""

import logging
from datetime import datetime, timezone

import pytest

from pglog.models import Severity, SpoolSettings
from pglog.services.event_sinks import EventSinks
from pglog.services.scan import CostEstimator, FileCatalog, LogRelation, ScanCursor
from pglog.services.spool import EventSpooler, SpoolLogHandler


class OrderedCatalog(FileCatalog):
    """Real discovery, sorted by name so the scan order is predictable"""

    def list(self, directory):
        return sorted(super().list(directory))


@pytest.fixture
def two_day_spool(spool_dir, clock, context, make_event):
    """pglog-2021-01-01_000000.dat with 2 records, pglog-2021-01-02_000000.dat with 3"""
    spooler = EventSpooler(SpoolSettings(directory=str(spool_dir), min_messages="info"), clock=clock)
    sinks = EventSinks()
    sinks.add(spooler.handle)

    for i in range(2):
        sinks.dispatch(make_event(f"day1-{i}", severity=Severity.INFO), context)
    # Below the threshold, never written
    sinks.dispatch(make_event("noise", severity=Severity.DEBUG1), context)

    clock.now = datetime(2021, 1, 2, 0, 0, 0, tzinfo=timezone.utc)
    spooler.request_rotation()
    for i in range(3):
        sinks.dispatch(make_event(f"day2-{i}", severity=Severity.WARNING), context)

    spooler.close()
    return spool_dir


class TestEndToEnd:
    """Write path and read path together"""

    def test_segments_created(self, two_day_spool):
        """Test one segment per rotation, named by the clock"""
        names = sorted(p.name for p in two_day_spool.iterdir())
        assert names == ["pglog-2021-01-01_000000.dat", "pglog-2021-01-02_000000.dat"]

    def test_scan_in_list_order(self, two_day_spool):
        """Test 5 rows, first segment's rows first"""
        with ScanCursor(two_day_spool, catalog=OrderedCatalog()) as cursor:
            rows = list(cursor)

        assert [r["message"] for r in rows] == ["day1-0", "day1-1", "day2-0", "day2-1", "day2-2"]
        assert [r["error_severity"] for r in rows] == ["INFO", "INFO", "WARNING", "WARNING", "WARNING"]
        # The line sequence belongs to the process, not the segment
        assert [r["session_line_num"] for r in rows] == [1, 2, 3, 4, 5]
        assert rows[2]["log_time"] == datetime(2021, 1, 2, tzinfo=timezone.utc)

    def test_relation_to_pandas(self, two_day_spool):
        """Test the relation materializes every spooled event"""
        df = LogRelation(two_day_spool, catalog=OrderedCatalog()).to_pandas(columns=["message"])
        assert list(df["message"]) == ["day1-0", "day1-1", "day2-0", "day2-1", "day2-2"]

    def test_estimate_ten_kib_file(self, spool_dir):
        """Test the planner numbers for a 10 KiB segment with no stats"""
        spool_dir.mkdir()
        (spool_dir / "pglog-2021-01-01_000000.dat").write_bytes(b"x" * 10240)

        estimate = LogRelation(spool_dir).estimate(row_width=200)
        assert estimate.pages == 2
        assert estimate.tuple_count == 46
        assert estimate.rows == 46

        no_header = LogRelation(spool_dir, estimator=CostEstimator(tuple_overhead=0)).estimate(row_width=200)
        assert no_header.tuple_count == 51

    def test_python_logging_round_trip(self, spool_dir):
        """Test stdlib logging records come back as rows"""
        spooler = EventSpooler(SpoolSettings(directory=str(spool_dir), min_messages="warning"))
        sinks = EventSinks()
        sinks.add(spooler.handle)
        logger = logging.getLogger("pglog.tests.e2e")
        logger.propagate = False
        handler = SpoolLogHandler(sinks, application_name="e2e")
        logger.addHandler(handler)
        try:
            logger.info("not spooled")
            logger.warning("replica lag %ds", 30)
            logger.critical("shutting down")
        finally:
            logger.removeHandler(handler)
            logger.propagate = True
            spooler.close()

        rows = list(LogRelation(spool_dir).scan())
        assert [(r["error_severity"], r["message"]) for r in rows] == [
            ("WARNING", "replica lag 30s"),
            ("FATAL", "shutting down"),
        ]
        assert {r["application_name"] for r in rows} == {"e2e"}
