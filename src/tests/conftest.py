"""
Shared test fixtures for pytest
"""

from datetime import datetime, timedelta, timezone

import pytest

from pglog.models import LogEvent, ProcessContext, Severity
from pglog.services import setup_logging
from pglog.services.logger import cleanup_logging
from pglog.services.spool import EventFormatter, SpoolerState, shutdown_spooling


class FakeClock:
    """Deterministic clock; each call returns the current value"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(scope="session", autouse=True)
def setup_test_logging(tmp_path_factory):
    """Setup logging for all tests"""
    setup_logging(
        log_dir=str(tmp_path_factory.mktemp("logs")),
        colored_output=False,
        console_level="WARNING",
    )
    yield
    cleanup_logging()


@pytest.fixture(autouse=True)
def reset_spooling():
    """No process-wide spooler leaks between tests"""
    yield
    shutdown_spooling()


@pytest.fixture
def spool_dir(tmp_path):
    """Directory segments are written to"""
    return tmp_path / "spool"


@pytest.fixture
def clock():
    """Clock fixed at 2021-01-01 00:00:00.123 UTC"""
    return FakeClock(datetime(2021, 1, 1, 0, 0, 0, 123000, tzinfo=timezone.utc))


@pytest.fixture
def context():
    """A typical backend process context"""
    return ProcessContext(
        pid=4242,
        user_name="postgres",
        database_name="app",
        remote_host="10.0.0.5",
        remote_port=5432,
        start_time=datetime(2021, 1, 1, 0, 0, 0, tzinfo=timezone.utc),
        activity="SELECT",
        backend_id=3,
        local_xid=7,
        transaction_id=0,
        application_name="psql",
    )


@pytest.fixture
def make_event():
    """Factory for LogEvents with sensible defaults"""

    def _make(message="something happened", severity=Severity.WARNING, **fields):
        return LogEvent(severity=severity, message=message, **fields)

    return _make


@pytest.fixture
def write_segment(context):
    """Write formatted records for the given events into a segment file"""

    def _write(path, events, ctx=None):
        formatter = EventFormatter()
        state = SpoolerState()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="") as f:
            for event in events:
                f.write(formatter.format(event, ctx or context, state))
        return path

    return _write
