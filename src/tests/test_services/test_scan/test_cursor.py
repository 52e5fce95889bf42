"""
Tests for ScanCursor: multi-file order, reset, failures
"""

import pytest

from pglog.errors import ScanError
from pglog.services.scan.catalog import FileCatalog
from pglog.services.scan.cursor import CursorState, ScanCursor
from pglog.services.scan.reader import RecordReader

# =============================================================================
# Fixtures
# =============================================================================


class FixedCatalog(FileCatalog):
    """Catalog returning a fixed list, in the given order"""

    def __init__(self, paths):
        super().__init__()
        self.paths = list(paths)
        self.calls = 0

    def list(self, directory):
        self.calls += 1
        return list(self.paths)


@pytest.fixture
def two_segments(spool_dir, write_segment, make_event):
    """Segment A with 2 records and segment B with 3"""
    a = write_segment(spool_dir / "a.dat", [make_event(f"a{i}") for i in range(2)])
    b = write_segment(spool_dir / "b.dat", [make_event(f"b{i}") for i in range(3)])
    return a, b


def messages(cursor):
    return [row["message"] for row in cursor]


# =============================================================================
# Ordering
# =============================================================================


class TestOrdering:
    """Files are read one after another in catalog order"""

    def test_all_rows_in_list_order(self, spool_dir, two_segments):
        """Test A's rows come before B's"""
        a, b = two_segments
        with ScanCursor(spool_dir, catalog=FixedCatalog([a, b])) as cursor:
            assert messages(cursor) == ["a0", "a1", "b0", "b1", "b2"]
            assert cursor.rows_read == 5
            assert cursor.state is CursorState.DONE

    def test_reverse_order(self, spool_dir, two_segments):
        """Test the catalog order is followed, not names"""
        a, b = two_segments
        with ScanCursor(spool_dir, catalog=FixedCatalog([b, a])) as cursor:
            assert messages(cursor) == ["b0", "b1", "b2", "a0", "a1"]

    def test_default_catalog_finds_all(self, spool_dir, two_segments):
        """Test the real catalog yields every row whatever its order"""
        with ScanCursor(spool_dir) as cursor:
            assert sorted(messages(cursor)) == ["a0", "a1", "b0", "b1", "b2"]

    def test_rows_have_every_column(self, spool_dir, two_segments):
        """Test each row carries all declared columns"""
        a, _ = two_segments
        with ScanCursor(spool_dir, catalog=FixedCatalog([a])) as cursor:
            row = cursor.next_row()
        assert len(row) == 23
        assert row["process_id"] == 4242
        assert row["user_name"] == "postgres"

    def test_empty_file_skipped(self, spool_dir, two_segments):
        """Test an empty segment between others contributes nothing"""
        a, b = two_segments
        empty = spool_dir / "empty.dat"
        empty.write_text("")
        with ScanCursor(spool_dir, catalog=FixedCatalog([a, empty, b])) as cursor:
            assert len(messages(cursor)) == 5


class TestStates:
    """State machine"""

    def test_empty_directory_is_done(self, spool_dir):
        """Test no files goes straight to DONE"""
        cursor = ScanCursor(spool_dir)
        cursor.open()
        assert cursor.state is CursorState.DONE
        assert cursor.next_row() is None

    def test_next_row_opens_lazily(self, spool_dir, two_segments):
        """Test next_row() on an unopened cursor opens it"""
        a, _ = two_segments
        cursor = ScanCursor(spool_dir, catalog=FixedCatalog([a]))
        assert cursor.state is CursorState.UNOPENED
        assert cursor.next_row()["message"] == "a0"
        assert cursor.state is CursorState.FILE_OPEN
        cursor.close()

    def test_none_after_done(self, spool_dir, two_segments):
        """Test further calls after the end keep returning None"""
        a, _ = two_segments
        with ScanCursor(spool_dir, catalog=FixedCatalog([a])) as cursor:
            messages(cursor)
            assert cursor.next_row() is None
            assert cursor.next_row() is None

    def test_one_file_open_at_a_time(self, spool_dir, two_segments, monkeypatch):
        """Test the previous reader is closed before the next opens"""
        a, b = two_segments
        opened = []
        original_init = RecordReader.__init__

        def tracking_init(self, path):
            assert all(r.closed for r in opened)
            original_init(self, path)
            opened.append(self)

        monkeypatch.setattr(RecordReader, "__init__", tracking_init)
        with ScanCursor(spool_dir, catalog=FixedCatalog([a, b])) as cursor:
            messages(cursor)
        assert len(opened) == 2
        assert all(r.closed for r in opened)

    def test_close_idempotent(self, spool_dir, two_segments):
        """Test close() mid-file releases the reader and can repeat"""
        a, _ = two_segments
        cursor = ScanCursor(spool_dir, catalog=FixedCatalog([a]))
        cursor.next_row()
        cursor.close()
        cursor.close()
        assert cursor.current_path is None
        assert cursor.state is CursorState.DONE


class TestReset:
    """Rewinding"""

    def test_reset_mid_scan(self, spool_dir, two_segments):
        """Test reset starts again from the first file"""
        a, b = two_segments
        with ScanCursor(spool_dir, catalog=FixedCatalog([a, b])) as cursor:
            cursor.next_row()
            cursor.next_row()
            cursor.next_row()
            cursor.reset()
            assert messages(cursor) == ["a0", "a1", "b0", "b1", "b2"]

    def test_reset_after_done(self, spool_dir, two_segments):
        """Test reset after the end yields the same rows again"""
        a, b = two_segments
        with ScanCursor(spool_dir, catalog=FixedCatalog([a, b])) as cursor:
            first = messages(cursor)
            cursor.reset()
            assert messages(cursor) == first

    def test_reset_keeps_file_list(self, spool_dir, two_segments):
        """Test reset reuses the files found at open"""
        a, b = two_segments
        catalog = FixedCatalog([a, b])
        with ScanCursor(spool_dir, catalog=catalog) as cursor:
            messages(cursor)
            cursor.reset()
            messages(cursor)
        assert catalog.calls == 1


class TestColumnHint:
    """Projection hint is advisory"""

    def test_hint_recorded_rows_complete(self, spool_dir, two_segments):
        """Test a narrow hint still yields full rows"""
        a, _ = two_segments
        with ScanCursor(spool_dir, catalog=FixedCatalog([a]), columns=["message", "log_time"]) as cursor:
            assert cursor.selected_columns == ["log_time", "message"]
            assert len(cursor.next_row()) == 23

    def test_star_means_all(self, spool_dir):
        """Test a whole-row reference selects everything"""
        assert ScanCursor(spool_dir, columns=["*"]).selected_columns is None

    def test_unknown_column(self, spool_dir):
        """Test an undeclared column is rejected"""
        with pytest.raises(KeyError):
            ScanCursor(spool_dir, columns=["no_such_column"])


class TestFailures:
    """Mid-scan errors"""

    def test_malformed_record(self, spool_dir, two_segments):
        """Test a bad record raises ScanError naming file and line, after closing the reader"""
        a, b = two_segments
        with open(b, "a", encoding="utf-8") as f:
            f.write("garbage,line\n")

        cursor = ScanCursor(spool_dir, catalog=FixedCatalog([a, b]))
        rows = []
        with pytest.raises(ScanError) as excinfo:
            for row in cursor:
                rows.append(row)

        assert len(rows) == 5
        assert excinfo.value.path == b
        assert excinfo.value.line_number == 4
        assert str(b) in str(excinfo.value)
        assert cursor.current_path is None
        assert cursor.state is CursorState.DONE

    def test_vanished_file(self, spool_dir, two_segments):
        """Test a file removed after discovery raises ScanError"""
        a, b = two_segments
        cursor = ScanCursor(spool_dir, catalog=FixedCatalog([a, b]))
        cursor.open()
        b.unlink()

        with pytest.raises(ScanError, match="could not open segment"):
            messages(cursor)

    def test_unlistable_directory(self, tmp_path):
        """Test a directory that cannot be listed raises ScanError"""
        path = tmp_path / "file"
        path.write_text("")
        with pytest.raises(ScanError, match="could not list"):
            ScanCursor(path).open()
