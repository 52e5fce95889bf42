"""
Tests for the pglog command line
"""

import json

import pytest

import pglog.cli
from pglog.cli import main
from pglog.models import Severity


@pytest.fixture
def populated(spool_dir, write_segment, make_event):
    write_segment(
        spool_dir / "pglog-2021-01-01_000000.dat",
        [make_event("first", severity=Severity.LOG), make_event("second", severity=Severity.ERROR)],
    )
    return spool_dir


@pytest.fixture(autouse=True)
def no_env_directory(monkeypatch):
    monkeypatch.delenv("PGLOG_DIRECTORY", raising=False)
    monkeypatch.delenv("PGLOG_MIN_MESSAGES", raising=False)


class TestFiles:
    def test_lists_segments(self, populated, capsys):
        """Test segment names are printed"""
        assert main(["files", "--directory", str(populated)]) == 0
        assert "pglog-2021-01-01_000000.dat" in capsys.readouterr().out

    def test_empty(self, spool_dir, capsys):
        """Test an empty directory is reported"""
        assert main(["files", "-d", str(spool_dir)]) == 0
        assert "No segment files" in capsys.readouterr().out


class TestScan:
    def test_prints_rows(self, populated, capsys):
        """Test messages appear in the output"""
        assert main(["scan", "-d", str(populated), "--columns", "error_severity,message"]) == 0
        out = capsys.readouterr().out
        assert "first" in out
        assert "ERROR" in out

    def test_limit(self, populated, capsys):
        """Test --limit truncates the output"""
        assert main(["scan", "-d", str(populated), "-c", "message", "-n", "1"]) == 0
        out = capsys.readouterr().out
        assert "first" in out
        assert "second" not in out

    def test_negative_limit(self, populated, capsys):
        """Test a negative --limit is a usage error"""
        assert main(["scan", "-d", str(populated), "-n", "-1"]) == 2
        assert "--limit" in capsys.readouterr().err

    def test_unknown_column(self, populated, capsys):
        """Test an unknown column is a usage error"""
        assert main(["scan", "-d", str(populated), "-c", "bogus"]) == 2
        assert "unknown column" in capsys.readouterr().err

    def test_malformed(self, populated, capsys):
        """Test a broken segment exits non-zero"""
        (populated / "pglog-2021-01-02_000000.dat").write_text("bad\n")
        assert main(["scan", "-d", str(populated)]) == 1
        assert "Error scanning segments" in capsys.readouterr().err


class TestEstimate:
    def test_estimate(self, spool_dir, capsys):
        """Test the 10 KiB numbers are printed"""
        spool_dir.mkdir()
        (spool_dir / "pglog-2021-01-01_000000.dat").write_bytes(b"x" * 10240)
        assert main(["estimate", "-d", str(spool_dir), "--row-width", "200"]) == 0
        out = capsys.readouterr().out
        assert "Pages:         2" in out
        assert "Tuples:        46" in out


class TestEmit:
    def test_emit_writes_segment(self, spool_dir, capsys):
        """Test an event is spooled and can be scanned back"""
        assert main(["emit", "-d", str(spool_dir), "-s", "warning", "disk almost full"]) == 0
        assert "Wrote event to" in capsys.readouterr().out

        assert main(["scan", "-d", str(spool_dir), "-c", "message"]) == 0
        assert "disk almost full" in capsys.readouterr().out

    def test_emit_below_threshold(self, spool_dir, capsys):
        """Test an event under min_messages is not written"""
        assert main(["emit", "-d", str(spool_dir), "-s", "info", "chatter"]) == 0
        assert "not written" in capsys.readouterr().out
        assert not spool_dir.exists()

    def test_emit_bad_severity(self, spool_dir, capsys):
        """Test an unknown severity is a usage error"""
        assert main(["emit", "-d", str(spool_dir), "-s", "loud", "x"]) == 2
        assert "invalid severity" in capsys.readouterr().err


class TestConfigFile:
    @pytest.fixture
    def logging_calls(self, monkeypatch):
        """Arguments main() hands to setup_logging"""
        calls = []
        monkeypatch.setattr(pglog.cli, "setup_logging", lambda section, **overrides: calls.append((section, overrides)))
        return calls

    def test_logging_section_applied(self, tmp_path, logging_calls):
        """Test the logging section of --config reaches setup_logging"""
        config_file = tmp_path / "pglog.json"
        config_file.write_text(json.dumps({"logging": {"level": "DEBUG", "json_logs": True}}))

        assert main(["--config", str(config_file), "files", "-d", str(tmp_path / "none")]) == 0
        section, overrides = logging_calls[0]
        assert section["level"] == "DEBUG"
        assert section["json_logs"] is True
        assert overrides == {"console_level": "WARNING"}

    def test_verbose_console(self, tmp_path, logging_calls):
        """Test --verbose turns on debug output on the console"""
        assert main(["--verbose", "files", "-d", str(tmp_path)]) == 0
        assert logging_calls[0][1] == {"console_level": "DEBUG"}

    def test_spool_directory_from_file(self, populated, tmp_path, logging_calls, capsys):
        """Test the spool section supplies the default directory"""
        config_file = tmp_path / "pglog.json"
        config_file.write_text(json.dumps({"spool": {"directory": str(populated)}}))

        assert main(["--config", str(config_file), "files"]) == 0
        assert "pglog-2021-01-01_000000.dat" in capsys.readouterr().out

    def test_invalid_config(self, tmp_path, logging_calls, capsys):
        """Test a rejected config file is a usage error"""
        config_file = tmp_path / "pglog.json"
        config_file.write_text(json.dumps({"logging": {"level": "LOUD"}}))

        assert main(["--config", str(config_file), "files"]) == 2
        assert "Invalid log level" in capsys.readouterr().err
        assert logging_calls == []
