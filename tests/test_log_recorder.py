"""
Tests for LogRecorder.

These tests verify:
1. Every write reaches stdout, whether or not a file is open
2. Text written before open() is moved into the file after the header
3. Existing logs are rotated, never overwritten
4. close() writes the trailer exactly once
"""

import os
from pathlib import Path

import pytest

from runwatch.errors import SetupError
from runwatch.logs import LogOpenError, LogRecorder


class TestBuffering:
    """Behavior before a log file is opened."""

    def test_writes_are_buffered(self, capsys):
        log = LogRecorder()
        log.line("Scanning for runs")

        assert log.buffered_text == "Scanning for runs\n"
        assert not log.is_open
        assert log.contents() == "Scanning for runs\n"
        assert capsys.readouterr().out == "Scanning for runs\n"

    def test_line_adds_one_newline(self):
        log = LogRecorder()
        log.line("already terminated\n")
        log.line("bare")
        assert log.buffered_text == "already terminated\nbare\n"


class TestOpen:
    """Opening, rotation and header."""

    def test_header_then_buffered_text(self, tmp_path: Path):
        log = LogRecorder(program_name="runwatch", support_contact="help@example.com")
        log.line("early message")
        log.open(tmp_path / "workflow-log.txt")
        log.line("late message")
        log.close()

        text = (tmp_path / "workflow-log.txt").read_text()
        assert text.startswith("This is the log of the runwatch program!\n")
        assert "help@example.com" in text
        assert text.index("early message") < text.index("late message")
        assert log.buffered_text == ""

    def test_existing_log_rotated(self, tmp_path: Path):
        path = tmp_path / "workflow-log.txt"
        path.write_text("previous run\n")
        (tmp_path / "workflow-log.txt.old").write_text("run before that\n")

        log = LogRecorder()
        log.open(path)
        log.close()

        assert (tmp_path / "workflow-log.txt.old").read_text() == "previous run\n"
        assert (tmp_path / "workflow-log.txt.old.old").read_text() == "run before that\n"
        assert path.read_text().startswith("This is the log")

    def test_writes_flushed_immediately(self, tmp_path: Path):
        """Another reader sees each line without close()."""
        log = LogRecorder()
        log.open(tmp_path / "workflow-log.txt")
        log.line("visible now")

        assert "visible now" in (tmp_path / "workflow-log.txt").read_text()
        log.close()

    def test_open_failure_is_setup_error(self, tmp_path: Path):
        """An unopenable log raises and explains itself in the buffer."""
        log = LogRecorder()
        bad_path = tmp_path / "missing-dir" / "workflow-log.txt"

        with pytest.raises(LogOpenError) as exc_info:
            log.open(bad_path)

        assert isinstance(exc_info.value, SetupError)
        assert str(bad_path) in log.buffered_text
        assert not log.is_open


    def test_dangling_symlink_moved_aside(self, tmp_path: Path):
        """A symlink at the log path is rotated, its target never created."""
        path = tmp_path / "workflow-log.txt"
        elsewhere = tmp_path / "elsewhere.txt"
        path.symlink_to(elsewhere)

        log = LogRecorder()
        log.open(path)
        log.close()

        assert not os.path.lexists(elsewhere)
        assert not path.is_symlink()
        assert (tmp_path / "workflow-log.txt.old").is_symlink()
        assert path.read_text().startswith("This is the log")

    def test_symlink_to_existing_file_left_alone(self, tmp_path: Path):
        path = tmp_path / "workflow-log.txt"
        victim = tmp_path / "victim.conf"
        victim.write_text("keep me\n")
        path.symlink_to(victim)

        log = LogRecorder()
        log.open(path)
        log.line("new run")
        log.close()

        assert victim.read_text() == "keep me\n"
        assert "new run" in path.read_text()

class TestClose:
    """Trailer and post-close behavior."""

    def test_trailer_written_once(self, tmp_path: Path):
        path = tmp_path / "workflow-log.txt"
        log = LogRecorder()
        log.open(path)
        log.close()
        log.close()

        text = path.read_text()
        assert text.count("Logging complete!") == 1
        assert "The time is now" in text

    def test_contents_after_close(self, tmp_path: Path):
        """The notifier can still read the full log after close."""
        log = LogRecorder()
        log.open(tmp_path / "workflow-log.txt")
        log.line("analysis finished")
        log.close()

        contents = log.contents()
        assert "analysis finished" in contents
        assert "Logging complete!" in contents

    def test_stdout_receives_everything(self, tmp_path: Path, capsys):
        log = LogRecorder()
        log.open(tmp_path / "workflow-log.txt")
        log.line("to both sinks")
        log.close()

        assert "to both sinks" in capsys.readouterr().out
