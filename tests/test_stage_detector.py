"""
Tests for stage classification and run folder scanning.

These tests verify:
1. Complete run folders are skipped with no mutation
2. Locked run folders are skipped, decided by flock and not file existence
3. Scan hands back at most one eligible run folder, lock held
"""

from pathlib import Path

from runwatch.locking import acquire_lock, release_lock
from runwatch.logs import LogRecorder
from runwatch.stages import StageStatus, classify, find_candidate


class TestClassify:
    """Tests for classify()."""

    def test_complete_folder_untouched(self, run_folder_factory, settings):
        folder = run_folder_factory()
        (folder / settings.complete_marker).write_text("done\n")
        before = sorted(p.name for p in folder.iterdir())

        result = classify(folder, settings)

        assert result.status == StageStatus.ALREADY_COMPLETE
        assert result.lock is None
        assert sorted(p.name for p in folder.iterdir()) == before

    def test_locked_folder(self, run_folder_factory, settings):
        folder = run_folder_factory()
        holder = acquire_lock(folder / settings.lock_filename)
        try:
            result = classify(folder, settings)
        finally:
            release_lock(holder)

        assert result.status == StageStatus.ALREADY_LOCKED
        assert not result.eligible

    def test_eligible_holds_lock(self, run_folder_factory, settings):
        folder = run_folder_factory()

        result = classify(folder, settings)

        try:
            assert result.eligible
            assert result.lock is not None and result.lock.held
            assert (folder / settings.lock_filename).exists()
        finally:
            release_lock(result.lock)

    def test_stale_lock_file_is_eligible(self, run_folder_factory, settings):
        folder = run_folder_factory()
        (folder / settings.lock_filename).write_text("12345\n")

        result = classify(folder, settings)

        assert result.eligible
        release_lock(result.lock)


class TestFindCandidate:
    """Tests for find_candidate()."""

    def test_empty_directory(self, tmp_path: Path, settings):
        log = LogRecorder()
        assert find_candidate(tmp_path, settings, log=log) is None
        assert "No eligible run folders" in log.buffered_text

    def test_hidden_and_files_ignored(self, tmp_path: Path, settings):
        (tmp_path / ".snapshot").mkdir()
        (tmp_path / "notes.txt").write_text("x")

        assert find_candidate(tmp_path, settings) is None
        assert not (tmp_path / ".snapshot" / settings.lock_filename).exists()

    def test_skips_complete_and_locked(self, tmp_path: Path, run_folder_factory, settings):
        complete = run_folder_factory("run_a", parent=tmp_path)
        (complete / settings.complete_marker).write_text("done\n")
        busy = run_folder_factory("run_b", parent=tmp_path)
        holder = acquire_lock(busy / settings.lock_filename)
        eligible = run_folder_factory("run_c", parent=tmp_path)

        log = LogRecorder()
        try:
            result = find_candidate(tmp_path, settings, log=log)
        finally:
            release_lock(holder)

        assert result is not None
        assert result.run_folder == eligible
        release_lock(result.lock)
        assert "already complete" in log.buffered_text
        assert "another instance" in log.buffered_text

    def test_at_most_one_candidate(self, tmp_path: Path, run_folder_factory, settings):
        """Only the returned candidate is locked; the others are untouched."""
        for name in ("run_a", "run_b", "run_c"):
            run_folder_factory(name, parent=tmp_path)

        result = find_candidate(tmp_path, settings)

        assert result is not None
        locked = [
            p for p in tmp_path.iterdir() if (p / settings.lock_filename).exists()
        ]
        assert locked == [result.run_folder]
        release_lock(result.lock)
