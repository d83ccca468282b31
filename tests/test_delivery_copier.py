"""
Tests for the delivery copier.

These tests verify:
1. Destinations are always fresh: name, name.0, name.1, ...
2. Copies are byte-identical with source permission bits
3. Symlinks are skipped and logged, never copied
4. The first failure stops the walk and leaves partial output in place
"""

import os
import shutil
import stat
from pathlib import Path

import pytest

from runwatch.deliver import (
    CopyStats,
    DeliveryCopyError,
    DeliveryStatus,
    OwnerIdentity,
    copy_tree,
    create_destination,
    deliver_project,
    resolve_destination,
)
from runwatch.deliver import copier
from runwatch.logs import LogRecorder


def _identity(home: Path) -> OwnerIdentity:
    st = os.stat(home)
    return OwnerIdentity(
        username="jdoe", home=str(home), uid=st.st_uid, gid=st.st_gid,
        mode=st.st_mode & 0o7777,
    )


def _mode(path: Path) -> int:
    return stat.S_IMODE(os.lstat(path).st_mode)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A small Project directory with a nested read-only directory."""
    root = tmp_path / "src" / "Project_jdoe"
    (root / "Sample_1").mkdir(parents=True)
    (root / "Sample_1" / "S1_R1.fastq.gz").write_bytes(b"@read1\nACGT\n+\nIIII\n")
    (root / "summary.txt").write_text("2 samples\n")
    os.chmod(root / "summary.txt", 0o640)
    os.chmod(root / "Sample_1", 0o550)
    yield root
    os.chmod(root / "Sample_1", 0o750)


# -----------------------------------------------------------------------------
# Destination naming
# -----------------------------------------------------------------------------

class TestResolveDestination:
    """Numbered names, never reuse."""

    def test_plain_name_when_free(self, tmp_path: Path):
        assert resolve_destination(tmp_path, "RUN1") == tmp_path / "RUN1"

    def test_numbered_names(self, tmp_path: Path):
        (tmp_path / "RUN1").mkdir()
        (tmp_path / "RUN1.0").mkdir()

        assert resolve_destination(tmp_path, "RUN1") == tmp_path / "RUN1.1"

    def test_dangling_symlink_counts_as_taken(self, tmp_path: Path):
        (tmp_path / "RUN1").symlink_to(tmp_path / "nowhere")
        assert resolve_destination(tmp_path, "RUN1") == tmp_path / "RUN1.0"


class TestCreateDestination:
    def test_mode_from_storage_directory(self, tmp_path: Path):
        home = tmp_path / "home"
        home.mkdir()
        os.chmod(home, 0o710)

        created = create_destination(home, "RUN1", _identity(home))

        assert created == home / "RUN1"
        assert _mode(created) == 0o710


# -----------------------------------------------------------------------------
# copy_tree
# -----------------------------------------------------------------------------

class TestCopyTree:
    """Recursive copy semantics."""

    def test_contents_and_modes_preserved(self, tmp_path: Path, project: Path):
        dest = tmp_path / "dest"
        dest.mkdir()
        st = os.stat(dest)

        stats = copy_tree(project, dest, st.st_uid, st.st_gid)

        assert (dest / "summary.txt").read_text() == "2 samples\n"
        assert (dest / "Sample_1" / "S1_R1.fastq.gz").read_bytes() == \
            (project / "Sample_1" / "S1_R1.fastq.gz").read_bytes()
        assert _mode(dest / "summary.txt") == 0o640
        assert _mode(dest / "Sample_1") == 0o550
        assert stats.files == 2
        assert stats.directories == 1
        os.chmod(dest / "Sample_1", 0o750)

    def test_symlinks_skipped(self, tmp_path: Path, project: Path):
        (project / "link.txt").symlink_to(project / "summary.txt")
        dest = tmp_path / "dest"
        dest.mkdir()
        log = LogRecorder()

        stats = copy_tree(project, dest, os.getuid(), os.getgid(), log=log)

        assert not os.path.lexists(dest / "link.txt")
        assert str(project / "link.txt") in stats.skipped
        assert "symbolic link" in log.buffered_text
        os.chmod(dest / "Sample_1", 0o750)

    def test_existing_target_file_is_failure(self, tmp_path: Path, project: Path):
        """Nothing is ever overwritten; the walk stops at the collision."""
        dest = tmp_path / "dest"
        dest.mkdir()
        (dest / "summary.txt").write_text("keep me\n")

        with pytest.raises(DeliveryCopyError):
            copy_tree(project, dest, os.getuid(), os.getgid())

        assert (dest / "summary.txt").read_text() == "keep me\n"

    def test_symlink_at_target_not_followed(self, tmp_path: Path, project: Path):
        """A symlink already sitting at a target name is a collision."""
        victim = tmp_path / "victim.conf"
        victim.write_text("secret\n")
        os.chmod(victim, 0o600)
        dest = tmp_path / "dest"
        dest.mkdir()
        (dest / "summary.txt").symlink_to(victim)

        with pytest.raises(DeliveryCopyError):
            copy_tree(project, dest, os.getuid(), os.getgid())

        assert victim.read_text() == "secret\n"
        assert _mode(victim) == 0o600
        if (dest / "Sample_1").exists():
            os.chmod(dest / "Sample_1", 0o750)

    def test_target_swapped_for_symlink_mid_copy(self, tmp_path: Path, monkeypatch):
        """Ownership and mode land on the copied file, not on a swapped-in link."""
        source = tmp_path / "src"
        source.mkdir()
        (source / "data.txt").write_text("reads\n")
        os.chmod(source / "data.txt", 0o644)
        victim = tmp_path / "victim.conf"
        victim.write_text("secret\n")
        os.chmod(victim, 0o600)
        dest = tmp_path / "dest"
        dest.mkdir()

        real_copyfileobj = shutil.copyfileobj

        def copy_then_swap(src, dst, *args, **kwargs):
            real_copyfileobj(src, dst, *args, **kwargs)
            os.unlink(dest / "data.txt")
            os.symlink(victim, dest / "data.txt")

        monkeypatch.setattr(copier.shutil, "copyfileobj", copy_then_swap)
        copy_tree(source, dest, os.getuid(), os.getgid())

        assert _mode(victim) == 0o600
        assert victim.read_text() == "secret\n"

    def test_symlinked_destination_refused(self, tmp_path: Path, project: Path):
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        dest = tmp_path / "dest"
        dest.symlink_to(elsewhere)

        with pytest.raises(DeliveryCopyError):
            copy_tree(project, dest, os.getuid(), os.getgid())

        assert list(elsewhere.iterdir()) == []

    def test_depth_limit(self, tmp_path: Path):
        source = tmp_path / "deep"
        (source / "a" / "b" / "c").mkdir(parents=True)
        dest = tmp_path / "dest"
        dest.mkdir()

        with pytest.raises(DeliveryCopyError):
            copy_tree(source, dest, os.getuid(), os.getgid(), max_depth=1)

    def test_stats_accumulate(self, tmp_path: Path, project: Path):
        dest = tmp_path / "dest"
        dest.mkdir()
        stats = CopyStats()

        result = copy_tree(project, dest, os.getuid(), os.getgid(), stats=stats)

        assert result is stats
        assert stats.bytes > 0
        os.chmod(dest / "Sample_1", 0o750)


# -----------------------------------------------------------------------------
# deliver_project
# -----------------------------------------------------------------------------

class TestDeliverProject:
    """End-to-end delivery of one Project directory."""

    def _layout(self, tmp_path: Path, username: str) -> Path:
        run_folder = tmp_path / "runs" / "RUN1"
        project = run_folder / "Data" / "Intensities" / "BaseCalls" / f"Project_{username}"
        project.mkdir(parents=True)
        (project / "S1_R1.fastq.gz").write_bytes(b"reads")
        return project

    def test_delivered_twice_never_collides(self, tmp_path: Path, settings, home_dir):
        home = home_dir("jdoe")
        project = self._layout(tmp_path, "jdoe")
        run_folder = tmp_path / "runs" / "RUN1"

        first = deliver_project(project, run_folder, settings)
        second = deliver_project(project, run_folder, settings)

        assert first.status == DeliveryStatus.DELIVERED
        assert second.status == DeliveryStatus.DELIVERED
        assert first.destination == str(home / "RUN1")
        assert second.destination == str(home / "RUN1.0")
        for destination in (first.destination, second.destination):
            assert (Path(destination) / "S1_R1.fastq.gz").read_bytes() == b"reads"

    def test_unknown_owner_needs_manual_delivery(self, tmp_path: Path, settings):
        project = self._layout(tmp_path, "nobody")

        result = deliver_project(project, tmp_path / "runs" / "RUN1", settings)

        assert result.status == DeliveryStatus.MANUAL
        assert result.username == "nobody"
        assert result.destination is None

    def test_copy_failure_reported(self, tmp_path: Path, settings, home_dir, monkeypatch):
        home_dir("jdoe")
        project = self._layout(tmp_path, "jdoe")

        def fail(*args, **kwargs):
            raise DeliveryCopyError("src", "dst", "disk full")

        monkeypatch.setattr("runwatch.deliver.copier.copy_tree", fail)
        result = deliver_project(project, tmp_path / "runs" / "RUN1", settings)

        assert result.status == DeliveryStatus.FAILED
        assert "disk full" in result.failure_reason
        assert Path(result.destination).is_dir()
