"""Tests for the drive filesystem view (listing, path handling, removal)."""

import asyncio

import pytest

from core.filesystem import DriveFileSystem
from core.filesystem.drive import BYTES_PER_MB, normalize_drive_path
from core.git import InvalidPathError, Pipeline, Stage, Status


@pytest.fixture
def drive_root(tmp_path):
    root = tmp_path / "drive"
    (root / ".git").mkdir(parents=True)
    (root / ".git" / "HEAD").write_text("ref: refs/heads/main\n", encoding="utf-8")
    (root / "b.txt").write_bytes(b"x" * BYTES_PER_MB)
    (root / "a.txt").write_text("hello", encoding="utf-8")
    (root / "docs").mkdir()
    (root / "docs" / "c.md").write_text("c", encoding="utf-8")
    return root


@pytest.fixture
def pipeline(fake_backend):
    return Pipeline(fake_backend, push_interval=0.05, pull_interval=0.01)


@pytest.fixture
def drive(drive_root, pipeline):
    return DriveFileSystem(drive_root, pipeline)


class TestNormalizeDrivePath:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("", ""),
            (None, ""),
            ("/", ""),
            (".", ""),
            ("/docs/", "docs"),
            ("docs/c.md", "docs/c.md"),
            ("docs\\c.md", "docs/c.md"),
            ("docs/../a.txt", "a.txt"),
            ("./docs//c.md", "docs/c.md"),
        ],
    )
    def test_clean_paths(self, raw, expected):
        assert normalize_drive_path(raw) == expected

    @pytest.mark.parametrize("raw", ["..", "../etc/passwd", "docs/../../x", ".git", "docs/.git/config", "/.git/HEAD"])
    def test_rejected_paths(self, raw):
        with pytest.raises(InvalidPathError):
            normalize_drive_path(raw)

    def test_invalid_path_is_value_error(self):
        with pytest.raises(ValueError):
            normalize_drive_path("../x")


class TestReadDir:
    def test_root_sorted_without_git_metadata(self, drive):
        entries = drive.read_dir("/")
        assert [e.name for e in entries] == ["a.txt", "b.txt", "docs"]

    def test_sizes_in_megabytes(self, drive):
        entries = {e.name: e for e in drive.read_dir("")}
        assert entries["b.txt"].size_mb == 1.0
        assert entries["a.txt"].size_mb == pytest.approx(5 / BYTES_PER_MB)
        assert entries["docs"].is_dir is True
        assert entries["docs"].size_mb == 0.0

    def test_subdirectory(self, drive):
        entries = drive.read_dir("docs")
        assert [(e.name, e.is_dir) for e in entries] == [("c.md", False)]

    def test_empty_directory(self, drive, drive_root):
        (drive_root / "empty").mkdir()
        assert drive.read_dir("empty") == []

    def test_missing_directory(self, drive):
        with pytest.raises(FileNotFoundError):
            drive.read_dir("nope")

    def test_file_is_not_a_directory(self, drive):
        with pytest.raises(NotADirectoryError):
            drive.read_dir("a.txt")

    def test_git_metadata_not_listable(self, drive):
        with pytest.raises(InvalidPathError):
            drive.read_dir(".git")


class TestRemove:
    @pytest.mark.asyncio
    async def test_remove_file_submits_commit(self, drive, drive_root, pipeline):
        op_id = await drive.remove("/a.txt")

        assert not (drive_root / "a.txt").exists()
        operation = pipeline.get(op_id)
        assert operation.stage is Stage.QUEUED
        assert operation.status is Status.PENDING

    @pytest.mark.asyncio
    async def test_remove_directory(self, drive, drive_root):
        await drive.remove("docs/")
        assert not (drive_root / "docs").exists()
        assert (drive_root / "a.txt").exists()

    @pytest.mark.asyncio
    async def test_remove_missing_path(self, drive, pipeline):
        with pytest.raises(FileNotFoundError):
            await drive.remove("ghost.txt")
        assert pipeline.status()["operations"] == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["", "/", "../outside", ".git"])
    async def test_remove_rejects_root_and_escapes(self, drive, drive_root, raw):
        with pytest.raises(InvalidPathError):
            await drive.remove(raw)
        assert (drive_root / ".git" / "HEAD").exists()

    @pytest.mark.asyncio
    async def test_remove_runs_through_pipeline(self, drive, pipeline, fake_backend):
        await pipeline.start()
        try:
            op_id = await drive.remove("a.txt")
            channel = pipeline.listen(op_id)

            async def _collect():
                return [snapshot async for _, snapshot in channel.stream()]

            snapshots = await asyncio.wait_for(_collect(), 3)
        finally:
            await pipeline.stop()

        assert [(s.stage, s.progress) for s in snapshots] == [
            (Stage.QUEUED, 0),
            (Stage.ADD, 33),
            (Stage.COMMIT, 66),
            (Stage.PUSH, 69),
            (Stage.PUSH, 100),
        ]
        assert snapshots[-1].status is Status.SUCCESS
        assert ("stage", ("a.txt",)) in fake_backend.calls
        assert ("commit", "rm: a.txt") in fake_backend.calls


class TestSymlinkContainment:
    @pytest.fixture
    def outside(self, tmp_path, drive_root):
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "secret.txt").write_text("keep", encoding="utf-8")
        (drive_root / "link").symlink_to(outside, target_is_directory=True)
        return outside

    @pytest.mark.asyncio
    async def test_remove_through_symlink_rejected(self, drive, outside, pipeline):
        with pytest.raises(InvalidPathError):
            await drive.remove("link/secret.txt")
        assert (outside / "secret.txt").exists()
        assert pipeline.status()["operations"] == 0

    def test_list_through_symlink_rejected(self, drive, outside):
        with pytest.raises(InvalidPathError):
            drive.read_dir("link")

    @pytest.mark.asyncio
    async def test_remove_symlink_itself(self, drive, drive_root, outside):
        await drive.remove("link")
        assert not (drive_root / "link").is_symlink()
        assert (outside / "secret.txt").exists()

    def test_symlink_inside_drive_is_listable(self, drive, drive_root):
        (drive_root / "alias").symlink_to(drive_root / "docs", target_is_directory=True)
        assert [e.name for e in drive.read_dir("alias")] == ["c.md"]
