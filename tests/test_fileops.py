import errno
import os

import pytest

from smart_sorter.errors import ConflictResolutionError
from smart_sorter.fileops import LocalFileSystem, resolve_conflict, split_name, wait_for_file_stability


class TestResolveConflict:
    def test_free_path_returned_unchanged(self, tmp_path):
        desired = tmp_path / "a.txt"
        assert resolve_conflict(desired) == desired

    def test_appends_counter_before_extension(self, tmp_path):
        (tmp_path / "a.txt").write_text("x")
        (tmp_path / "a (1).txt").write_text("x")
        assert resolve_conflict(tmp_path / "a.txt") == tmp_path / "a (2).txt"

    def test_name_without_extension(self, tmp_path):
        (tmp_path / "Makefile").write_text("x")
        assert resolve_conflict(tmp_path / "Makefile") == tmp_path / "Makefile (1)"

    def test_dotfile_is_all_base(self, tmp_path):
        (tmp_path / ".env").write_text("x")
        assert resolve_conflict(tmp_path / ".env") == tmp_path / ".env (1)"

    def test_multi_dot_name_splits_at_last_dot(self, tmp_path):
        (tmp_path / "data.tar.gz").write_text("x")
        assert resolve_conflict(tmp_path / "data.tar.gz") == tmp_path / "data.tar (1).gz"

    def test_uses_given_existence_check(self, tmp_path):
        taken = {tmp_path / "a.txt", tmp_path / "a (1).txt", tmp_path / "a (2).txt"}
        result = resolve_conflict(tmp_path / "a.txt", lambda p: p in taken)
        assert result == tmp_path / "a (3).txt"
        assert result not in taken

    def test_idempotent_on_own_output(self, tmp_path):
        taken = {tmp_path / "a.txt"}
        exists = lambda p: p in taken
        first = resolve_conflict(tmp_path / "a.txt", exists)
        assert resolve_conflict(first, exists) == first

    def test_max_attempts(self, tmp_path):
        with pytest.raises(ConflictResolutionError):
            resolve_conflict(tmp_path / "a.txt", lambda p: True, max_attempts=5)


@pytest.mark.parametrize("name,expected", [
    ("a.txt", ("a", ".txt")),
    ("a", ("a", "")),
    (".bashrc", (".bashrc", "")),
    ("a.b.c", ("a.b", ".c")),
])
def test_split_name(name, expected):
    assert split_name(name) == expected


class TestLocalFileSystem:
    def test_lists_only_regular_files(self, tmp_path, make_files):
        make_files("a.txt", "b.jpg", "sub/c.txt")
        names = sorted(name for name, _ in LocalFileSystem().list_regular_files(tmp_path))
        assert names == ["a.txt", "b.jpg"]

    def test_listing_missing_directory_raises(self, tmp_path):
        with pytest.raises(OSError):
            LocalFileSystem().list_regular_files(tmp_path / "missing")

    def test_listing_a_file_raises(self, tmp_path, make_files):
        make_files("a.txt")
        with pytest.raises(OSError):
            LocalFileSystem().list_regular_files(tmp_path / "a.txt")

    def test_move_does_not_overwrite(self, tmp_path, make_files):
        make_files("a.txt", "b.txt")
        with pytest.raises(FileExistsError):
            LocalFileSystem().move(tmp_path / "a.txt", tmp_path / "b.txt")
        assert (tmp_path / "a.txt").exists()
        assert (tmp_path / "b.txt").read_text() == "content of b.txt"

    def test_move_with_overwrite(self, tmp_path, make_files):
        make_files("a.txt", "b.txt")
        LocalFileSystem().move(tmp_path / "a.txt", tmp_path / "b.txt", overwrite=True)
        assert not (tmp_path / "a.txt").exists()
        assert (tmp_path / "b.txt").read_text() == "content of a.txt"

    def test_move_falls_back_across_devices(self, tmp_path, make_files, monkeypatch):
        make_files("a.txt")
        (tmp_path / "dest").mkdir()

        def cross_device(src, dst):
            raise OSError(errno.EXDEV, "Invalid cross-device link")

        monkeypatch.setattr(os, "rename", cross_device)
        LocalFileSystem().move(tmp_path / "a.txt", tmp_path / "dest" / "a.txt")
        assert (tmp_path / "dest" / "a.txt").read_text() == "content of a.txt"
        assert not (tmp_path / "a.txt").exists()

    def test_create_directories_nested(self, tmp_path):
        fs = LocalFileSystem()
        fs.create_directories(tmp_path / "x" / "y")
        fs.create_directories(tmp_path / "x" / "y")
        assert fs.exists(tmp_path / "x" / "y")


def test_stability_of_existing_file(tmp_path, make_files):
    make_files("a.txt")
    assert wait_for_file_stability(tmp_path / "a.txt", delay=0)


def test_stability_of_missing_file(tmp_path):
    assert not wait_for_file_stability(tmp_path / "gone.txt", delay=0)
