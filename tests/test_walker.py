import os
from pathlib import Path

import pytest

from yearsize import walker
from yearsize.errors import RootUnavailableError
from yearsize.models import WalkEntry, WalkError
from yearsize.walker import open_tree, walk_tree


def _files(results):
    return sorted(r.path.name for r in results if isinstance(r, WalkEntry) and r.is_file)


def test_walks_nested_directories(tmp_path):
    (tmp_path / "a" / "b" / "c").mkdir(parents=True)
    (tmp_path / "top.txt").write_text("x")
    (tmp_path / "a" / "mid.txt").write_text("x")
    (tmp_path / "a" / "b" / "c" / "leaf.txt").write_text("x")

    results = list(walk_tree(tmp_path))

    assert _files(results) == ["leaf.txt", "mid.txt", "top.txt"]
    dirs = sorted(r.path.name for r in results if isinstance(r, WalkEntry) and not r.is_file)
    assert dirs == ["a", "b", "c"]
    assert not any(isinstance(r, WalkError) for r in results)


def test_empty_directory_yields_nothing(tmp_path):
    assert list(walk_tree(tmp_path)) == []


def test_walk_is_lazy_and_restartable(tmp_path):
    (tmp_path / "one.txt").write_text("x")
    first = walk_tree(tmp_path)
    assert next(first).path.name == "one.txt"
    assert _files(walk_tree(tmp_path)) == ["one.txt"]


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
def test_symlinks_are_not_regular_files_and_not_followed(tmp_path):
    target = tmp_path / "real"
    target.mkdir()
    (target / "data.bin").write_bytes(b"123")
    (tmp_path / "link").symlink_to(target, target_is_directory=True)
    (tmp_path / "dangling").symlink_to(tmp_path / "missing")

    results = list(walk_tree(tmp_path))

    assert _files(results) == ["data.bin"]
    link_entries = [r for r in results if r.path.name in {"link", "dangling"}]
    assert all(isinstance(r, WalkEntry) and not r.is_file for r in link_entries)


def test_unreadable_subdirectory_is_yielded_as_error(tmp_path, monkeypatch):
    bad = tmp_path / "bad"
    bad.mkdir()
    (bad / "hidden.txt").write_text("x")
    (tmp_path / "good").mkdir()
    (tmp_path / "good" / "ok.txt").write_text("x")

    real_scandir = os.scandir

    def fake_scandir(path="."):
        if Path(path) == bad.resolve():
            raise PermissionError(13, "Permission denied", str(path))
        return real_scandir(path)

    monkeypatch.setattr(walker.os, "scandir", fake_scandir)
    results = list(walk_tree(tmp_path))

    errors = [r for r in results if isinstance(r, WalkError)]
    assert [e.path for e in errors] == [bad.resolve()]
    assert isinstance(errors[0].error, PermissionError)
    assert _files(results) == ["ok.txt"]


class TestRootUnavailable:
    def test_missing_root(self, tmp_path):
        missing = tmp_path / "nope"
        with pytest.raises(RootUnavailableError) as excinfo:
            open_tree(missing)
        assert excinfo.value.root == missing
        assert "does not exist" in str(excinfo.value)

    def test_file_root(self, tmp_path):
        path = tmp_path / "file.txt"
        path.write_text("x")
        with pytest.raises(RootUnavailableError, match="not a directory"):
            open_tree(path)

    def test_walk_raises_on_first_iteration(self, tmp_path):
        sequence = walk_tree(tmp_path / "nope")
        with pytest.raises(RootUnavailableError):
            next(sequence)

    def test_unlistable_root(self, tmp_path, monkeypatch):
        def fake_scandir(path="."):
            raise PermissionError(13, "Permission denied", str(path))

        monkeypatch.setattr(walker.os, "scandir", fake_scandir)
        with pytest.raises(RootUnavailableError, match="permission denied"):
            open_tree(tmp_path)
