from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

from yearsize.errors import RootUnavailableError
from yearsize.models import WalkEntry, WalkError


def open_tree(root: Path | str) -> Path:
    """Check that ``root`` is a listable directory and return it resolved."""
    path = Path(root).expanduser()
    if not path.exists():
        raise RootUnavailableError(path, "path does not exist")
    if not path.is_dir():
        raise RootUnavailableError(path, "not a directory")
    try:
        with os.scandir(path):
            pass
    except PermissionError:
        raise RootUnavailableError(path, "permission denied") from None
    except OSError as exc:
        raise RootUnavailableError(path, exc.strerror or str(exc)) from exc
    return path.resolve()


def walk_tree(root: Path | str) -> Iterator[WalkEntry | WalkError]:
    """Yield every entry below ``root``, depth first.

    Failures below the root are yielded as ``WalkError`` values so one bad
    directory never ends the walk. Symlinks are reported but not followed.
    """
    pending = [open_tree(root)]
    while pending:
        directory = pending.pop()
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as exc:
            yield WalkError(path=directory, error=exc)
            continue

        for entry in entries:
            path = Path(entry.path)
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = not is_dir and entry.is_file(follow_symlinks=False)
            except OSError as exc:
                yield WalkError(path=path, error=exc)
                continue
            if is_dir:
                pending.append(path)
            yield WalkEntry(path=path, is_file=is_file)
