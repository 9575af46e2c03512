"""Filesystem operations behind the dispatcher.

Create/remove/append check their preconditions first and report the outcome
as an FsStatus instead of relying on the OS call to throw. Errors outside
those preconditions (permissions, I/O) still propagate as OSError.
"""

from __future__ import annotations

import os
from enum import StrEnum
from pathlib import Path

from webtestserver.core.logging import get_logger

_logger = get_logger(__name__)


class FsStatus(StrEnum):
    """Outcome of a guarded filesystem operation."""

    OK = "ok"
    ALREADY_EXISTS = "already_exists"
    NOT_FOUND = "not_found"
    NOT_EMPTY = "not_empty"
    WRONG_KIND = "wrong_kind"


def list_files(folder: Path, base: Path) -> list[str]:
    """List regular files under folder, recursively.

    Paths are relative to base, forward-slashed and sorted. Folders that
    cannot be read are skipped. Symlinked folders are followed once per real
    path so link cycles terminate.
    """
    out: list[str] = []
    seen: set[str] = set()
    stack: list[Path] = [folder]

    while stack:
        current = stack.pop()
        try:
            real = os.path.realpath(current)
            if real in seen:
                continue
            seen.add(real)
            with os.scandir(current) as it:
                entries = list(it)
        except OSError as e:
            # Skip folders that are inaccessible
            _logger.debug(f"list_files: skipping {current}: {e}")
            continue

        for entry in entries:
            try:
                if entry.is_dir():
                    stack.append(Path(entry.path))
                elif entry.is_file():
                    rel = os.path.relpath(entry.path, base)
                    out.append(rel.replace(os.sep, "/"))
            except OSError as e:
                _logger.debug(f"list_files: skipping {entry.path}: {e}")

    out.sort()
    return out


def read_file(path: Path) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def write_file(path: Path, data: bytes) -> FsStatus:
    """Write data to path, creating missing parent directories first."""
    if path.is_dir():
        return FsStatus.WRONG_KIND
    if not path.parent.is_dir():
        path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        f.write(data)
    return FsStatus.OK


def append_file(path: Path, data: bytes) -> FsStatus:
    """Append data to an existing file. Never creates the file."""
    if not path.exists():
        return FsStatus.NOT_FOUND
    if not path.is_file():
        return FsStatus.WRONG_KIND
    with open(path, "ab") as f:
        f.write(data)
    return FsStatus.OK


def delete_file(path: Path) -> FsStatus:
    if not path.exists() and not path.is_symlink():
        return FsStatus.NOT_FOUND
    if path.is_dir() and not path.is_symlink():
        return FsStatus.WRONG_KIND
    path.unlink()
    return FsStatus.OK


def make_dir(path: Path) -> FsStatus:
    """Create a single directory; the parent must already exist."""
    if path.exists():
        return FsStatus.ALREADY_EXISTS
    if not path.parent.is_dir():
        return FsStatus.NOT_FOUND
    path.mkdir()
    return FsStatus.OK


def remove_dir(path: Path) -> FsStatus:
    """Remove a single empty directory."""
    if not path.exists():
        return FsStatus.NOT_FOUND
    if not path.is_dir() or path.is_symlink():
        return FsStatus.WRONG_KIND
    with os.scandir(path) as it:
        if any(True for _ in it):
            return FsStatus.NOT_EMPTY
    path.rmdir()
    return FsStatus.OK


def delete_tree(path: Path) -> FsStatus:
    """Remove a directory and everything below it.

    Walks with an explicit stack: files are unlinked on the way down and the
    collected directories are removed deepest-first afterwards. Symlinks are
    unlinked, never followed.
    """
    if not path.exists():
        return FsStatus.NOT_FOUND
    if not path.is_dir() or path.is_symlink():
        return FsStatus.WRONG_KIND

    dirs: list[Path] = []
    stack: list[Path] = [path]
    while stack:
        current = stack.pop()
        dirs.append(current)
        with os.scandir(current) as it:
            entries = list(it)
        for entry in entries:
            if entry.is_dir(follow_symlinks=False):
                stack.append(Path(entry.path))
            else:
                os.unlink(entry.path)

    # Parents are always appended before their children.
    for d in reversed(dirs):
        d.rmdir()
    return FsStatus.OK
