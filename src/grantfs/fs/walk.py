"""Pre-order tree traversal over any FileSystem."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .utils import clean_path, join_path

if TYPE_CHECKING:
    from collections.abc import Callable

    from .protocol import FileSystem
    from .types import FileInfo

    WalkFunc = Callable[[str, FileInfo | None, OSError | None], None]


class SkipDir(Exception):
    """Raised by a visit function to skip the directory it was called on.

    Raised for a file, it skips the remaining entries of the directory
    containing that file.  It never escapes ``walk``.
    """


def _walk(fs: FileSystem, path: str, info: FileInfo, fn: WalkFunc) -> None:
    try:
        fn(path, info, None)
    except SkipDir:
        if info.is_directory:
            return
        raise

    if not info.is_directory:
        return

    try:
        entries = fs.read_dir(path)
    except OSError as exc:
        # The directory itself was already visited; the visitor decides
        # whether a listing failure is fatal.
        fn(path, info, exc)
        return

    for entry in entries:
        try:
            _walk(fs, join_path(path, entry.name), entry, fn)
        except SkipDir:
            if not entry.is_directory:
                raise


def walk(fs: FileSystem, root: str, fn: WalkFunc) -> None:
    """Visit *root* and everything below it, parents before children.

    ``fn(path, info, error)`` is called once per node with root-relative
    paths.  Entries are visited in the order ``fs.read_dir`` returns them.
    If *root* cannot be stat'ed, ``fn`` is called once with ``info=None``
    and the error; anything ``fn`` raises other than ``SkipDir`` propagates.

    Symlink cycles are not detected because FileSystem exposes no link
    information.
    """
    root = clean_path(root)
    try:
        info = fs.stat(root)
    except OSError as exc:
        try:
            fn(root, None, exc)
        except SkipDir:
            pass
        return

    try:
        _walk(fs, root, info, fn)
    except SkipDir:
        pass
