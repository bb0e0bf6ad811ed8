"""Directory — a local directory exposed as a FileSystem."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import IO

from .types import FileInfo
from .utils import abs_path, clean_path, join_path

logger = logging.getLogger(__name__)


class Directory:
    """Serves files from a local directory.

    Every caller-supplied path goes through ``abs_path`` so that no number
    of ``..`` segments can reach outside ``root``.  Symlinks inside the root
    are followed; the FileSystem contract has no notion of links.
    """

    def __init__(self, root: Path | str, *, name: str | None = None) -> None:
        self.root = os.fspath(root)
        self._name = name or self.root

        if not os.path.exists(self.root):
            raise FileNotFoundError(f"Directory does not exist: {self.root}")
        if not os.path.isdir(self.root):
            raise NotADirectoryError(f"Not a directory: {self.root}")

    @property
    def name(self) -> str:
        return self._name

    def __str__(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"Directory({self.root!r}, name={self._name!r})"

    def resolve(self, path: str) -> str:
        """Physical location of *path*, always under ``root``."""
        return abs_path(self.root, path)

    # =========================================================================
    # FileSystem
    # =========================================================================

    def open(self, path: str) -> IO[bytes]:
        return open(self.resolve(path), "rb")

    def create(self, path: str) -> IO[bytes]:
        """Open *path* for writing, creating parent directories as needed.

        Existing files are overwritten.
        """
        target = self.resolve(path)
        os.makedirs(os.path.dirname(target), exist_ok=True)
        return open(target, "wb")

    def stat(self, path: str) -> FileInfo:
        return FileInfo.from_stat(clean_path(path), os.stat(self.resolve(path)))

    def read_dir(self, path: str) -> list[FileInfo]:
        """List the entries of a directory, sorted by name."""
        parent = clean_path(path)
        entries: list[FileInfo] = []
        with os.scandir(self.resolve(path)) as it:
            for entry in it:
                try:
                    st = entry.stat()
                except OSError:
                    # dangling symlink
                    logger.debug("Skipping unreadable entry %s", entry.path)
                    continue
                entries.append(FileInfo.from_stat(join_path(parent, entry.name), st))
        entries.sort(key=lambda e: e.name)
        return entries
