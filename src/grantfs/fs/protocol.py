"""FileSystem protocol — the contract every storage backend satisfies.

Backends receive caller-supplied string paths and must confine them to
their own root (see ``utils.abs_path``).  Access control is not the
backend's job; ``grantfs.share.View`` checks grants before delegating.
"""

from __future__ import annotations

from typing import IO, TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .types import FileInfo


@runtime_checkable
class FileSystem(Protocol):
    """Core interface every backend must implement."""

    @property
    def name(self) -> str:
        """Unique, descriptive identifier.  ``str(fs)`` returns the same."""
        ...

    def open(self, path: str) -> IO[bytes]:
        """Open the named file for reading."""
        ...

    def create(self, path: str) -> IO[bytes]:
        """Return a writer for *path*.

        Whether existing files are overwritten is left to the backend.
        """
        ...

    def stat(self, path: str) -> FileInfo:
        """Behave as ``os.stat``, following symlinks."""
        ...

    def read_dir(self, path: str) -> list[FileInfo]:
        """Return all entries in the directory at *path*."""
        ...
