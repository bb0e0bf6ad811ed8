"""FileInfo record returned by stat and read_dir."""

from __future__ import annotations

import os
import stat as stat_module
from dataclasses import dataclass
from datetime import UTC, datetime

from .utils import guess_mime_type


@dataclass(frozen=True, slots=True)
class FileInfo:
    """File/directory metadata.

    ``path`` is relative to the file system root with no leading slash;
    the root itself is ``""``.
    """

    path: str
    name: str
    is_directory: bool
    size_bytes: int | None = None
    modified_at: datetime | None = None
    mime_type: str | None = None

    @classmethod
    def from_stat(cls, path: str, st: os.stat_result) -> FileInfo:
        """Build a FileInfo from an ``os.stat`` result."""
        is_dir = stat_module.S_ISDIR(st.st_mode)
        name = path.rsplit("/", 1)[-1]
        return cls(
            path=path,
            name=name,
            is_directory=is_dir,
            size_bytes=None if is_dir else st.st_size,
            modified_at=datetime.fromtimestamp(st.st_mtime, tz=UTC),
            mime_type=None if is_dir else guess_mime_type(name),
        )
