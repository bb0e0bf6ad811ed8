"""AsyncView — a View for asyncio request pipelines.

Every call runs in a worker thread via ``asyncio.to_thread`` because
grant checks may block on an identity service and file I/O is
synchronous.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from grantfs.evidence import ANONYMOUS

if TYPE_CHECKING:
    from grantfs.evidence import Evidence
    from grantfs.fs import FileInfo
    from grantfs.share import View


class AsyncView:
    """Awaitable wrapper around a ``View``."""

    def __init__(self, view: View) -> None:
        self._view = view

    @property
    def name(self) -> str:
        return self._view.name

    @property
    def view(self) -> View:
        return self._view

    async def check(self, evidence: Evidence, path: str) -> bool:
        return await asyncio.to_thread(self._view.check, evidence, path)

    async def read(self, evidence: Evidence, path: str) -> bytes:
        """Open *path* and return its whole content."""
        return await asyncio.to_thread(self._read, evidence, path)

    async def stat(self, evidence: Evidence, path: str) -> FileInfo:
        return await asyncio.to_thread(self._view.stat, evidence, path)

    async def read_dir(self, evidence: Evidence, path: str) -> list[FileInfo]:
        return await asyncio.to_thread(self._view.read_dir, evidence, path)

    async def list(self, evidence: Evidence = ANONYMOUS) -> list[str]:
        return await asyncio.to_thread(self._view.list, evidence)

    def _read(self, evidence: Evidence, path: str) -> bytes:
        with self._view.open(evidence, path) as f:
            return f.read()
