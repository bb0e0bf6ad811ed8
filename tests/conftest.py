"""Shared fixtures for grantfs tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from grantfs.fs import Directory

if TYPE_CHECKING:
    from pathlib import Path


class FakeClock:
    """A settable clock for time-bound grants."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2030, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def docs_root(tmp_path: Path) -> Path:
    """A small tree with public and private files."""
    root = tmp_path / "docs"
    (root / "public" / "nested").mkdir(parents=True)
    (root / "private").mkdir()
    (root / "public" / "readme.txt").write_bytes(b"hello, world\n")
    (root / "public" / "nested" / "deep.md").write_bytes(b"# deep\n")
    (root / "private" / "secret.txt").write_bytes(b"top secret\n")
    (root / "top.txt").write_bytes(b"top\n")
    return root


@pytest.fixture
def docs(docs_root: Path) -> Directory:
    return Directory(docs_root, name="docs")
