"""Path scope decorators."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .base import or_deny

if TYPE_CHECKING:
    from collections.abc import Iterable

    from grantfs.evidence import Evidence

    from .base import Grant


@dataclass(frozen=True, slots=True)
class PrefixGrant:
    """Allows every path starting with ``prefix``."""

    parent: Grant
    prefix: str

    def valid(self) -> bool:
        return self.parent.valid()

    def verify(self, evidence: Evidence) -> bool:
        return self.parent.verify(evidence)

    def allows(self, path: str) -> bool:
        return path.startswith(self.prefix) or self.parent.allows(path)


@dataclass(frozen=True, slots=True)
class FileListGrant:
    """Allows exactly the listed paths."""

    parent: Grant
    files: frozenset[str]

    def valid(self) -> bool:
        return self.parent.valid()

    def verify(self, evidence: Evidence) -> bool:
        return self.parent.verify(evidence)

    def allows(self, path: str) -> bool:
        return path in self.files or self.parent.allows(path)


def allow_prefix(parent: Grant | None, prefix: str) -> Grant:
    """Also allow any path that starts with *prefix*.

    Matching is a plain string comparison against root-relative paths
    (``"public/"``, not ``"/public/"``); views canonicalize paths before
    asking.
    """
    return PrefixGrant(or_deny(parent), prefix)


def allow_files(parent: Grant | None, paths: Iterable[str]) -> Grant:
    """Also allow each of *paths* exactly."""
    return FileListGrant(or_deny(parent), frozenset(paths))
