"""Single-use grants."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from .base import or_deny
from .validity import CancelGrant

if TYPE_CHECKING:
    from grantfs.evidence import Evidence

    from .base import Grant


class OneTimeGrant:
    """Becomes invalid forever after its first successful ``verify``.

    Verification is serialized by an internal lock, so among any number
    of concurrent callers exactly one sees True.
    """

    __slots__ = ("_inner", "_lock")

    def __init__(self, parent: Grant) -> None:
        self._inner = CancelGrant(parent)
        self._lock = threading.Lock()

    @property
    def used(self) -> bool:
        return self._inner.cancelled

    def valid(self) -> bool:
        return self._inner.valid()

    def verify(self, evidence: Evidence) -> bool:
        with self._lock:
            if not self._inner.valid():
                return False
            if not self._inner.verify(evidence):
                return False
            self._inner.cancel()
            return True

    def allows(self, path: str) -> bool:
        return self._inner.allows(path)

    def __repr__(self) -> str:
        return f"OneTimeGrant({self._inner.parent!r}, used={self.used})"


def one_time(parent: Grant | None) -> Grant:
    """Wrap *parent* so it can be verified successfully only once."""
    return OneTimeGrant(or_deny(parent))
