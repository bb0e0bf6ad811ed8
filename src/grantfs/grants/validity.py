"""Validity decorators: deadlines, timeouts, and cancellation."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from .base import or_deny

if TYPE_CHECKING:
    from datetime import timedelta

    from grantfs.evidence import Evidence

    from .base import Grant

Clock = Callable[[], datetime]
CancelFunc = Callable[[], None]


def utcnow() -> datetime:
    return datetime.now(UTC)


class DeadlineGrant:
    """Valid strictly before ``deadline``.

    Expiry is latched, so a clock that steps backwards cannot revive
    the grant.
    """

    __slots__ = ("_clock", "_expired", "deadline", "parent")

    def __init__(self, parent: Grant, deadline: datetime, clock: Clock = utcnow) -> None:
        # Naive datetimes are taken to be UTC
        if deadline.tzinfo is None:
            deadline = deadline.replace(tzinfo=UTC)
        self.parent = parent
        self.deadline = deadline
        self._clock = clock
        self._expired = False

    def valid(self) -> bool:
        if not self._expired and self._clock() >= self.deadline:
            self._expired = True
        return not self._expired and self.parent.valid()

    def verify(self, evidence: Evidence) -> bool:
        return self.parent.verify(evidence)

    def allows(self, path: str) -> bool:
        return self.parent.allows(path)

    def __repr__(self) -> str:
        return f"DeadlineGrant({self.parent!r}, deadline={self.deadline.isoformat()})"


class CancelGrant:
    """Valid until ``cancel`` is called."""

    __slots__ = ("_cancelled", "parent")

    def __init__(self, parent: Grant) -> None:
        self.parent = parent
        self._cancelled = False

    def cancel(self) -> None:
        """Invalidate the grant.  Later calls do nothing."""
        # A single attribute store; readers never need a lock.
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def valid(self) -> bool:
        return not self._cancelled and self.parent.valid()

    def verify(self, evidence: Evidence) -> bool:
        return self.parent.verify(evidence)

    def allows(self, path: str) -> bool:
        return self.parent.allows(path)

    def __repr__(self) -> str:
        return f"CancelGrant({self.parent!r}, cancelled={self._cancelled})"


def with_deadline(parent: Grant | None, deadline: datetime, *, clock: Clock = utcnow) -> Grant:
    """Return a grant that expires once *deadline* has passed."""
    return DeadlineGrant(or_deny(parent), deadline, clock)


def with_timeout(parent: Grant | None, timeout: timedelta, *, clock: Clock = utcnow) -> Grant:
    """Return a grant that expires *timeout* after this call."""
    return DeadlineGrant(or_deny(parent), clock() + timeout, clock)


def with_cancel(parent: Grant | None) -> tuple[Grant, CancelFunc]:
    """Return a grant and a function that immediately invalidates it."""
    grant = CancelGrant(or_deny(parent))
    return grant, grant.cancel
