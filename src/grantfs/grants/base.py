"""Grant protocol, the identity grant, and the single-grant check.

A grant answers three independent questions:

- ``valid()``: is the grant still usable at all (time, cancellation)?
- ``verify(evidence)``: does the caller's evidence satisfy it?
- ``allows(path)``: is the path in scope?

Grants are built by wrapping ``new_grant()`` in decorators.  Each
decorator owns one axis and defers to its parent for the others,
combining with OR for ``verify``/``allows`` and AND for ``valid``.
Invalidity is permanent: once ``valid()`` returns False it never
returns True again.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from grantfs.evidence import Evidence


@runtime_checkable
class Grant(Protocol):
    """The capability interface every grant implements."""

    def valid(self) -> bool: ...

    def verify(self, evidence: Evidence) -> bool: ...

    def allows(self, path: str) -> bool: ...


class NullGrant:
    """Always valid, verifies nobody, allows nothing."""

    __slots__ = ()

    def valid(self) -> bool:
        return True

    def verify(self, evidence: Evidence) -> bool:
        return False

    def allows(self, path: str) -> bool:
        return False

    def __repr__(self) -> str:
        return "NullGrant()"


class DenyGrant:
    """Never valid.  Stands in for a missing grant."""

    __slots__ = ()

    def valid(self) -> bool:
        return False

    def verify(self, evidence: Evidence) -> bool:
        return False

    def allows(self, path: str) -> bool:
        return False

    def __repr__(self) -> str:
        return "DenyGrant()"


DENY = DenyGrant()


def new_grant() -> Grant:
    """Return the starting point for composing a grant.

    The result is always valid but verifies no evidence and allows no
    paths; wrap it to add tokens, identities, scopes, and limits.
    """
    return NullGrant()


def or_deny(grant: Grant | None) -> Grant:
    """Treat a missing grant as the most restrictive one."""
    return DENY if grant is None else grant


def permits(grant: Grant | None, evidence: Evidence, path: str) -> bool:
    """Whether *grant* admits *evidence* to *path*.

    ``valid`` is checked first, then ``allows``, then ``verify``, so a
    single-use grant is only consumed by a request it would admit and
    identity services are not consulted for out-of-scope paths.
    """
    if grant is None:
        return False
    return grant.valid() and grant.allows(path) and grant.verify(evidence)
