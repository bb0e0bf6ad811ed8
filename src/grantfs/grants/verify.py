"""Identity verification decorators: tokens, identity claims, predicates."""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .base import or_deny

if TYPE_CHECKING:
    from collections.abc import Callable

    from grantfs.evidence import Evidence

    from .base import Grant

logger = logging.getLogger(__name__)

GOOGLE = "google"
GITHUB = "github"


@dataclass(frozen=True, slots=True)
class AnyoneGrant:
    """Verifies every caller, including anonymous ones."""

    parent: Grant

    def valid(self) -> bool:
        return self.parent.valid()

    def verify(self, evidence: Evidence) -> bool:
        return True

    def allows(self, path: str) -> bool:
        return self.parent.allows(path)


@dataclass(frozen=True, slots=True)
class TokenGrant:
    """Verifies callers presenting one of a fixed set of secrets."""

    parent: Grant
    tokens: frozenset[bytes] = field(repr=False)

    def valid(self) -> bool:
        return self.parent.valid()

    def verify(self, evidence: Evidence) -> bool:
        for presented in evidence.tokens:
            for token in self.tokens:
                if hmac.compare_digest(presented, token):
                    return True
        return self.parent.verify(evidence)

    def allows(self, path: str) -> bool:
        return self.parent.allows(path)


@dataclass(frozen=True, slots=True)
class IdentityGrant:
    """Verifies callers with a verified claim from ``provider`` naming
    one of ``principals``."""

    parent: Grant
    provider: str
    principals: frozenset[str]

    def valid(self) -> bool:
        return self.parent.valid()

    def verify(self, evidence: Evidence) -> bool:
        for claim in evidence.claims(self.provider):
            if claim.verified and claim.principal in self.principals:
                return True
        return self.parent.verify(evidence)

    def allows(self, path: str) -> bool:
        return self.parent.allows(path)


@dataclass(frozen=True, slots=True)
class PredicateGrant:
    """Verifies callers for whom ``predicate(evidence)`` is true.

    The predicate may call out to an external identity service.  If it
    raises, this grant does not verify; the error is logged and never
    escapes.  No timeout is imposed here.
    """

    parent: Grant
    predicate: Callable[[Evidence], bool]

    def valid(self) -> bool:
        return self.parent.valid()

    def verify(self, evidence: Evidence) -> bool:
        if self.parent.verify(evidence):
            return True
        try:
            return bool(self.predicate(evidence))
        except Exception:
            logger.warning(
                "Verification predicate %r failed; treating as unverified",
                self.predicate,
                exc_info=True,
            )
            return False

    def allows(self, path: str) -> bool:
        return self.parent.allows(path)


def allow_anyone(parent: Grant | None) -> Grant:
    """Verify every caller.  Scope and validity still come from *parent*."""
    return AnyoneGrant(or_deny(parent))


def verify_token(parent: Grant | None, *tokens: str | bytes) -> Grant:
    """Also verify callers presenting any of *tokens*."""
    encoded = frozenset(t.encode("utf-8") if isinstance(t, str) else bytes(t) for t in tokens)
    return TokenGrant(or_deny(parent), encoded)


def verify_identity(parent: Grant | None, provider: str, *principals: str) -> Grant:
    """Also verify callers that *provider* has verified as one of *principals*."""
    return IdentityGrant(or_deny(parent), provider, frozenset(principals))


def verify_email(parent: Grant | None, *emails: str) -> Grant:
    """Also verify callers whose Google account has a verified address in *emails*."""
    return verify_identity(parent, GOOGLE, *emails)


def verify_login(parent: Grant | None, *logins: str) -> Grant:
    """Also verify callers signed in to GitHub as one of *logins*."""
    return verify_identity(parent, GITHUB, *logins)


def verify_with(parent: Grant | None, predicate: Callable[[Evidence], bool]) -> Grant:
    """Also verify callers accepted by *predicate*."""
    return PredicateGrant(or_deny(parent), predicate)
