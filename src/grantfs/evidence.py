"""Evidence — what a caller presents when a grant verifies them.

An ``Evidence`` value is built once per request (usually by
``collect_evidence``) and passed explicitly to ``Grant.verify``.  It is
immutable, so any number of grants may inspect it concurrently.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

logger = logging.getLogger(__name__)


def _as_bytes(token: str | bytes) -> bytes:
    return token.encode("utf-8") if isinstance(token, str) else bytes(token)


@dataclass(frozen=True, slots=True)
class Identity:
    """An identity claim asserted by an external provider.

    Attributes:
        provider: Provider name, e.g. ``"google"`` or ``"github"``.
        principal: The asserted principal (email address, login).
        verified: Whether the provider vouches for the principal.
    """

    provider: str
    principal: str
    verified: bool = True


@dataclass(frozen=True, slots=True)
class Evidence:
    """Static tokens and identity claims carried by one request."""

    tokens: frozenset[bytes] = field(default_factory=frozenset)
    identities: tuple[Identity, ...] = ()

    def with_token(self, token: str | bytes) -> Evidence:
        """Return a copy that also carries *token*."""
        return replace(self, tokens=self.tokens | {_as_bytes(token)})

    def with_identity(
        self, provider: str, principal: str, *, verified: bool = True
    ) -> Evidence:
        """Return a copy that also carries an identity claim."""
        claim = Identity(provider=provider, principal=principal, verified=verified)
        return replace(self, identities=(*self.identities, claim))

    def claims(self, provider: str) -> list[Identity]:
        """All identity claims made by *provider*."""
        return [i for i in self.identities if i.provider == provider]

    def principal(self, provider: str) -> str | None:
        """The first verified principal asserted by *provider*, if any."""
        for claim in self.claims(provider):
            if claim.verified:
                return claim.principal
        return None


ANONYMOUS = Evidence()


@runtime_checkable
class IdentityProvider(Protocol):
    """Turns a request's credentials into a verified identity claim.

    Implementations wrap an OAuth client or directory service and may
    block on the network.  Retries, if any, belong here.
    """

    name: str

    def identify(self, credentials: Mapping[str, str]) -> Identity | None:
        """Return the caller's identity, or ``None`` if not signed in."""
        ...


def collect_evidence(
    credentials: Mapping[str, str],
    providers: Iterable[IdentityProvider] = (),
    tokens: Iterable[str | bytes] = (),
) -> Evidence:
    """Build the evidence for one request.

    A provider that fails is logged and skipped; the request simply
    carries no claim from it.
    """
    identities: list[Identity] = []
    for provider in providers:
        try:
            claim = provider.identify(credentials)
        except Exception:
            logger.warning(
                "Identity provider %r failed; continuing without its claim",
                getattr(provider, "name", provider),
                exc_info=True,
            )
            continue
        if claim is not None:
            identities.append(claim)

    return Evidence(
        tokens=frozenset(_as_bytes(t) for t in tokens),
        identities=tuple(identities),
    )
