"""GrantDescriptor — the declarative form of an operator-issued grant.

A descriptor is plain data (JSON-compatible via SQLModel/pydantic) and is
turned into a live grant by ``make()``.  Descriptors can also be read
from the compact URL syntax::

    google://alice@example.com,bob@example.com/ttl=24h/prefix=reports%2F
    github://octocat/expires=2030-01-01T00:00:00Z/file=notes.txt
    public:///ttl=5m/prefix=public%2F

Values are percent-decoded, so a ``/`` inside a value must be written
``%2F``.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any
from urllib.parse import unquote, urlsplit

from sqlalchemy import JSON, DateTime
from sqlmodel import Field, SQLModel

from grantfs.exceptions import DescriptorError
from grantfs.fs.utils import clean_path
from grantfs.grants import (
    GITHUB,
    GOOGLE,
    allow_anyone,
    allow_files,
    allow_prefix,
    new_grant,
    verify_email,
    verify_identity,
    verify_login,
    verify_token,
    with_cancel,
    with_deadline,
)
from grantfs.grants.validity import utcnow

if TYPE_CHECKING:
    from grantfs.grants import CancelFunc, Clock, Grant

TOKEN = "token"
PUBLIC = "public"

_DURATION_RE = re.compile(r"(?:(?:\d+(?:\.\d*)?|\.\d+)(?:ns|us|µs|μs|ms|s|m|h))+")
_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``"90s"``, ``"1h30m"`` or ``"1.5h"``.

    Examples:
        parse_duration("5m") -> timedelta(minutes=5)
        parse_duration("1h30m") -> timedelta(hours=1, minutes=30)
        parse_duration("-2s") -> timedelta(seconds=-2)
        parse_duration("0") -> timedelta(0)
    """
    s = text.strip()
    sign = 1
    if s and s[0] in "+-":
        sign = -1 if s[0] == "-" else 1
        s = s[1:]
    if s == "0":
        return timedelta(0)
    if not s or not _DURATION_RE.fullmatch(s):
        raise DescriptorError(f"Invalid duration: {text!r}")

    seconds = sum(
        float(number) * _UNIT_SECONDS[unit]
        for number, unit in _DURATION_PART_RE.findall(s)
    )
    return timedelta(seconds=sign * seconds)


class GrantDescriptor(SQLModel):
    """Who may access what, and until when.

    ``provider`` selects how callers are verified:

    - ``google`` / ``github``: verified identity claims naming one of ``values``
    - ``token``: static secrets listed in ``values``
    - ``public``: anyone
    - any other name: identity claims from that provider
    - empty: nobody (useful as a base for ``Share.issue``)
    """

    provider: str = ""
    values: list[str] = Field(default_factory=list, sa_type=JSON)
    expires_at: datetime | None = Field(
        default=None,
        sa_type=DateTime(timezone=True),  # type: ignore[invalid-argument-type]
    )
    title: str = ""
    allow_prefix: list[str] = Field(default_factory=list, sa_type=JSON)
    allow_files: list[str] = Field(default_factory=list, sa_type=JSON)

    @classmethod
    def parse(cls, url: str, *, clock: Clock = utcnow) -> GrantDescriptor:
        """Read a descriptor from its URL form."""
        parts = urlsplit(url)
        if not parts.scheme:
            raise DescriptorError(f"Grant URL has no provider: {url!r}")

        fields: dict[str, Any] = {
            "provider": parts.scheme,
            "values": [v for v in unquote(parts.netloc).split(",") if v],
            "allow_prefix": [],
            "allow_files": [],
        }
        for segment in parts.path.split("/"):
            if not segment:
                continue
            if "=" not in segment:
                raise DescriptorError(f"Malformed grant option: {segment!r}")
            key, raw = segment.split("=", 1)
            value = unquote(raw)
            if key == "ttl":
                fields["expires_at"] = clock() + parse_duration(value)
            elif key == "expires":
                fields["expires_at"] = _parse_timestamp(value)
            elif key == "title":
                fields["title"] = value
            elif key == "prefix":
                fields["allow_prefix"].append(value)
            elif key == "file":
                fields["allow_files"].append(value)
            else:
                raise DescriptorError(f"Unknown grant option: {key!r}")
        return cls(**fields)

    def make(self, *, clock: Clock = utcnow) -> tuple[Grant, CancelFunc]:
        """Build the live grant and its cancel function."""
        grant = new_grant()
        provider = self.provider.lower()
        if provider == PUBLIC:
            grant = allow_anyone(grant)
        elif provider == TOKEN:
            if not self.values:
                raise DescriptorError("Token grant lists no tokens")
            grant = verify_token(grant, *self.values)
        elif provider:
            if not self.values:
                raise DescriptorError(f"{provider} grant lists no principals")
            if provider == GOOGLE:
                grant = verify_email(grant, *self.values)
            elif provider == GITHUB:
                grant = verify_login(grant, *self.values)
            else:
                grant = verify_identity(grant, provider, *self.values)

        for prefix in self.allow_prefix:
            grant = allow_prefix(grant, prefix.lstrip("/"))
        if self.allow_files:
            grant = allow_files(grant, (clean_path(f) for f in self.allow_files))
        if self.expires_at is not None:
            grant = with_deadline(grant, self.expires_at, clock=clock)
        return with_cancel(grant)


def _parse_timestamp(value: str) -> datetime:
    try:
        when = datetime.fromisoformat(value)
    except ValueError:
        raise DescriptorError(f"Invalid timestamp: {value!r}") from None
    if when.tzinfo is None:
        when = when.replace(tzinfo=UTC)
    return when
