"""Grants — composable, revocable access decisions."""

from grantfs.grants.base import DENY, DenyGrant, Grant, NullGrant, new_grant, or_deny, permits
from grantfs.grants.onetime import OneTimeGrant, one_time
from grantfs.grants.scope import FileListGrant, PrefixGrant, allow_files, allow_prefix
from grantfs.grants.validity import (
    CancelFunc,
    CancelGrant,
    Clock,
    DeadlineGrant,
    with_cancel,
    with_deadline,
    with_timeout,
)
from grantfs.grants.verify import (
    GITHUB,
    GOOGLE,
    AnyoneGrant,
    IdentityGrant,
    PredicateGrant,
    TokenGrant,
    allow_anyone,
    verify_email,
    verify_identity,
    verify_login,
    verify_token,
    verify_with,
)

__all__ = [
    "DENY",
    "GITHUB",
    "GOOGLE",
    "AnyoneGrant",
    "CancelFunc",
    "CancelGrant",
    "Clock",
    "DeadlineGrant",
    "DenyGrant",
    "FileListGrant",
    "Grant",
    "IdentityGrant",
    "NullGrant",
    "OneTimeGrant",
    "PredicateGrant",
    "PrefixGrant",
    "TokenGrant",
    "allow_anyone",
    "allow_files",
    "allow_prefix",
    "new_grant",
    "one_time",
    "or_deny",
    "permits",
    "verify_email",
    "verify_identity",
    "verify_login",
    "verify_token",
    "verify_with",
    "with_cancel",
    "with_deadline",
    "with_timeout",
]
