"""grantfs: Capability-based access control for shared files.

Register file systems on a Share, attach composable, revocable grants,
and read through Views that check every path.
"""

__version__ = "0.1.0"

from grantfs.aio import AsyncView
from grantfs.events import EventBus, EventType, ShareEvent
from grantfs.evidence import ANONYMOUS, Evidence, Identity, IdentityProvider, collect_evidence
from grantfs.exceptions import (
    AccessDenied,
    AlreadyRegistered,
    DecryptionError,
    DescriptorError,
    GrantFSError,
    IntegrityError,
    SignatureVerificationFailed,
    UnknownFileSystem,
)
from grantfs.fs import Directory, EncryptedDirectory, FileInfo, FileSystem, SkipDir, walk
from grantfs.grants import (
    DENY,
    CancelFunc,
    Grant,
    allow_anyone,
    allow_files,
    allow_prefix,
    new_grant,
    one_time,
    permits,
    verify_email,
    verify_identity,
    verify_login,
    verify_token,
    verify_with,
    with_cancel,
    with_deadline,
    with_timeout,
)
from grantfs.models import FileSystemDescriptor, GrantDescriptor, parse_duration
from grantfs.share import Share, View

__all__ = [
    "ANONYMOUS",
    "DENY",
    "AccessDenied",
    "AlreadyRegistered",
    "AsyncView",
    "CancelFunc",
    "DecryptionError",
    "DescriptorError",
    "Directory",
    "EncryptedDirectory",
    "EventBus",
    "EventType",
    "Evidence",
    "FileInfo",
    "FileSystem",
    "FileSystemDescriptor",
    "Grant",
    "GrantDescriptor",
    "GrantFSError",
    "Identity",
    "IdentityProvider",
    "IntegrityError",
    "Share",
    "ShareEvent",
    "SignatureVerificationFailed",
    "SkipDir",
    "UnknownFileSystem",
    "View",
    "allow_anyone",
    "allow_files",
    "allow_prefix",
    "collect_evidence",
    "new_grant",
    "one_time",
    "parse_duration",
    "permits",
    "verify_email",
    "verify_identity",
    "verify_login",
    "verify_token",
    "verify_with",
    "walk",
    "with_cancel",
    "with_deadline",
    "with_timeout",
]
