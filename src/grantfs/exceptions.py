"""Exception hierarchy for grantfs."""


class GrantFSError(Exception):
    """Base exception for all grantfs errors."""


class AccessDenied(GrantFSError):
    """Raised when no grant admits the caller to a path.

    The message never says which check failed.
    """


class UnknownFileSystem(GrantFSError):
    """Raised when a file system name was never registered with a Share."""


class AlreadyRegistered(GrantFSError):
    """Raised when a file system name is registered twice."""


class IntegrityError(GrantFSError):
    """Raised when encrypted content fails an integrity check."""


class SignatureVerificationFailed(IntegrityError):
    """Raised when the embedded signature is bad or missing."""


class DecryptionError(IntegrityError):
    """Raised when ciphertext is tampered, truncated, or not addressed to us."""


class DescriptorError(GrantFSError, ValueError):
    """Raised when a grant or file system descriptor cannot be used."""
