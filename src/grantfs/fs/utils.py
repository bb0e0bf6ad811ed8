"""Path utilities shared by the file system backends and views."""

from __future__ import annotations

import mimetypes
import posixpath

# =============================================================================
# Path Utilities
# =============================================================================


def normalize_path(path: str) -> str:
    """Normalize a virtual file system path.

    - Ensures exactly one leading /
    - Resolves .. and . references (never above /)
    - Removes double slashes
    - Removes trailing slash (except for root)

    Examples:
        normalize_path("foo.txt") -> "/foo.txt"
        normalize_path("//foo//bar.txt") -> "/foo/bar.txt"
        normalize_path("/foo/../../bar.txt") -> "/bar.txt"
        normalize_path("/foo/") -> "/foo"
        normalize_path("") -> "/"
    """
    if not path:
        return "/"

    # posixpath keeps a leading "//", so collapse it first
    path = "/" + path.lstrip("/")
    return posixpath.normpath(path)


def clean_path(path: str) -> str:
    """Canonical root-relative form of *path*, with no leading slash.

    This is the form grants are checked against and that views pass to
    backends, so ``public/../private/x`` is always seen as ``private/x``.

    Examples:
        clean_path("/public/readme.txt") -> "public/readme.txt"
        clean_path("public/../private/x") -> "private/x"
        clean_path("../..") -> ""
    """
    return normalize_path(path).lstrip("/")


def abs_path(root: str, path: str) -> str:
    """Join *path* under *root* so that the result never leaves *root*.

    Any number of ``..`` segments in *path* is absorbed at the root.
    An empty root behaves like ``/``.
    """
    rel = clean_path(path)
    if not root:
        return "/" + rel
    if not rel:
        return posixpath.normpath(root)
    return posixpath.normpath(posixpath.join(root, rel))


def join_path(parent: str, name: str) -> str:
    """Join a root-relative parent and an entry name."""
    if not parent:
        return name
    return f"{parent}/{name}"


def validate_path(path: str) -> tuple[bool, str]:
    """Validate a path for security and compatibility issues.

    Returns:
        (is_valid, error_message) - error_message is empty if valid
    """
    if "\x00" in path:
        return False, "Path contains null bytes"

    # Reject ASCII control characters (0x01-0x1f) except \t, \n, \r
    for ch in path:
        code = ord(ch)
        if 0x01 <= code <= 0x1F and ch not in ("\t", "\n", "\r"):
            return False, f"Path contains control character: 0x{code:02x}"

    if len(path) > 4096:
        return False, "Path too long (max 4096 characters)"

    name = clean_path(path).rsplit("/", 1)[-1]
    if len(name) > 255:
        return False, "Filename too long (max 255 characters)"

    return True, ""


def guess_mime_type(filename: str) -> str:
    """Guess the MIME type of a file based on its name."""
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type or "application/octet-stream"
