"""Declarative descriptors for file systems and grants."""

from grantfs.models.filesystems import FileSystemDescriptor
from grantfs.models.grants import GrantDescriptor, parse_duration

__all__ = [
    "FileSystemDescriptor",
    "GrantDescriptor",
    "parse_duration",
]
