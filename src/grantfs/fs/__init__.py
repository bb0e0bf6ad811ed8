"""File system layer — the backend contract, local backends, traversal."""

from grantfs.fs.crypto import DecryptingReader, EncryptingWriter
from grantfs.fs.directory import Directory
from grantfs.fs.encrypted import EncryptedDirectory
from grantfs.fs.protocol import FileSystem
from grantfs.fs.types import FileInfo
from grantfs.fs.utils import abs_path, clean_path, normalize_path
from grantfs.fs.walk import SkipDir, walk

__all__ = [
    "DecryptingReader",
    "Directory",
    "EncryptedDirectory",
    "EncryptingWriter",
    "FileInfo",
    "FileSystem",
    "SkipDir",
    "abs_path",
    "clean_path",
    "normalize_path",
    "walk",
]
