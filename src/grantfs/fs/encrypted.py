"""EncryptedDirectory — a Directory whose file contents are encrypted."""

from __future__ import annotations

import logging
from typing import IO, TYPE_CHECKING

from nacl.public import PrivateKey

from .crypto import DecryptingReader, EncryptingWriter
from .directory import Directory

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from nacl.public import PublicKey
    from nacl.signing import SigningKey, VerifyKey

    from .types import FileInfo

logger = logging.getLogger(__name__)


class EncryptedDirectory:
    """Serves files from *root*, encrypted on disk and optionally signed.

    ``create`` encrypts to every recipient and signs with *signer*;
    ``open`` decrypts with the first private key that can unseal the file
    and verifies the signature against *verify_key* (defaults to the
    signer's public half).  Private keys passed as recipients are also
    used for decryption.

    Names, directory structure, and ``stat`` sizes are those of the
    ciphertext on disk.
    """

    def __init__(
        self,
        root: Path | str,
        recipients: Sequence[PublicKey | PrivateKey],
        signer: SigningKey | None = None,
        *,
        keys: Sequence[PrivateKey] = (),
        verify_key: VerifyKey | None = None,
        name: str | None = None,
    ) -> None:
        self._dir = Directory(root)
        self._name = name or f"{self._dir.root} - encrypted"
        self._recipients = [
            r.public_key if isinstance(r, PrivateKey) else r for r in recipients
        ]
        self._keys = [r for r in recipients if isinstance(r, PrivateKey)] + list(keys)
        self._signer = signer
        if verify_key is None and signer is not None:
            verify_key = signer.verify_key
        self._verify_key = verify_key

    @property
    def name(self) -> str:
        return self._name

    @property
    def root(self) -> str:
        return self._dir.root

    def __str__(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"EncryptedDirectory({self._dir.root!r}, name={self._name!r})"

    def create(self, path: str) -> IO[bytes]:
        raw = self._dir.create(path)
        try:
            return EncryptingWriter(raw, self._recipients, self._signer)
        except BaseException:
            raw.close()
            raise

    def open(self, path: str) -> IO[bytes]:
        raw = self._dir.open(path)
        try:
            return DecryptingReader(raw, self._keys, self._verify_key)
        except BaseException:
            logger.debug("Could not open encrypted file %s", path, exc_info=True)
            raw.close()
            raise

    def stat(self, path: str) -> FileInfo:
        return self._dir.stat(path)

    def read_dir(self, path: str) -> list[FileInfo]:
        return self._dir.read_dir(path)
