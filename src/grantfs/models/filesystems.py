"""FileSystemDescriptor — the declarative form of a shared backend."""

from __future__ import annotations

from typing import TYPE_CHECKING

from nacl.encoding import HexEncoder
from nacl.exceptions import CryptoError
from nacl.public import PrivateKey, PublicKey
from nacl.signing import SigningKey, VerifyKey
from sqlalchemy import JSON
from sqlmodel import Field, SQLModel

from grantfs.exceptions import DescriptorError
from grantfs.fs import Directory, EncryptedDirectory
from grantfs.models.grants import GrantDescriptor

if TYPE_CHECKING:
    from grantfs.fs import FileSystem
    from grantfs.grants import CancelFunc
    from grantfs.share import Share

DIRECTORY = "directory"
ENCRYPTED = "encrypted"


class FileSystemDescriptor(SQLModel):
    """A backend to share and the grant URLs that open it.

    Keys are hex encoded: ``recipients`` are Curve25519 public keys,
    ``keys`` Curve25519 private keys, ``signer`` an Ed25519 seed and
    ``verify_key`` an Ed25519 public key.
    """

    type: str = DIRECTORY
    root: str
    name: str | None = None
    recipients: list[str] = Field(default_factory=list, sa_type=JSON)
    keys: list[str] = Field(default_factory=list, sa_type=JSON)
    signer: str | None = None
    verify_key: str | None = None
    grants: list[str] = Field(default_factory=list, sa_type=JSON)

    def build(self) -> FileSystem:
        """Construct the backend.  Raises ``DescriptorError`` on bad keys or type."""
        kind = self.type.lower()
        try:
            if kind == DIRECTORY:
                return Directory(self.root, name=self.name)
            if kind == ENCRYPTED:
                return self._build_encrypted()
        except DescriptorError:
            raise
        except (CryptoError, ValueError, TypeError) as exc:
            raise DescriptorError(f"Invalid {kind} file system: {exc}") from exc
        raise DescriptorError(f"Unknown file system type: {self.type!r}")

    def _build_encrypted(self) -> EncryptedDirectory:
        keys = [PrivateKey(k, encoder=HexEncoder) for k in self.keys]
        recipients: list[PublicKey | PrivateKey] = [
            PublicKey(r, encoder=HexEncoder) for r in self.recipients
        ]
        if not recipients:
            recipients.extend(keys)
        if not recipients:
            raise DescriptorError("Encrypted file system needs a recipient or key")
        signer = SigningKey(self.signer, encoder=HexEncoder) if self.signer else None
        verify_key = (
            VerifyKey(self.verify_key, encoder=HexEncoder) if self.verify_key else None
        )
        return EncryptedDirectory(
            self.root,
            recipients,
            signer,
            keys=keys,
            verify_key=verify_key,
            name=self.name,
        )

    def install(self, share: Share) -> list[CancelFunc]:
        """Register the backend on *share* and add every listed grant.

        Returns the cancel functions of the installed grants, in order.
        """
        fs = self.build()
        made = [GrantDescriptor.parse(url).make() for url in self.grants]
        share.add_file_system(fs)
        cancels = []
        for grant, cancel in made:
            share.add_grant(fs.name, grant)
            cancels.append(cancel)
        return cancels
