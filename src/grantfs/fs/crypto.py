"""Streaming encrypt+sign and decrypt+verify built on PyNaCl.

Each file gets a random SecretBox key, sealed to every recipient's
Curve25519 public key.  Content is written as authenticated chunks whose
nonces carry a counter, so chunks cannot be reordered or dropped, and the
last chunk is marked final so truncation is detected.  With a signer, an
Ed25519 signature over the header and all chunk frames follows the final
chunk.

Layout (big-endian)::

    magic        4 bytes   b"GFS1"
    version      1 byte
    flags        1 byte    bit 0: signed
    nonce prefix 16 bytes
    recipients   u16
    sealed keys  recipients * 80 bytes
    chunks       u32 length || SecretBox ciphertext of (marker || data)
    signature    64 bytes  (signed files only)
"""

from __future__ import annotations

import hashlib
import io
import struct
from typing import IO, TYPE_CHECKING

import nacl.utils
from nacl.bindings import crypto_box_SEALBYTES
from nacl.exceptions import BadSignatureError, CryptoError
from nacl.public import SealedBox
from nacl.secret import SecretBox

from grantfs.exceptions import DecryptionError, SignatureVerificationFailed

if TYPE_CHECKING:
    from collections.abc import Sequence

    from nacl.public import PrivateKey, PublicKey
    from nacl.signing import SigningKey, VerifyKey

MAGIC = b"GFS1"
VERSION = 1
CHUNK_SIZE = 64 * 1024

_FLAG_SIGNED = 0x01
_MORE = b"\x00"
_FINAL = b"\x01"
_NONCE_PREFIX_SIZE = SecretBox.NONCE_SIZE - 8
_SEALED_KEY_SIZE = SecretBox.KEY_SIZE + crypto_box_SEALBYTES
_SIGNATURE_SIZE = 64
_HEADER = struct.Struct(">4sBB16sH")
_FRAME = struct.Struct(">I")


def _nonce(prefix: bytes, counter: int) -> bytes:
    return prefix + counter.to_bytes(8, "big")


class EncryptingWriter(io.RawIOBase):
    """Encrypts (and optionally signs) everything written to it.

    Nothing is final until ``close``, which writes the last chunk and the
    signature and then closes the underlying file.
    """

    _started = False

    def __init__(
        self,
        raw: IO[bytes],
        recipients: Sequence[PublicKey],
        signer: SigningKey | None = None,
        *,
        chunk_size: int = CHUNK_SIZE,
    ) -> None:
        self._raw = raw
        if not recipients:
            raise ValueError("at least one recipient is required")
        if not 0 < chunk_size <= CHUNK_SIZE:
            raise ValueError(f"chunk_size must be between 1 and {CHUNK_SIZE}")

        self._signer = signer
        self._chunk_size = chunk_size
        self._hash = hashlib.blake2b()
        self._buffer = bytearray()
        self._counter = 0

        key = nacl.utils.random(SecretBox.KEY_SIZE)
        self._box = SecretBox(key)
        self._prefix = nacl.utils.random(_NONCE_PREFIX_SIZE)

        flags = _FLAG_SIGNED if signer is not None else 0
        header = _HEADER.pack(MAGIC, VERSION, flags, self._prefix, len(recipients))
        sealed = b"".join(SealedBox(pk).encrypt(key) for pk in recipients)
        self._emit(header + sealed)
        self._started = True

    def writable(self) -> bool:
        return True

    def write(self, b) -> int:  # type: ignore[override]
        if self.closed:
            raise ValueError("write to closed file")
        data = bytes(b)
        self._buffer += data
        # Hold back the tail so close() always has a final chunk to mark.
        while len(self._buffer) > self._chunk_size:
            chunk = bytes(self._buffer[: self._chunk_size])
            del self._buffer[: self._chunk_size]
            self._seal(chunk, final=False)
        return len(data)

    def close(self) -> None:
        if self.closed:
            return
        if not self._started:
            super().close()
            return
        try:
            self._seal(bytes(self._buffer), final=True)
            self._buffer.clear()
            if self._signer is not None:
                self._raw.write(self._signer.sign(self._hash.digest()).signature)
        finally:
            try:
                self._raw.close()
            finally:
                super().close()

    def _seal(self, data: bytes, *, final: bool) -> None:
        marker = _FINAL if final else _MORE
        nonce = _nonce(self._prefix, self._counter)
        self._counter += 1
        ct = self._box.encrypt(marker + data, nonce).ciphertext
        self._emit(_FRAME.pack(len(ct)) + ct)

    def _emit(self, data: bytes) -> None:
        self._hash.update(data)
        self._raw.write(data)


class DecryptingReader(io.RawIOBase):
    """Decrypts (and verifies) content produced by ``EncryptingWriter``.

    Integrity failures are raised in place of end-of-file and are sticky:
    every later read raises the same error.  Plaintext of the final chunk
    is only released after the signature has been checked.  ``close``
    always closes the underlying file.
    """

    def __init__(
        self,
        raw: IO[bytes],
        keys: Sequence[PrivateKey],
        verify_key: VerifyKey | None = None,
    ) -> None:
        self._raw = raw
        self._verify_key = verify_key
        self._hash = hashlib.blake2b()
        self._counter = 0
        self._pending = b""
        self._pos = 0
        self._done = False
        self._error: Exception | None = None
        self._box, self._prefix, self._signed = self._read_header(keys)

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:  # type: ignore[override]
        if self._error is not None:
            raise self._error
        while self._pos >= len(self._pending) and not self._done:
            try:
                self._next_chunk()
            except (DecryptionError, SignatureVerificationFailed) as exc:
                self._error = exc
                raise
        n = min(len(b), len(self._pending) - self._pos)
        b[:n] = self._pending[self._pos : self._pos + n]
        self._pos += n
        return n

    def close(self) -> None:
        if self.closed:
            return
        try:
            self._raw.close()
        finally:
            super().close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _read_exact(self, size: int) -> bytes:
        data = self._raw.read(size)
        if len(data) != size:
            raise DecryptionError("content is truncated")
        return data

    def _read_header(self, keys: Sequence[PrivateKey]) -> tuple[SecretBox, bytes, bool]:
        fixed = self._read_exact(_HEADER.size)
        magic, version, flags, prefix, count = _HEADER.unpack(fixed)
        if magic != MAGIC or version != VERSION:
            raise DecryptionError("not an encrypted file")
        sealed = self._read_exact(count * _SEALED_KEY_SIZE)
        self._hash.update(fixed + sealed)

        slots = [
            sealed[i : i + _SEALED_KEY_SIZE]
            for i in range(0, len(sealed), _SEALED_KEY_SIZE)
        ]
        for private_key in keys:
            unsealer = SealedBox(private_key)
            for slot in slots:
                try:
                    key = unsealer.decrypt(slot)
                except CryptoError:
                    continue
                return SecretBox(key), prefix, bool(flags & _FLAG_SIGNED)
        raise DecryptionError("no key can decrypt this content")

    def _next_chunk(self) -> None:
        frame = self._read_exact(_FRAME.size)
        (length,) = _FRAME.unpack(frame)
        if length > CHUNK_SIZE + SecretBox.MACBYTES + 1:
            raise DecryptionError("chunk length out of range")
        ct = self._read_exact(length)
        self._hash.update(frame + ct)

        try:
            plaintext = self._box.decrypt(ct, _nonce(self._prefix, self._counter))
        except CryptoError:
            raise DecryptionError("content failed authentication") from None
        self._counter += 1

        marker, data = plaintext[:1], plaintext[1:]
        if marker == _FINAL:
            self._finish()
        elif marker != _MORE:
            raise DecryptionError("bad chunk marker")
        self._pending = data
        self._pos = 0

    def _finish(self) -> None:
        trailer = self._raw.read(_SIGNATURE_SIZE + 1)
        if self._signed:
            if len(trailer) != _SIGNATURE_SIZE:
                raise SignatureVerificationFailed("signature is missing or truncated")
            if self._verify_key is not None:
                try:
                    self._verify_key.verify(self._hash.digest(), trailer)
                except BadSignatureError:
                    raise SignatureVerificationFailed(
                        "signature does not match content"
                    ) from None
        elif trailer:
            raise DecryptionError("unexpected data after final chunk")
        elif self._verify_key is not None:
            raise SignatureVerificationFailed("content is not signed")
        self._done = True
