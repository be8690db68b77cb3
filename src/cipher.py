"""Password-based authenticated encryption for notes.

Notes are sealed with AES-256-GCM under a key derived from the user's
password with PBKDF2-HMAC-SHA256. Every note gets a fresh random salt
and IV, so encrypting the same text twice never yields the same
ciphertext.

An ``EncryptedNote`` serialises to a single ASCII token that can be
embedded directly in image metadata::

    ENCRYPTED:v1:<salt>:<iv>:<tag>:<ciphertext>[:<sha256>]

All binary fields are URL-safe base64. The optional trailing field is
the SHA-256 hex digest of the plaintext, checked after decryption.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import os
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from constants import (
    CIPHER_ASSOCIATED_DATA,
    CIPHER_IV_BYTES,
    CIPHER_KEY_BYTES,
    CIPHER_SALT_BYTES,
    CIPHER_TAG_BYTES,
    ENCRYPTED_TOKEN_PREFIX,
    ENCRYPTED_TOKEN_VERSION,
    PBKDF2_ITERATIONS,
    PBKDF2_MIN_ITERATIONS,
)
from errors import CryptoError, DecryptionFailedError, IntegrityMismatchError


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii")


def _b64decode(text: str, expected_len: int | None = None) -> bytes:
    try:
        raw = base64.b64decode(text.encode("ascii"), altchars=b"-_", validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise DecryptionFailedError(f"Malformed base64 field: {e}") from e
    if expected_len is not None and len(raw) != expected_len:
        raise DecryptionFailedError(
            f"Expected {expected_len} bytes of key material, got {len(raw)}"
        )
    return raw


@dataclass(frozen=True)
class EncryptedNote:
    """Ciphertext plus everything except the password needed to open it."""

    ciphertext: str
    salt: str
    iv: str
    auth_tag: str
    content_hash: str | None = None

    def to_token(self) -> str:
        parts = [
            ENCRYPTED_TOKEN_PREFIX,
            ENCRYPTED_TOKEN_VERSION,
            self.salt,
            self.iv,
            self.auth_tag,
            self.ciphertext,
        ]
        if self.content_hash:
            parts.append(self.content_hash)
        return ":".join(parts)

    @classmethod
    def from_token(cls, token: str) -> EncryptedNote:
        """
        Parse a token produced by ``to_token``.

        Raises:
            DecryptionFailedError: If the token is not a well-formed
                encrypted note envelope.
        """
        parts = token.strip().split(":")
        if len(parts) not in (6, 7) or parts[0] != ENCRYPTED_TOKEN_PREFIX:
            raise DecryptionFailedError("Not an encrypted note token")
        if parts[1] != ENCRYPTED_TOKEN_VERSION:
            raise DecryptionFailedError(f"Unsupported encrypted note version '{parts[1]}'")

        salt, iv, auth_tag, ciphertext = parts[2:6]
        content_hash = parts[6] if len(parts) == 7 else None
        if content_hash is not None and not _is_hex_digest(content_hash):
            raise DecryptionFailedError("Malformed content digest")
        return cls(ciphertext, salt, iv, auth_tag, content_hash)


def is_encrypted_token(text: str | None) -> bool:
    """True if *text* looks like an encrypted note envelope."""
    return bool(text) and text.startswith(f"{ENCRYPTED_TOKEN_PREFIX}:{ENCRYPTED_TOKEN_VERSION}:")


def _is_hex_digest(value: str) -> bool:
    if len(value) != 64:
        return False
    try:
        int(value, 16)
    except ValueError:
        return False
    return True


def derive_key(password: str, salt: bytes, iterations: int = PBKDF2_ITERATIONS) -> bytes:
    """
    Derive a 256-bit key from *password* with PBKDF2-HMAC-SHA256.

    Args:
        password: User password (must not be empty).
        salt: Random salt, ``CIPHER_SALT_BYTES`` long.
        iterations: PBKDF2 work factor.

    Returns:
        The derived key.

    Raises:
        CryptoError: If the password is empty or the work factor is
            below the supported minimum.
    """
    if not password:
        raise CryptoError("A password is required")
    if iterations < PBKDF2_MIN_ITERATIONS:
        raise CryptoError(f"PBKDF2 iterations must be at least {PBKDF2_MIN_ITERATIONS}")
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=CIPHER_KEY_BYTES,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(password.encode("utf-8"))


def create_note_hash(text: str) -> str:
    """SHA-256 hex digest of the note plaintext."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def verify_note_hash(text: str, digest: str) -> bool:
    return hmac.compare_digest(create_note_hash(text), digest.lower())


def encrypt_note(
    text: str,
    password: str,
    include_digest: bool = False,
    iterations: int = PBKDF2_ITERATIONS,
) -> EncryptedNote:
    """
    Encrypt *text* under *password*.

    Args:
        text: Note plaintext.
        password: User password.
        include_digest: Carry the plaintext SHA-256 digest alongside the
            ciphertext so corruption can be told apart from a wrong
            password.
        iterations: PBKDF2 work factor.

    Returns:
        The sealed note.
    """
    salt = os.urandom(CIPHER_SALT_BYTES)
    iv = os.urandom(CIPHER_IV_BYTES)
    key = derive_key(password, salt, iterations)

    sealed = AESGCM(key).encrypt(iv, text.encode("utf-8"), CIPHER_ASSOCIATED_DATA)
    ciphertext, tag = sealed[:-CIPHER_TAG_BYTES], sealed[-CIPHER_TAG_BYTES:]

    return EncryptedNote(
        ciphertext=_b64encode(ciphertext),
        salt=_b64encode(salt),
        iv=_b64encode(iv),
        auth_tag=_b64encode(tag),
        content_hash=create_note_hash(text) if include_digest else None,
    )


def decrypt_note(
    note: EncryptedNote | str,
    password: str,
    iterations: int = PBKDF2_ITERATIONS,
) -> str:
    """
    Decrypt a sealed note.

    Args:
        note: An ``EncryptedNote`` or its token form.
        password: User password.
        iterations: PBKDF2 work factor used at encryption time.

    Returns:
        The plaintext.

    Raises:
        DecryptionFailedError: Wrong password, or the ciphertext, IV,
            salt or tag was altered.
        IntegrityMismatchError: The note decrypted but does not match
            the digest stored with it.
    """
    if not password:
        raise DecryptionFailedError("A password is required to decrypt this note")
    if isinstance(note, str):
        note = EncryptedNote.from_token(note)

    salt = _b64decode(note.salt, CIPHER_SALT_BYTES)
    iv = _b64decode(note.iv, CIPHER_IV_BYTES)
    tag = _b64decode(note.auth_tag, CIPHER_TAG_BYTES)
    ciphertext = _b64decode(note.ciphertext)

    key = derive_key(password, salt, iterations)
    try:
        plaintext = AESGCM(key).decrypt(iv, ciphertext + tag, CIPHER_ASSOCIATED_DATA)
    except InvalidTag as e:
        raise DecryptionFailedError("Wrong password or corrupted note") from e

    try:
        text = plaintext.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecryptionFailedError("Decrypted note is not valid UTF-8") from e

    if note.content_hash and not verify_note_hash(text, note.content_hash):
        raise IntegrityMismatchError("Decrypted note does not match its stored digest")
    return text
