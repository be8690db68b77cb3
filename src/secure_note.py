"""Encrypt-then-embed and extract-then-decrypt pipelines.

The encrypted note is embedded as a self-contained token, so any copy
of the image can be opened with the password alone.
"""

from __future__ import annotations

import logging
from pathlib import Path

from cipher import EncryptedNote, decrypt_note, encrypt_note
from config import DEFAULT_CONFIG, CodecConfig
from constants import NOTE_VERSION
from errors import DecryptionFailedError
from extractor import extract_note
from injector import embed_note
from models import Note
from targets import TargetLike

logger = logging.getLogger(__name__)


def embed_encrypted_note(
    target: TargetLike,
    text: str,
    password: str,
    output: Path | str | None = None,
    include_digest: bool = False,
    config: CodecConfig | None = None,
) -> Path | bytes:
    """
    Encrypt *text* with *password* and embed the result.

    Args:
        target: Image path, raw bytes, ``data:`` URL, or target adapter.
        text: Note plaintext.
        password: Password protecting the note.
        output: Output location, as for ``injector.embed_note``.
        include_digest: Store the plaintext digest with the ciphertext.
        config: Codec settings (defaults to ``DEFAULT_CONFIG``).

    Returns:
        The output path, or the new image bytes for in-memory targets.
    """
    config = config or DEFAULT_CONFIG
    sealed = encrypt_note(
        text, password, include_digest=include_digest, iterations=config.pbkdf2_iterations
    )
    return embed_note(target, sealed.to_token(), is_encrypted=True, output=output, config=config)


def load_note(target: TargetLike) -> Note | None:
    """
    Read the embedded note without decrypting it.

    For encrypted notes ``content`` is the token and the key material
    fields are filled in. Returns None when the image carries no note.

    Raises:
        DecryptionFailedError: If the note is flagged encrypted but is
            not a well-formed token.
    """
    result = extract_note(target)
    if not result.found:
        return None
    version = result.version or NOTE_VERSION
    if not result.is_encrypted:
        return Note(result.note, is_encrypted=False, version=version)

    sealed = EncryptedNote.from_token(result.note)
    return Note(
        result.note,
        is_encrypted=True,
        version=version,
        salt=sealed.salt,
        iv=sealed.iv,
        auth_tag=sealed.auth_tag,
    )


def reveal_note(
    target: TargetLike,
    password: str | None = None,
    config: CodecConfig | None = None,
) -> str | None:
    """
    Return the plaintext of the embedded note.

    Plaintext notes are returned as-is; encrypted ones need *password*.

    Returns:
        The note text, or None when the image carries no note.

    Raises:
        DecryptionFailedError: If the note is encrypted and no password
            or the wrong password was given.
        IntegrityMismatchError: If the note decrypted but its stored
            digest does not match.
    """
    config = config or DEFAULT_CONFIG
    note = load_note(target)
    if note is None:
        return None
    if not note.is_encrypted:
        return note.content
    if not password:
        raise DecryptionFailedError("This note is encrypted; a password is required")

    text = decrypt_note(note.content, password, iterations=config.pbkdf2_iterations)
    logger.debug("Decrypted embedded note")
    return text
