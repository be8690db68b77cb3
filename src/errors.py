"""Exception hierarchy for the note codec.

Embed-side and cryptographic failures surface as these types. Extraction
turns ``ExtractFailedError`` into an empty result, so callers can treat "no
note" and "could not read" the same way. Only batch runs, which read
strictly, see it raised.
"""

from __future__ import annotations

from pathlib import Path


class MemoryInkError(Exception):
    """Base class for every error raised by this package."""


class UnsupportedFormatError(MemoryInkError):
    """The target is neither JPEG nor PNG (by extension or signature)."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class EmbedFailedError(MemoryInkError):
    """Writing the note into the image metadata failed."""


class ExtractFailedError(MemoryInkError):
    """The image file or its metadata container could not be read."""


class CryptoError(MemoryInkError):
    """Base class for note cipher failures."""


class DecryptionFailedError(CryptoError):
    """Wrong password, or corrupted/tampered ciphertext."""


class IntegrityMismatchError(CryptoError):
    """Decryption succeeded but the plaintext digest does not match.

    Signals corrupted storage rather than a wrong password.
    """
