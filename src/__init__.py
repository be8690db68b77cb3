"""memoryink: notes embedded in JPEG and PNG image metadata.

A note (plaintext, or sealed with a password) travels inside the image
file itself, so any copy of the image can be read back without a
database:

1. **Embed / extract / remove** for PNG text chunks and JPEG EXIF + XMP.
2. **Encryption**: AES-256-GCM under a PBKDF2-derived key, embedded as
   a self-contained token.
"""

__version__ = "0.3.0"

from note_handler import (
    embed_note,
    extract_note,
    has_note,
    remove_note,
    embed_encrypted_note,
    reveal_note,
    get_note_summary,
    is_supported_format,
)

__all__ = [
    "embed_note",
    "extract_note",
    "has_note",
    "remove_note",
    "embed_encrypted_note",
    "reveal_note",
    "get_note_summary",
    "is_supported_format",
]
