"""Store and recover a note in PNG text chunks.

The note lives in three reserved chunks inserted immediately before
``IEND``:

- ``MemoryInkNote``      (``iTXt``, UTF-8): the note content
- ``MemoryInkEncrypted`` (``tEXt``): ``"true"`` / ``"false"``
- ``MemoryInkVersion``   (``tEXt``): format version tag

Every other chunk, including text chunks with foreign keywords, is
copied through unchanged.
"""

from __future__ import annotations

import logging

from constants import NOTE_VERSION, PNG_FALSE, PNG_RESERVED_KEYWORDS, PNG_TRUE
from errors import EmbedFailedError
from fields import PNG_KEYWORDS, NoteField
from models import ReadOutcome, ReadResult
from png_chunks import (
    PngChunk,
    PngFormatError,
    decode_text_chunk,
    encode_chunks,
    encode_text_chunk,
    parse_chunks,
    text_keyword,
)

logger = logging.getLogger(__name__)


def _is_reserved(chunk: PngChunk) -> bool:
    return text_keyword(chunk) in PNG_RESERVED_KEYWORDS


def build_note_chunks(note: str, is_encrypted: bool, version: str = NOTE_VERSION) -> list[PngChunk]:
    """Return the three reserved chunks for *note*, in write order."""
    return [
        encode_text_chunk(PNG_KEYWORDS[NoteField.CUSTOM_NOTE], note, international=True),
        encode_text_chunk(
            PNG_KEYWORDS[NoteField.ENCRYPTED], PNG_TRUE if is_encrypted else PNG_FALSE
        ),
        encode_text_chunk(PNG_KEYWORDS[NoteField.VERSION], version),
    ]


def embed_note(
    data: bytes,
    note: str,
    is_encrypted: bool = False,
    version: str = NOTE_VERSION,
) -> bytes:
    """
    Embed *note* into PNG bytes.

    Prior MemoryInk chunks are removed first, so repeated embeds leave a
    single set of reserved chunks.

    Args:
        data: Source PNG bytes (not modified).
        note: Note content (plaintext or ciphertext envelope).
        is_encrypted: Value of the ``MemoryInkEncrypted`` flag.
        version: Value of ``MemoryInkVersion``.

    Returns:
        New PNG bytes.

    Raises:
        EmbedFailedError: If the PNG cannot be parsed or the chunks
            cannot be built.
    """
    try:
        chunks = [chunk for chunk in parse_chunks(data) if not _is_reserved(chunk)]
        new_chunks = build_note_chunks(note, is_encrypted, version)
    except (PngFormatError, ValueError) as e:
        raise EmbedFailedError(f"Failed to embed note in PNG: {e}") from e

    # parse_chunks guarantees IEND is the last chunk
    iend_index = len(chunks) - 1
    chunks[iend_index:iend_index] = new_chunks
    return encode_chunks(chunks)


def read_note(data: bytes) -> ReadResult:
    """
    Read the embedded note from PNG bytes.

    Never raises: a stream that cannot be parsed yields an
    ``UNREADABLE`` result.
    """
    try:
        chunks = parse_chunks(data)
    except PngFormatError as e:
        return ReadResult.unreadable(e)

    note: str | None = None
    is_encrypted = False
    version: str | None = None

    for chunk in chunks:
        if not _is_reserved(chunk):
            continue
        if not chunk.crc_ok:
            logger.debug("Skipping %r chunk with bad CRC", chunk.type)
            continue
        try:
            keyword, text = decode_text_chunk(chunk)
        except PngFormatError:
            logger.debug("Skipping undecodable %r chunk", chunk.type, exc_info=True)
            continue

        if keyword == PNG_KEYWORDS[NoteField.CUSTOM_NOTE]:
            note = text
        elif keyword == PNG_KEYWORDS[NoteField.ENCRYPTED]:
            is_encrypted = text == PNG_TRUE
        elif keyword == PNG_KEYWORDS[NoteField.VERSION]:
            version = text

    if note is None:
        return ReadResult.absent()
    return ReadResult(ReadOutcome.FOUND, note=note, is_encrypted=is_encrypted, version=version)


def strip_note(data: bytes) -> bytes:
    """
    Remove every MemoryInk chunk from PNG bytes.

    Raises:
        EmbedFailedError: If the PNG cannot be parsed.
    """
    try:
        chunks = parse_chunks(data)
    except PngFormatError as e:
        raise EmbedFailedError(f"Failed to strip note from PNG: {e}") from e
    return encode_chunks([chunk for chunk in chunks if not _is_reserved(chunk)])


def count_reserved_chunks(data: bytes) -> int:
    """Number of MemoryInk chunks in *data* (0 if it cannot be parsed)."""
    try:
        return sum(1 for chunk in parse_chunks(data) if _is_reserved(chunk))
    except PngFormatError:
        return 0


__all__ = [
    "build_note_chunks",
    "embed_note",
    "read_note",
    "strip_note",
    "count_reserved_chunks",
]
