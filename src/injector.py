"""Write a note into PNG and JPEG images.

Routes by file extension (or, for unnamed buffers, by signature) to the
matching codec:
- PNG: reserved ``MemoryInk*`` text chunks before ``IEND``.
- JPEG: redundant EXIF fields via ``piexif`` plus ``memoryink:*`` XMP.

The source is never modified unless the caller names it as the output.
"""

from __future__ import annotations

import logging
from pathlib import Path

from config import DEFAULT_CONFIG, CodecConfig
from targets import TargetLike, as_target
from utils import check_signature, get_codec

logger = logging.getLogger(__name__)


def embed_note(
    target: TargetLike,
    note: str,
    is_encrypted: bool = False,
    output: Path | str | None = None,
    config: CodecConfig | None = None,
) -> Path | bytes:
    """
    Embed *note* into an image.

    Args:
        target: Image path, raw bytes, ``data:`` URL, or target adapter.
        note: Note content. When *is_encrypted* is True this is the
            ciphertext token, stored verbatim.
        is_encrypted: Flag recorded next to the note.
        output: Where to write the result. Files default to a
            ``<stem>_embedded<suffix>`` sibling; buffers are returned as
            bytes unless an output is given.
        config: Codec settings (defaults to ``DEFAULT_CONFIG``).

    Returns:
        The output path, or the new image bytes for in-memory targets.

    Raises:
        UnsupportedFormatError: If the image is not JPEG or PNG, or its
            bytes do not match its extension.
        EmbedFailedError: If the metadata could not be written. Nothing
            is written in that case.
    """
    if not isinstance(note, str):
        raise TypeError(f"note must be a str, not {type(note).__name__}")
    config = config or DEFAULT_CONFIG
    image = as_target(target)

    image_format = image.format
    data = image.read()
    check_signature(data, image_format, image.name)

    codec = get_codec(image_format)
    if image_format == "JPEG":
        new_data = codec.embed_note(
            data,
            note,
            is_encrypted=is_encrypted,
            version=config.note_version,
            legacy_artist_marker=config.legacy_artist_marker,
        )
    else:
        new_data = codec.embed_note(
            data, note, is_encrypted=is_encrypted, version=config.note_version
        )

    result = image.write(new_data, output)
    logger.info(
        "Embedded %s note (%d chars) into %s",
        "encrypted" if is_encrypted else "plaintext",
        len(note),
        image.name or "buffer",
    )
    return result
