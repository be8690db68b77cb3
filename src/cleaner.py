"""Note removal.

Strips every MemoryInk-owned field from an image while leaving foreign
metadata alone:
- PNG: the reserved ``MemoryInk*`` text chunks.
- JPEG: ``memoryink:*`` XMP properties and Extended XMP segments, the
  redundant EXIF/XMP copies while they still hold the note, and the
  producer/artist markers.
"""

from __future__ import annotations

import logging
from pathlib import Path

from extractor import has_note
from targets import FileTarget, TargetLike, as_target
from utils import check_signature, get_codec

logger = logging.getLogger(__name__)


def remove_note(target: TargetLike, output: Path | str | None = None) -> Path | bytes:
    """
    Remove the embedded note from an image.

    Args:
        target: Image path, raw bytes, ``data:`` URL, or target adapter.
        output: Optional output path. If not provided, files are
            modified in place and buffers are returned as bytes.

    Returns:
        The output path, or the cleaned bytes for in-memory targets.

    Raises:
        UnsupportedFormatError: If the image is not JPEG or PNG.
        EmbedFailedError: If the metadata could not be rewritten.
    """
    image = as_target(target)
    image_format = image.format
    data = image.read()
    check_signature(data, image_format, image.name)

    cleaned = get_codec(image_format).strip_note(data)
    if output is None and isinstance(image, FileTarget):
        output = image.path

    result = image.write(cleaned, output)
    logger.info("Removed note from %s", image.name or "buffer")
    return result


__all__ = ["has_note", "remove_note"]
