"""Low-level helpers for format detection, codec lookup and image inspection."""

from __future__ import annotations

import io
from pathlib import Path
from types import ModuleType
from typing import Any

from PIL import Image

import jpeg_codec
import png_codec
from constants import (
    JPEG_SIGNATURE,
    JPEG_SUFFIXES,
    PNG_SIGNATURE,
    PNG_SUFFIXES,
    SUPPORTED_FORMATS,
)
from errors import UnsupportedFormatError


def is_supported_format(file_path: Path) -> bool:
    """
    Check if the file format is supported.

    Args:
        file_path: Path to the image file.

    Returns:
        True if the format is supported, False otherwise.
    """
    return file_path.suffix.lower() in SUPPORTED_FORMATS


def get_image_format(file_path: Path) -> str:
    """
    Get the image format from file path.

    Args:
        file_path: Path to the image file.

    Returns:
        ``"JPEG"`` or ``"PNG"``.

    Raises:
        UnsupportedFormatError: If the extension is neither JPEG nor PNG.
    """
    suffix = file_path.suffix.lower()
    if suffix in JPEG_SUFFIXES:
        return "JPEG"
    if suffix in PNG_SUFFIXES:
        return "PNG"
    raise UnsupportedFormatError(
        f"Unsupported image format: '{suffix or file_path.name}'", path=file_path
    )


def sniff_format(data: bytes) -> str | None:
    """Return ``"JPEG"``/``"PNG"`` from the leading magic bytes, else None."""
    if data.startswith(PNG_SIGNATURE):
        return "PNG"
    if data.startswith(JPEG_SIGNATURE):
        return "JPEG"
    return None


def check_signature(data: bytes, expected: str, name: str | None = None) -> None:
    """Raise if *data* does not carry the signature of *expected*."""
    actual = sniff_format(data)
    if actual != expected:
        label = name or "buffer"
        raise UnsupportedFormatError(
            f"{label} has a {expected} extension but its content is "
            f"{actual or 'not a JPEG or PNG image'}"
        )


def get_image_info(data: bytes) -> dict[str, Any]:
    """
    Describe an encoded image.

    Args:
        data: Encoded JPEG or PNG bytes.

    Returns:
        Dictionary with ``format``, ``width``, ``height`` and ``size``.
    """
    with Image.open(io.BytesIO(data)) as img:
        return {
            "format": img.format,
            "width": img.width,
            "height": img.height,
            "size": len(data),
        }


def get_codec(image_format: str) -> ModuleType:
    """
    Return the codec module for *image_format*.

    Both codecs expose ``embed_note``, ``read_note`` and ``strip_note``
    over raw bytes.
    """
    if image_format == "JPEG":
        return jpeg_codec
    if image_format == "PNG":
        return png_codec
    raise UnsupportedFormatError(f"No codec for image format '{image_format}'")
