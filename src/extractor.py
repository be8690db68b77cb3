"""Read-only note extraction from PNG and JPEG images.

Provides the embedded note as an ``ExtractResult``, a presence check,
and a summary used by the CLI, without modifying the source.
"""

from __future__ import annotations

import logging
from typing import Any

import jpeg_codec
from errors import ExtractFailedError
from models import ExtractResult, ReadOutcome, ReadResult
from targets import FileTarget, ImageTarget, TargetLike, as_target
from utils import get_codec, sniff_format

logger = logging.getLogger(__name__)


def _read(image: ImageTarget) -> tuple[ReadResult, bytes, str | None]:
    """Return the codec result, the raw bytes and the detected format."""
    declared = image.format
    try:
        data = image.read()
    except OSError as e:
        logger.debug("Could not read %s: %s", image.name or "buffer", e)
        error = ExtractFailedError(f"Could not read {image.name or 'buffer'}: {e}")
        return ReadResult.unreadable(error), b"", None

    actual = sniff_format(data)
    if actual is None:
        error = ExtractFailedError(f"{image.name or 'buffer'} is not a JPEG or PNG image")
        return ReadResult.unreadable(error), data, None
    if actual != declared:
        logger.debug("%s has a %s extension but holds %s data", image.name, declared, actual)

    result = get_codec(actual).read_note(data)
    if result.outcome is ReadOutcome.UNREADABLE:
        logger.debug("Could not read note metadata of %s: %s", image.name or "buffer", result.error)
    return result, data, actual


def read_note(target: TargetLike) -> ReadResult:
    """
    Read the note with its outcome kept explicit.

    The extension picks the format; when the bytes disagree with it the
    signature wins, and bytes that are neither JPEG nor PNG are
    ``UNREADABLE``.

    Raises:
        UnsupportedFormatError: If the extension is not JPEG or PNG.
    """
    return _read(as_target(target))[0]


def extract_note(target: TargetLike) -> ExtractResult:
    """
    Extract the embedded note from an image.

    Args:
        target: Image path, raw bytes, ``data:`` URL, or target adapter.

    Returns:
        The note and its flags; ``note`` is None when no note is present
        or the metadata could not be read.

    Raises:
        UnsupportedFormatError: If the extension is not JPEG or PNG.
    """
    return read_note(target).to_extract_result()


def has_note(target: TargetLike) -> bool:
    return extract_note(target).found


def extract_report(target: TargetLike, strict: bool = False) -> dict[str, Any]:
    """
    Extract the note together with the context shown by the CLI.

    Args:
        target: Image path, raw bytes, ``data:`` URL, or target adapter.
        strict: Raise instead of returning an empty report when the file
            or its metadata cannot be read.

    Returns:
        Dictionary with ``file``, ``note``, ``isEncrypted``, ``version``
        and, for JPEG images that carry them, a ``metadata`` dict of the
        producer, artist and timestamp tags.

    Raises:
        ExtractFailedError: With *strict*, if the image is unreadable.
    """
    image = as_target(target)
    result, data, image_format = _read(image)
    if strict and result.outcome is ReadOutcome.UNREADABLE:
        raise ExtractFailedError(str(result.error)) from result.error
    report: dict[str, Any] = {"file": _label(image)}
    report.update(result.to_extract_result().to_dict())
    if image_format == "JPEG":
        context = jpeg_codec.read_exif_context(data)
        if context:
            report["metadata"] = context
    return report


def get_note_summary(target: TargetLike) -> dict[str, Any]:
    """
    Summarise the note in an image without exposing its content.

    Returns:
        Dictionary with ``file``, ``found``, ``noteLength``,
        ``isEncrypted``, ``version`` and, when present, ``metadata``.
    """
    report = extract_report(target)
    note = report.pop("note")
    summary: dict[str, Any] = {
        "file": report.pop("file"),
        "found": note is not None,
        "noteLength": len(note) if note is not None else 0,
    }
    summary.update(report)
    return summary


def _label(image: ImageTarget) -> str:
    if isinstance(image, FileTarget):
        return str(image.path)
    return image.name or "<buffer>"
