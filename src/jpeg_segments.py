"""JPEG marker segment splitting and APP1 splicing.

Only the header segments (everything before Start-Of-Scan) are parsed.
The scan data and whatever follows it are carried as an opaque tail, so
splicing metadata never touches pixel data.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

from constants import EXIF_HEADER, JPEG_MAX_SEGMENT_PAYLOAD, XMP_EXTENSION_HEADER, XMP_HEADER

SOI = 0xD8
EOI = 0xD9
SOS = 0xDA
APP0 = 0xE0
APP1 = 0xE1

# Markers that carry no length field
_STANDALONE = {0x01, *range(0xD0, 0xD8)}


class JpegFormatError(ValueError):
    """The byte stream is not a well-formed JPEG header."""


@dataclass(frozen=True)
class JpegSegment:
    """A marker segment; ``payload`` excludes the marker and length bytes."""

    marker: int
    payload: bytes = b""

    def encode(self) -> bytes:
        if self.marker in _STANDALONE:
            return bytes((0xFF, self.marker))
        return bytes((0xFF, self.marker)) + struct.pack(">H", len(self.payload) + 2) + self.payload

    @property
    def is_exif(self) -> bool:
        return self.marker == APP1 and self.payload.startswith(EXIF_HEADER)

    @property
    def is_xmp(self) -> bool:
        return self.marker == APP1 and self.payload.startswith(XMP_HEADER)

    @property
    def is_extended_xmp(self) -> bool:
        return self.marker == APP1 and self.payload.startswith(XMP_EXTENSION_HEADER)


@dataclass
class JpegFile:
    """Header segments plus the untouched scan tail."""

    segments: list[JpegSegment] = field(default_factory=list)
    tail: bytes = b""

    def find(self, predicate) -> JpegSegment | None:
        for segment in self.segments:
            if predicate(segment):
                return segment
        return None

    def to_bytes(self) -> bytes:
        return bytes((0xFF, SOI)) + b"".join(s.encode() for s in self.segments) + self.tail


def split_jpeg(data: bytes) -> JpegFile:
    """
    Split JPEG bytes into header segments and the scan tail.

    Args:
        data: Encoded JPEG bytes.

    Returns:
        A ``JpegFile`` whose ``to_bytes()`` reproduces *data*, modulo
        fill bytes between segments.

    Raises:
        JpegFormatError: If the stream has no SOI or a segment is truncated.
    """
    if data[:2] != b"\xff\xd8":
        raise JpegFormatError("Missing JPEG SOI marker")

    jpeg = JpegFile()
    offset = 2
    total = len(data)

    while offset < total:
        if data[offset] != 0xFF:
            raise JpegFormatError(f"Expected marker at offset {offset}")
        # Skip fill bytes
        while offset < total and data[offset] == 0xFF:
            offset += 1
        if offset >= total:
            break
        marker = data[offset]
        marker_start = offset - 1
        offset += 1

        if marker in (SOS, EOI):
            jpeg.tail = data[marker_start:]
            return jpeg
        if marker in _STANDALONE:
            jpeg.segments.append(JpegSegment(marker))
            continue

        if offset + 2 > total:
            raise JpegFormatError(f"Truncated length for marker 0x{marker:02X}")
        length = struct.unpack(">H", data[offset : offset + 2])[0]
        if length < 2 or offset + length > total:
            raise JpegFormatError(f"Segment 0x{marker:02X} at offset {marker_start} is truncated")
        jpeg.segments.append(JpegSegment(marker, data[offset + 2 : offset + length]))
        offset += length

    raise JpegFormatError("JPEG stream ends before start of scan")


def make_app1(payload: bytes) -> JpegSegment:
    """Build an APP1 segment, refusing payloads that do not fit."""
    if len(payload) > JPEG_MAX_SEGMENT_PAYLOAD:
        raise ValueError(
            f"APP1 payload of {len(payload)} bytes exceeds {JPEG_MAX_SEGMENT_PAYLOAD}"
        )
    return JpegSegment(APP1, payload)


def _is_note_metadata(segment: JpegSegment) -> bool:
    return segment.is_exif or segment.is_xmp or segment.is_extended_xmp


def replace_metadata_segments(jpeg: JpegFile, new_segments: list[JpegSegment]) -> JpegFile:
    """
    Swap the EXIF and XMP APP1 segments of *jpeg* for *new_segments*.

    The replacements take the position of the first segment they
    replace, or follow the leading APP0 (JFIF) segments when the image
    had no EXIF/XMP yet. All other segments keep their order.
    """
    kept: list[JpegSegment] = []
    insert_at: int | None = None
    for segment in jpeg.segments:
        if _is_note_metadata(segment):
            if insert_at is None:
                insert_at = len(kept)
            continue
        kept.append(segment)

    if insert_at is None:
        insert_at = 0
        while insert_at < len(kept) and kept[insert_at].marker == APP0:
            insert_at += 1

    kept[insert_at:insert_at] = new_segments
    return JpegFile(kept, jpeg.tail)
