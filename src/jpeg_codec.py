"""Store and recover a note in JPEG EXIF and XMP metadata.

The note is written to a redundant set of fields so that at least one
copy survives tools that strip part of the metadata:

- XMP ``memoryink:Note`` (authoritative custom field)
- EXIF ``ImageDescription`` (0th IFD, UTF-8)
- EXIF ``UserComment``      (Exif IFD, UNICODE prefix)
- XMP ``dc:description``    (``x-default``)

Bookkeeping lives in XMP ``memoryink:Encrypted`` / ``memoryink:Version``
and the EXIF ``Software`` producer tag. EXIF is read and written with
``piexif``; the APP1 segments are spliced back without re-encoding the
image, so the scan data is byte-identical.
"""

from __future__ import annotations

import base64
import logging
import re
from typing import Any

import piexif
from piexif.helper import UserComment

from constants import (
    JPEG_ENCRYPTED_MARKER,
    JPEG_MAX_SEGMENT_PAYLOAD,
    JPEG_PLAINTEXT_MARKER,
    NOTE_VERSION,
    PNG_TRUE,
    PRODUCER_NAME,
    XMP_HEADER,
    XMP_MAX_PACKET,
    XMP_NS_MEMORYINK,
    XMP_NS_XMPNOTE,
)
from errors import EmbedFailedError
from fields import (
    EXIF_LOCATIONS,
    EXIF_NOTE_FIELDS,
    JPEG_NOTE_PRIORITY,
    XMP_LOCATIONS,
    NoteField,
)
from jpeg_segments import (
    JpegFile,
    JpegFormatError,
    JpegSegment,
    make_app1,
    replace_metadata_segments,
    split_jpeg,
)
from models import ReadOutcome, ReadResult
from xmp import (
    XmpFormatError,
    XmpPacket,
    assemble_extended,
    extended_payloads,
    standard_payload,
)

logger = logging.getLogger(__name__)

_XMP_HEADER_LEN = len(XMP_HEADER)

# Characters XML 1.0 cannot carry verbatim (CR is normalised by parsers)
_XML_UNSAFE = re.compile("[\x00-\x08\x0b-\x1f\ufffe\uffff]")

# Companion of memoryink:Note; "base64" when the note was not XML-safe
_NOTE_ENCODING = "NoteEncoding"
_EXTENDED_GUID = (XMP_NS_XMPNOTE, "HasExtendedXMP")

# Properties moved to Extended XMP when the main packet is too large
_BULKY_XMP = [
    XMP_LOCATIONS[NoteField.CUSTOM_NOTE],
    (XMP_NS_MEMORYINK, _NOTE_ENCODING),
    XMP_LOCATIONS[NoteField.XMP_DESCRIPTION],
]


_IFD_POINTERS = {
    piexif.ImageIFD.ExifTag,
    piexif.ImageIFD.GPSTag,
    piexif.ExifIFD.InteroperabilityTag,
}


def _readable(note: str) -> str:
    """Copy of *note* that XML can carry verbatim."""
    return _XML_UNSAFE.sub(" ", note.replace("\r\n", "\n"))


def _empty_exif() -> dict[str, Any]:
    return {"0th": {}, "Exif": {}, "GPS": {}, "Interop": {}, "1st": {}, "thumbnail": None}


def _producer(version: str) -> str:
    return f"{PRODUCER_NAME} v{version}"


# ── EXIF ────────────────────────────────────────────────────────────

def _load_exif(jpeg: JpegFile) -> dict[str, Any]:
    segment = jpeg.find(lambda s: s.is_exif)
    if segment is None:
        return _empty_exif()
    return piexif.load(segment.payload)


def _exif_get(exif: dict[str, Any], field: NoteField) -> Any:
    ifd, tag = EXIF_LOCATIONS[field]
    return exif.get(ifd, {}).get(tag)


def _exif_set(exif: dict[str, Any], field: NoteField, value: bytes) -> None:
    ifd, tag = EXIF_LOCATIONS[field]
    exif.setdefault(ifd, {})[tag] = value


def _exif_pop(exif: dict[str, Any], field: NoteField) -> None:
    ifd, tag = EXIF_LOCATIONS[field]
    exif.get(ifd, {}).pop(tag, None)


def _decode_ascii(value: Any) -> str | None:
    """Decode an EXIF ASCII value, which in practice is often UTF-8."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    raw = bytes(value).rstrip(b"\x00")
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def _decode_user_comment(value: Any) -> str | None:
    if not value:
        return None
    try:
        return UserComment.load(bytes(value))
    except ValueError:
        logger.debug("Ignoring UserComment with unknown encoding")
        return None


def _read_exif_fields(exif: dict[str, Any]) -> dict[NoteField, str]:
    found: dict[NoteField, str] = {}
    for field in (NoteField.IMAGE_DESCRIPTION, NoteField.PRODUCER, NoteField.LEGACY_ARTIST):
        value = _decode_ascii(_exif_get(exif, field))
        if value is not None:
            found[field] = value
    comment = _decode_user_comment(_exif_get(exif, NoteField.USER_COMMENT))
    if comment is not None:
        found[NoteField.USER_COMMENT] = comment
    return found


def _has_exif_data(exif: dict[str, Any]) -> bool:
    """True if any IFD holds a tag other than the IFD pointers piexif manages."""
    for ifd in ("0th", "Exif", "GPS", "Interop", "1st"):
        if any(tag not in _IFD_POINTERS for tag in exif.get(ifd, {})):
            return True
    return False


def _dump_exif(exif: dict[str, Any]) -> bytes:
    """Serialise *exif*, dropping redundant note copies until it fits."""
    droppable = list(EXIF_NOTE_FIELDS)
    while True:
        try:
            payload = piexif.dump(exif)
        except Exception as e:
            raise EmbedFailedError(f"Failed to serialise EXIF: {e}") from e
        if len(payload) <= JPEG_MAX_SEGMENT_PAYLOAD:
            return payload
        if not droppable:
            raise EmbedFailedError(
                f"EXIF block of {len(payload)} bytes does not fit in a JPEG segment"
            )
        field = droppable.pop()
        logger.warning("Note too large for EXIF; dropping redundant %s copy", field.name)
        _exif_pop(exif, field)


# ── XMP ─────────────────────────────────────────────────────────────

def _load_xmp(jpeg: JpegFile) -> XmpPacket | None:
    """Return the XMP packet with any Extended XMP merged in."""
    segment = jpeg.find(lambda s: s.is_xmp)
    if segment is None:
        return None
    packet = XmpPacket.parse(segment.payload[_XMP_HEADER_LEN:])

    guid = packet.get(*_EXTENDED_GUID)
    if guid:
        extended = [s.payload for s in jpeg.segments if s.is_extended_xmp]
        body = assemble_extended(extended, guid)
        if body is None:
            logger.debug("Extended XMP %s is missing or corrupt", guid)
        else:
            packet.merge(XmpPacket.parse(body))
        packet.remove(*_EXTENDED_GUID)
    return packet


def _xmp_note(packet: XmpPacket) -> str | None:
    value = packet.get(*XMP_LOCATIONS[NoteField.CUSTOM_NOTE])
    if value is None:
        return None
    if packet.get(XMP_NS_MEMORYINK, _NOTE_ENCODING) == "base64":
        return base64.b64decode(value).decode("utf-8")
    return value


def _read_xmp_fields(packet: XmpPacket) -> dict[NoteField, str]:
    found: dict[NoteField, str] = {}
    note = _xmp_note(packet)
    if note is not None:
        found[NoteField.CUSTOM_NOTE] = note
    description = packet.get_lang_alt(*XMP_LOCATIONS[NoteField.XMP_DESCRIPTION])
    if description is not None:
        found[NoteField.XMP_DESCRIPTION] = description
    for field in (NoteField.ENCRYPTED, NoteField.VERSION):
        value = packet.get(*XMP_LOCATIONS[field])
        if value is not None:
            found[field] = value
    return found


def _write_xmp_note(packet: XmpPacket, note: str, is_encrypted: bool, version: str) -> None:
    if _XML_UNSAFE.search(note):
        encoded = base64.b64encode(note.encode("utf-8")).decode("ascii")
        packet.set(*XMP_LOCATIONS[NoteField.CUSTOM_NOTE], encoded)
        packet.set(XMP_NS_MEMORYINK, _NOTE_ENCODING, "base64")
        readable = _readable(note)
    else:
        packet.set(*XMP_LOCATIONS[NoteField.CUSTOM_NOTE], note)
        packet.remove(XMP_NS_MEMORYINK, _NOTE_ENCODING)
        readable = note
    packet.set_lang_alt(*XMP_LOCATIONS[NoteField.XMP_DESCRIPTION], readable)
    packet.set(
        *XMP_LOCATIONS[NoteField.ENCRYPTED],
        JPEG_ENCRYPTED_MARKER if is_encrypted else JPEG_PLAINTEXT_MARKER,
    )
    packet.set(*XMP_LOCATIONS[NoteField.VERSION], version)


def _xmp_segments(packet: XmpPacket) -> list[JpegSegment]:
    """Serialise *packet*, spilling the note into Extended XMP if needed."""
    packet.remove(*_EXTENDED_GUID)
    if not packet.has_properties():
        return []
    main = standard_payload(packet)
    if len(main) - _XMP_HEADER_LEN <= XMP_MAX_PACKET:
        return [make_app1(main)]

    extended = packet.take(_BULKY_XMP)
    guid, payloads = extended_payloads(extended)
    packet.set(*_EXTENDED_GUID, guid)
    main = standard_payload(packet)
    if len(main) - _XMP_HEADER_LEN > XMP_MAX_PACKET:
        raise EmbedFailedError("XMP packet does not fit in a JPEG segment")
    logger.debug("Note moved to %d Extended XMP segment(s)", len(payloads))
    return [make_app1(main)] + [make_app1(payload) for payload in payloads]


def _splice(jpeg: JpegFile, exif_payload: bytes | None, packet: XmpPacket | None) -> bytes:
    segments: list[JpegSegment] = []
    if exif_payload is not None:
        segments.append(make_app1(exif_payload))
    if packet is not None:
        segments.extend(_xmp_segments(packet))
    return replace_metadata_segments(jpeg, segments).to_bytes()


# ── Public API ──────────────────────────────────────────────────────

def embed_note(
    data: bytes,
    note: str,
    is_encrypted: bool = False,
    version: str = NOTE_VERSION,
    legacy_artist_marker: bool = False,
) -> bytes:
    """
    Embed *note* into JPEG bytes.

    Args:
        data: Source JPEG bytes (not modified).
        note: Note content (plaintext or ciphertext envelope).
        is_encrypted: Encrypted flag to record.
        version: Version tag to record.
        legacy_artist_marker: Also write ``ENCRYPTED``/``PLAINTEXT`` into
            EXIF ``Artist``, as older MemoryInk clients did.

    Returns:
        New JPEG bytes.

    Raises:
        EmbedFailedError: If the existing metadata cannot be parsed or the
            new metadata cannot be written.
    """
    try:
        jpeg = split_jpeg(data)
        exif = _load_exif(jpeg)
        packet = _load_xmp(jpeg) or XmpPacket.empty()
    except (JpegFormatError, XmpFormatError) as e:
        raise EmbedFailedError(f"Failed to embed note in JPEG: {e}") from e
    except Exception as e:
        raise EmbedFailedError(f"Failed to read existing JPEG metadata: {e}") from e

    _exif_set(exif, NoteField.IMAGE_DESCRIPTION, note.encode("utf-8"))
    _exif_set(exif, NoteField.USER_COMMENT, UserComment.dump(note, encoding=UserComment.UNICODE))
    _exif_set(exif, NoteField.PRODUCER, _producer(version).encode("utf-8"))
    if legacy_artist_marker:
        marker = JPEG_ENCRYPTED_MARKER if is_encrypted else JPEG_PLAINTEXT_MARKER
        _exif_set(exif, NoteField.LEGACY_ARTIST, marker.encode("ascii"))

    _write_xmp_note(packet, note, is_encrypted, version)

    try:
        return _splice(jpeg, _dump_exif(exif), packet)
    except ValueError as e:
        raise EmbedFailedError(f"Failed to embed note in JPEG: {e}") from e


def read_note(data: bytes) -> ReadResult:
    """
    Read the embedded note from JPEG bytes.

    Fields are consulted in ``JPEG_NOTE_PRIORITY`` order. The custom XMP
    field wins whenever it is present (even if empty); the generic
    fields only count when non-empty. Never raises.
    """
    try:
        jpeg = split_jpeg(data)
    except JpegFormatError as e:
        return ReadResult.unreadable(e)

    fields: dict[NoteField, str] = {}
    errors: list[Exception] = []
    try:
        fields.update(_read_exif_fields(_load_exif(jpeg)))
    except Exception as e:
        logger.debug("Unreadable EXIF block", exc_info=True)
        errors.append(e)
    try:
        packet = _load_xmp(jpeg)
        if packet is not None:
            fields.update(_read_xmp_fields(packet))
    except Exception as e:
        logger.debug("Unreadable XMP packet", exc_info=True)
        errors.append(e)

    note: str | None = None
    for field in JPEG_NOTE_PRIORITY:
        value = fields.get(field)
        if value is None:
            continue
        if value or field is NoteField.CUSTOM_NOTE:
            note = value
            break

    if note is None:
        return ReadResult.unreadable(errors[0]) if errors else ReadResult.absent()

    marker = fields.get(NoteField.ENCRYPTED)
    if marker is not None:
        is_encrypted = marker in (JPEG_ENCRYPTED_MARKER, PNG_TRUE)
    else:
        is_encrypted = fields.get(NoteField.LEGACY_ARTIST) == JPEG_ENCRYPTED_MARKER

    version = fields.get(NoteField.VERSION)
    producer = fields.get(NoteField.PRODUCER, "")
    if version is None and producer.startswith(f"{PRODUCER_NAME} v"):
        version = producer[len(PRODUCER_NAME) + 2 :]

    return ReadResult(ReadOutcome.FOUND, note=note, is_encrypted=is_encrypted, version=version)


def strip_note(data: bytes) -> bytes:
    """
    Remove MemoryInk fields from JPEG bytes.

    Redundant EXIF/XMP copies are removed only while they still hold the
    embedded note, and the producer/artist markers only while they still
    hold MemoryInk values, so foreign edits made since are kept.

    Raises:
        EmbedFailedError: If the metadata cannot be parsed or rewritten.
    """
    try:
        jpeg = split_jpeg(data)
        exif_segment = jpeg.find(lambda s: s.is_exif)
        exif = _load_exif(jpeg)
        packet = _load_xmp(jpeg)
    except Exception as e:
        raise EmbedFailedError(f"Failed to strip note from JPEG: {e}") from e

    current = read_note(data).note
    exif_fields = _read_exif_fields(exif)
    for field in EXIF_NOTE_FIELDS:
        if current is not None and exif_fields.get(field) == current:
            _exif_pop(exif, field)
    if exif_fields.get(NoteField.PRODUCER, "").startswith(f"{PRODUCER_NAME} v"):
        _exif_pop(exif, NoteField.PRODUCER)
    if exif_fields.get(NoteField.LEGACY_ARTIST) in (JPEG_ENCRYPTED_MARKER, JPEG_PLAINTEXT_MARKER):
        _exif_pop(exif, NoteField.LEGACY_ARTIST)

    if packet is not None:
        description = XMP_LOCATIONS[NoteField.XMP_DESCRIPTION]
        if current is not None and packet.get_lang_alt(*description) in (current, _readable(current)):
            packet.remove(*description)
        for field in (NoteField.CUSTOM_NOTE, NoteField.ENCRYPTED, NoteField.VERSION):
            packet.remove(*XMP_LOCATIONS[field])
        packet.remove(XMP_NS_MEMORYINK, _NOTE_ENCODING)

    has_exif = exif_segment is not None and _has_exif_data(exif)
    try:
        return _splice(jpeg, _dump_exif(exif) if has_exif else None, packet)
    except ValueError as e:
        raise EmbedFailedError(f"Failed to strip note from JPEG: {e}") from e


def read_exif_context(data: bytes) -> dict[str, str]:
    """
    Return the producer, artist and timestamp tags shown next to a note.

    Missing or unreadable tags are left out.
    """
    try:
        exif = _load_exif(split_jpeg(data))
    except Exception:
        logger.debug("No readable EXIF block", exc_info=True)
        return {}

    context: dict[str, str] = {}
    for key, (ifd, tag) in (
        ("software", ("0th", piexif.ImageIFD.Software)),
        ("artist", ("0th", piexif.ImageIFD.Artist)),
        ("dateTime", ("0th", piexif.ImageIFD.DateTime)),
    ):
        value = _decode_ascii(exif.get(ifd, {}).get(tag))
        if value:
            context[key] = value
    return context


def count_note_fields(data: bytes) -> int:
    """Number of populated note slots (content and bookkeeping), 0 if unreadable."""
    try:
        jpeg = split_jpeg(data)
        fields = _read_exif_fields(_load_exif(jpeg))
        packet = _load_xmp(jpeg)
        if packet is not None:
            fields.update(_read_xmp_fields(packet))
    except Exception:
        logger.debug("Cannot count note fields", exc_info=True)
        return 0
    return len(fields)


__all__ = [
    "embed_note",
    "read_note",
    "strip_note",
    "read_exif_context",
    "count_note_fields",
]
