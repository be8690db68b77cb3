"""Closed set of metadata slots owned by MemoryInk.

Each ``NoteField`` maps to its concrete location in a given container
(EXIF IFD/tag, XMP property, PNG text keyword). Codecs look fields up
here instead of passing tag names around as loose strings.
"""

from __future__ import annotations

from enum import Enum

import piexif

from constants import (
    PNG_ENCRYPTED_KEYWORD,
    PNG_NOTE_KEYWORD,
    PNG_VERSION_KEYWORD,
    XMP_NS_DC,
    XMP_NS_MEMORYINK,
)


class NoteField(Enum):
    """Reserved metadata slots written or read by the codecs."""

    CUSTOM_NOTE = "custom_note"
    IMAGE_DESCRIPTION = "image_description"
    USER_COMMENT = "user_comment"
    XMP_DESCRIPTION = "xmp_description"
    ENCRYPTED = "encrypted"
    VERSION = "version"
    PRODUCER = "producer"
    LEGACY_ARTIST = "legacy_artist"


# (IFD name, tag id) for fields stored in EXIF
EXIF_LOCATIONS: dict[NoteField, tuple[str, int]] = {
    NoteField.IMAGE_DESCRIPTION: ("0th", piexif.ImageIFD.ImageDescription),
    NoteField.USER_COMMENT: ("Exif", piexif.ExifIFD.UserComment),
    NoteField.PRODUCER: ("0th", piexif.ImageIFD.Software),
    NoteField.LEGACY_ARTIST: ("0th", piexif.ImageIFD.Artist),
}

# (namespace URI, local name) for fields stored in XMP
XMP_LOCATIONS: dict[NoteField, tuple[str, str]] = {
    NoteField.CUSTOM_NOTE: (XMP_NS_MEMORYINK, "Note"),
    NoteField.XMP_DESCRIPTION: (XMP_NS_DC, "description"),
    NoteField.ENCRYPTED: (XMP_NS_MEMORYINK, "Encrypted"),
    NoteField.VERSION: (XMP_NS_MEMORYINK, "Version"),
}

# Keyword for fields stored as PNG text chunks
PNG_KEYWORDS: dict[NoteField, str] = {
    NoteField.CUSTOM_NOTE: PNG_NOTE_KEYWORD,
    NoteField.ENCRYPTED: PNG_ENCRYPTED_KEYWORD,
    NoteField.VERSION: PNG_VERSION_KEYWORD,
}

# Redundant content fields in JPEG, most authoritative first
JPEG_NOTE_PRIORITY: tuple[NoteField, ...] = (
    NoteField.CUSTOM_NOTE,
    NoteField.IMAGE_DESCRIPTION,
    NoteField.USER_COMMENT,
    NoteField.XMP_DESCRIPTION,
)

# Redundant EXIF copies, most authoritative first; dropped from the end when space runs out
EXIF_NOTE_FIELDS: tuple[NoteField, ...] = (
    NoteField.IMAGE_DESCRIPTION,
    NoteField.USER_COMMENT,
)
