"""Shared constants for note embedding, format detection, and encryption.

All modules reference these constants rather than hard-coding values,
so renaming a reserved keyword or bumping the note version requires
updating only this file.
"""

__version__ = "0.3.0"

# Supported image formats
SUPPORTED_FORMATS = {".png", ".jpg", ".jpeg"}
JPEG_SUFFIXES = {".jpg", ".jpeg"}
PNG_SUFFIXES = {".png"}

# Version tag written next to every embedded note
NOTE_VERSION = "1.0"
PRODUCER_NAME = "MemoryInk"

# Signatures
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SIGNATURE = b"\xff\xd8\xff"

# PNG reserved text keywords (tEXt / iTXt / zTXt)
PNG_NOTE_KEYWORD = "MemoryInkNote"
PNG_ENCRYPTED_KEYWORD = "MemoryInkEncrypted"
PNG_VERSION_KEYWORD = "MemoryInkVersion"
PNG_RESERVED_KEYWORDS = frozenset(
    {PNG_NOTE_KEYWORD, PNG_ENCRYPTED_KEYWORD, PNG_VERSION_KEYWORD}
)
PNG_TEXT_CHUNK_TYPES = frozenset({b"tEXt", b"iTXt", b"zTXt"})
PNG_MAX_KEYWORD_LENGTH = 79

# PNG boolean literals for MemoryInkEncrypted
PNG_TRUE = "true"
PNG_FALSE = "false"

# JPEG marker literals for the encrypted flag
JPEG_ENCRYPTED_MARKER = "ENCRYPTED"
JPEG_PLAINTEXT_MARKER = "PLAINTEXT"

# JPEG segment limits
JPEG_MAX_SEGMENT_PAYLOAD = 65533  # 0xFFFF minus the 2-byte length field
EXIF_HEADER = b"Exif\x00\x00"
XMP_HEADER = b"http://ns.adobe.com/xap/1.0/\x00"
XMP_EXTENSION_HEADER = b"http://ns.adobe.com/xmp/extension/\x00"
# 32-byte GUID + 4-byte full length + 4-byte offset
XMP_EXTENSION_PREAMBLE = 40
XMP_MAX_PACKET = JPEG_MAX_SEGMENT_PAYLOAD - len(XMP_HEADER)
XMP_EXTENSION_CHUNK = (
    JPEG_MAX_SEGMENT_PAYLOAD - len(XMP_EXTENSION_HEADER) - XMP_EXTENSION_PREAMBLE
)

# XMP namespaces
XMP_NS_META = "adobe:ns:meta/"
XMP_NS_RDF = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
XMP_NS_DC = "http://purl.org/dc/elements/1.1/"
XMP_NS_XML = "http://www.w3.org/XML/1998/namespace"
XMP_NS_XMPNOTE = "http://ns.adobe.com/xmp/note/"
XMP_NS_MEMORYINK = "https://memoryink.app/ns/1.0/"

XMP_NAMESPACE_PREFIXES = {
    "x": XMP_NS_META,
    "rdf": XMP_NS_RDF,
    "dc": XMP_NS_DC,
    "xmpNote": XMP_NS_XMPNOTE,
    "memoryink": XMP_NS_MEMORYINK,
}

# Note cipher parameters
CIPHER_SALT_BYTES = 32
CIPHER_IV_BYTES = 16
CIPHER_KEY_BYTES = 32
CIPHER_TAG_BYTES = 16
PBKDF2_ITERATIONS = 100_000
PBKDF2_MIN_ITERATIONS = 100_000
CIPHER_ASSOCIATED_DATA = b"memoryink-note"

# Self-contained encrypted note envelope
ENCRYPTED_TOKEN_PREFIX = "ENCRYPTED"
ENCRYPTED_TOKEN_VERSION = "v1"

# Environment variables
ENV_PBKDF2_ITERATIONS = "MEMORYINK_PBKDF2_ITERATIONS"
ENV_LEGACY_ARTIST = "MEMORYINK_LEGACY_ARTIST"
ENV_PASSWORD = "MEMORYINK_PASSWORD"
