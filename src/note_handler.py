"""Public façade for the note pipeline, re-exporting every public symbol.

Consumers should ``import note_handler`` rather than reaching into the
internal modules directly. This file gathers all public names so that
the API surface stays stable even as the implementation is reorganised.

Internal modules:

- ``constants``    : reserved names, sizes and cipher parameters
- ``config``       : ``CodecConfig`` and environment overrides
- ``utils``        : format detection and codec lookup
- ``targets``      : file and in-memory byte adapters
- ``png_codec``    : PNG text chunk codec
- ``jpeg_codec``   : JPEG EXIF/XMP codec
- ``cipher``       : password-based note encryption
- ``injector``     : embed a note
- ``extractor``    : read a note
- ``cleaner``      : remove a note
- ``secure_note``  : encrypt-then-embed and extract-then-decrypt
- ``batch``        : directory scans
"""

from batch import BatchConfig, BatchItem, BatchRunner, iter_images
from cipher import (
    EncryptedNote,
    create_note_hash,
    decrypt_note,
    encrypt_note,
    is_encrypted_token,
    verify_note_hash,
)
from cleaner import remove_note
from config import DEFAULT_CONFIG, CodecConfig
from constants import (
    NOTE_VERSION,
    PNG_ENCRYPTED_KEYWORD,
    PNG_NOTE_KEYWORD,
    PNG_VERSION_KEYWORD,
    SUPPORTED_FORMATS,
)
from errors import (
    CryptoError,
    DecryptionFailedError,
    EmbedFailedError,
    ExtractFailedError,
    IntegrityMismatchError,
    MemoryInkError,
    UnsupportedFormatError,
)
from extractor import extract_note, extract_report, get_note_summary, has_note
from fields import NoteField
from injector import embed_note
from models import ExtractResult, Note
from secure_note import embed_encrypted_note, load_note, reveal_note
from targets import FileTarget, MemoryTarget, to_data_url
from utils import get_image_format, get_image_info, is_supported_format

__all__ = [
    # Constants
    "SUPPORTED_FORMATS",
    "NOTE_VERSION",
    "PNG_NOTE_KEYWORD",
    "PNG_ENCRYPTED_KEYWORD",
    "PNG_VERSION_KEYWORD",
    # Configuration
    "CodecConfig",
    "DEFAULT_CONFIG",
    # Types
    "Note",
    "ExtractResult",
    "NoteField",
    "EncryptedNote",
    "FileTarget",
    "MemoryTarget",
    # Errors
    "MemoryInkError",
    "UnsupportedFormatError",
    "EmbedFailedError",
    "ExtractFailedError",
    "CryptoError",
    "DecryptionFailedError",
    "IntegrityMismatchError",
    # Embed / extract / remove
    "embed_note",
    "extract_note",
    "extract_report",
    "has_note",
    "get_note_summary",
    "remove_note",
    # Encryption
    "encrypt_note",
    "decrypt_note",
    "create_note_hash",
    "verify_note_hash",
    "is_encrypted_token",
    "embed_encrypted_note",
    "load_note",
    "reveal_note",
    # Batch
    "BatchConfig",
    "BatchItem",
    "BatchRunner",
    "iter_images",
    # Utils
    "get_image_format",
    "get_image_info",
    "is_supported_format",
    "to_data_url",
]
