"""PNG chunk stream parsing and text chunk encoding.

A PNG file is the 8-byte signature followed by chunks of the form
``length(4) | type(4) | data(length) | crc(4)``. This module splits a
file into chunks, re-encodes them with fresh CRCs, and converts between
``tEXt``/``zTXt``/``iTXt`` chunks and ``(keyword, text)`` pairs.

The parser uses byte-level scanning and only validates what it needs:
the signature, chunk bounds, and (on request) CRCs of text chunks.
"""

from __future__ import annotations

import struct
import zlib
from dataclasses import dataclass

from constants import PNG_MAX_KEYWORD_LENGTH, PNG_SIGNATURE, PNG_TEXT_CHUNK_TYPES

IEND = b"IEND"


class PngFormatError(ValueError):
    """The byte stream is not a well-formed PNG chunk sequence."""


@dataclass(frozen=True)
class PngChunk:
    """One chunk; ``crc`` is the stored checksum (None for new chunks)."""

    type: bytes
    data: bytes
    crc: int | None = None

    @property
    def computed_crc(self) -> int:
        return zlib.crc32(self.type + self.data) & 0xFFFFFFFF

    @property
    def crc_ok(self) -> bool:
        return self.crc is None or self.crc == self.computed_crc

    @property
    def is_text(self) -> bool:
        return self.type in PNG_TEXT_CHUNK_TYPES

    def encode(self) -> bytes:
        return (
            struct.pack(">I", len(self.data))
            + self.type
            + self.data
            + struct.pack(">I", self.computed_crc)
        )


def parse_chunks(data: bytes) -> list[PngChunk]:
    """
    Split a PNG byte stream into chunks, up to and including ``IEND``.

    Args:
        data: Encoded PNG bytes.

    Returns:
        Ordered list of chunks. Bytes after ``IEND`` are discarded.

    Raises:
        PngFormatError: On a bad signature, a truncated chunk, or a
            missing ``IEND``.
    """
    if not data.startswith(PNG_SIGNATURE):
        raise PngFormatError("Missing PNG signature")

    chunks: list[PngChunk] = []
    offset = len(PNG_SIGNATURE)
    total = len(data)

    while offset < total:
        if offset + 8 > total:
            raise PngFormatError(f"Truncated chunk header at offset {offset}")
        length, chunk_type = struct.unpack(">I4s", data[offset : offset + 8])
        data_start = offset + 8
        data_end = data_start + length
        if data_end + 4 > total:
            raise PngFormatError(
                f"Chunk {chunk_type!r} at offset {offset} runs past end of file"
            )
        crc = struct.unpack(">I", data[data_end : data_end + 4])[0]
        chunks.append(PngChunk(chunk_type, data[data_start:data_end], crc))
        offset = data_end + 4

        if chunk_type == IEND:
            return chunks

    raise PngFormatError("PNG stream has no IEND chunk")


def encode_chunks(chunks: list[PngChunk]) -> bytes:
    """Serialise *chunks* back into a PNG byte stream."""
    return PNG_SIGNATURE + b"".join(chunk.encode() for chunk in chunks)


def _validate_keyword(keyword: str) -> bytes:
    try:
        raw = keyword.encode("latin-1")
    except UnicodeEncodeError as e:
        raise ValueError(f"PNG keyword must be Latin-1: {keyword!r}") from e
    if not 1 <= len(raw) <= PNG_MAX_KEYWORD_LENGTH:
        raise ValueError(f"PNG keyword must be 1-{PNG_MAX_KEYWORD_LENGTH} bytes: {keyword!r}")
    if b"\x00" in raw or keyword != keyword.strip():
        raise ValueError(f"Invalid PNG keyword: {keyword!r}")
    return raw


def encode_text_chunk(keyword: str, text: str, international: bool = False) -> PngChunk:
    """
    Build a text chunk.

    Args:
        keyword: Latin-1 keyword, 1-79 bytes.
        text: Chunk text.
        international: Write ``iTXt`` (UTF-8) instead of ``tEXt`` (Latin-1).

    Returns:
        The new chunk.
    """
    raw_keyword = _validate_keyword(keyword)
    if international:
        # keyword \0 flag=0 method=0 language \0 translated-keyword \0 text
        payload = raw_keyword + b"\x00\x00\x00" + b"\x00" + b"\x00" + text.encode("utf-8")
        return PngChunk(b"iTXt", payload)
    return PngChunk(b"tEXt", raw_keyword + b"\x00" + text.encode("latin-1"))


def _decode_latin1_text(raw: bytes) -> str:
    # Some writers put UTF-8 into tEXt; prefer it when it decodes cleanly.
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def decode_text_chunk(chunk: PngChunk) -> tuple[str, str]:
    """
    Decode a ``tEXt``, ``zTXt`` or ``iTXt`` chunk.

    Args:
        chunk: A text chunk.

    Returns:
        ``(keyword, text)``.

    Raises:
        PngFormatError: If the chunk is not a text chunk or is malformed.
    """
    if not chunk.is_text:
        raise PngFormatError(f"{chunk.type!r} is not a text chunk")

    keyword_raw, sep, rest = chunk.data.partition(b"\x00")
    if not sep:
        raise PngFormatError(f"{chunk.type!r} chunk has no keyword separator")
    keyword = keyword_raw.decode("latin-1")

    try:
        if chunk.type == b"tEXt":
            return keyword, _decode_latin1_text(rest)

        if chunk.type == b"zTXt":
            if not rest or rest[0] != 0:
                raise PngFormatError("zTXt uses an unknown compression method")
            return keyword, _decode_latin1_text(zlib.decompress(rest[1:]))

        # iTXt
        if len(rest) < 2:
            raise PngFormatError("iTXt chunk is truncated")
        compressed, method = rest[0], rest[1]
        _language, sep1, rest = rest[2:].partition(b"\x00")
        _translated, sep2, body = rest.partition(b"\x00")
        if not (sep1 and sep2):
            raise PngFormatError("iTXt chunk is truncated")
        if compressed:
            if method != 0:
                raise PngFormatError("iTXt uses an unknown compression method")
            body = zlib.decompress(body)
        return keyword, body.decode("utf-8")
    except (zlib.error, UnicodeDecodeError) as e:
        raise PngFormatError(f"Cannot decode {chunk.type!r} chunk '{keyword}': {e}") from e


def text_keyword(chunk: PngChunk) -> str | None:
    """Return the keyword of a text chunk without decoding its text."""
    if not chunk.is_text:
        return None
    keyword_raw, sep, _ = chunk.data.partition(b"\x00")
    if not sep:
        return None
    return keyword_raw.decode("latin-1")
