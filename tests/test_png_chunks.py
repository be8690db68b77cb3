"""Tests for png_chunks module."""

import zlib
from pathlib import Path

import pytest

from constants import PNG_SIGNATURE
from png_chunks import (
    PngChunk,
    PngFormatError,
    decode_text_chunk,
    encode_chunks,
    encode_text_chunk,
    parse_chunks,
    text_keyword,
)


class TestParseChunks:
    """Tests for parse_chunks function."""

    def test_starts_with_ihdr_and_ends_with_iend(self, sample_png: Path) -> None:
        chunks = parse_chunks(sample_png.read_bytes())

        assert chunks[0].type == b"IHDR"
        assert chunks[-1].type == b"IEND"

    def test_reencode_is_byte_identical(self, sample_png: Path) -> None:
        data = sample_png.read_bytes()

        assert encode_chunks(parse_chunks(data)) == data

    def test_stored_crcs_validate(self, sample_png: Path) -> None:
        chunks = parse_chunks(sample_png.read_bytes())

        assert all(chunk.crc_ok for chunk in chunks)

    def test_drops_bytes_after_iend(self, sample_png: Path) -> None:
        data = sample_png.read_bytes()

        assert encode_chunks(parse_chunks(data + b"trailing junk")) == data

    def test_rejects_missing_signature(self) -> None:
        with pytest.raises(PngFormatError):
            parse_chunks(b"GIF89a" + b"\x00" * 20)

    def test_rejects_truncated_chunk(self, sample_png: Path) -> None:
        data = sample_png.read_bytes()

        with pytest.raises(PngFormatError):
            parse_chunks(data[:30])

    def test_rejects_stream_without_iend(self, sample_png: Path) -> None:
        chunks = parse_chunks(sample_png.read_bytes())[:-1]

        with pytest.raises(PngFormatError):
            parse_chunks(PNG_SIGNATURE + b"".join(chunk.encode() for chunk in chunks))


class TestPngChunk:
    """Tests for PngChunk dataclass."""

    def test_detects_bad_crc(self) -> None:
        chunk = PngChunk(b"tEXt", b"Key\x00value", crc=0)

        assert chunk.crc_ok is False

    def test_new_chunk_has_no_stored_crc(self) -> None:
        assert PngChunk(b"tEXt", b"Key\x00value").crc_ok is True

    def test_encode_layout(self) -> None:
        encoded = PngChunk(b"tEXt", b"K\x00v").encode()

        assert encoded[:4] == b"\x00\x00\x00\x03"
        assert encoded[4:8] == b"tEXt"
        assert encoded[8:11] == b"K\x00v"
        assert int.from_bytes(encoded[11:], "big") == zlib.crc32(b"tEXtK\x00v")

    def test_is_text(self) -> None:
        assert PngChunk(b"iTXt", b"").is_text is True
        assert PngChunk(b"IDAT", b"").is_text is False


class TestTextChunks:
    """Tests for text chunk encoding and decoding."""

    def test_itxt_keeps_multibyte_text(self) -> None:
        chunk = encode_text_chunk("MemoryInkNote", "夏の思い出 🌻", international=True)

        assert chunk.type == b"iTXt"
        assert decode_text_chunk(chunk) == ("MemoryInkNote", "夏の思い出 🌻")

    def test_text_chunk_is_latin1(self) -> None:
        chunk = encode_text_chunk("Comment", "café")

        assert chunk.type == b"tEXt"
        assert chunk.data == b"Comment\x00caf\xe9"
        assert decode_text_chunk(chunk) == ("Comment", "café")

    def test_text_chunk_holding_utf8_is_decoded_as_utf8(self) -> None:
        chunk = PngChunk(b"tEXt", b"MemoryInkNote\x00" + "día".encode("utf-8"))

        assert decode_text_chunk(chunk) == ("MemoryInkNote", "día")

    def test_decodes_ztxt(self) -> None:
        chunk = PngChunk(b"zTXt", b"Comment\x00\x00" + zlib.compress(b"hello"))

        assert decode_text_chunk(chunk) == ("Comment", "hello")

    def test_decodes_compressed_itxt(self) -> None:
        body = zlib.compress("grüße".encode("utf-8"))
        chunk = PngChunk(b"iTXt", b"Note\x00\x01\x00de\x00Notiz\x00" + body)

        assert decode_text_chunk(chunk) == ("Note", "grüße")

    def test_empty_text(self) -> None:
        chunk = encode_text_chunk("MemoryInkNote", "", international=True)

        assert decode_text_chunk(chunk) == ("MemoryInkNote", "")

    def test_rejects_non_text_chunk(self) -> None:
        with pytest.raises(PngFormatError):
            decode_text_chunk(PngChunk(b"IDAT", b"\x00\x01"))

    def test_rejects_corrupt_ztxt(self) -> None:
        with pytest.raises(PngFormatError):
            decode_text_chunk(PngChunk(b"zTXt", b"Comment\x00\x00not-zlib"))

    def test_rejects_empty_keyword(self) -> None:
        with pytest.raises(ValueError):
            encode_text_chunk("", "text")

    def test_rejects_long_keyword(self) -> None:
        with pytest.raises(ValueError):
            encode_text_chunk("k" * 80, "text")

    def test_text_keyword(self) -> None:
        assert text_keyword(encode_text_chunk("MemoryInkVersion", "1.0")) == "MemoryInkVersion"
        assert text_keyword(PngChunk(b"IDAT", b"")) is None
