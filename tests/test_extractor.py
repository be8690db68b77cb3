"""Tests for extractor module."""

from pathlib import Path

import pytest

from errors import ExtractFailedError, UnsupportedFormatError
from extractor import (
    extract_note,
    extract_report,
    get_note_summary,
    has_note,
    read_note,
)
from injector import embed_note
from models import ExtractResult, ReadOutcome


class TestExtractNote:
    """Tests for extract_note function."""

    def test_no_note_in_png(self, sample_png: Path) -> None:
        assert extract_note(sample_png) == ExtractResult()

    def test_no_note_in_jpg_with_exif(self, sample_jpg_with_exif: Path) -> None:
        result = extract_note(sample_jpg_with_exif)

        assert result.note is None
        assert result.is_encrypted is False
        assert result.version is None

    def test_reads_embedded_note(self, sample_jpg: Path, temp_dir: Path) -> None:
        output_path = embed_note(sample_jpg, "hello", output=temp_dir / "out.jpg")

        assert extract_note(output_path) == ExtractResult("hello", False, "1.0")

    def test_does_not_modify_source(self, sample_png: Path) -> None:
        tagged = embed_note(sample_png, "note")
        before = tagged.read_bytes()

        extract_note(tagged)

        assert tagged.read_bytes() == before

    def test_reads_bytes(self, sample_png: Path) -> None:
        data = embed_note(sample_png.read_bytes(), "buffered")

        assert extract_note(data).note == "buffered"

    def test_corrupted_png_is_empty(self, temp_dir: Path) -> None:
        broken = temp_dir / "broken.png"
        broken.write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 10)

        assert extract_note(broken) == ExtractResult()

    def test_non_image_content_is_empty(self, temp_dir: Path) -> None:
        fake = temp_dir / "notes.jpg"
        fake.write_text("not an image")

        assert extract_note(fake) == ExtractResult()

    def test_signature_wins_over_extension(self, sample_png: Path, temp_dir: Path) -> None:
        data = embed_note(sample_png.read_bytes(), "misnamed")
        renamed = temp_dir / "actually_png.jpg"
        renamed.write_bytes(data)

        assert extract_note(renamed).note == "misnamed"

    def test_unsupported_extension_raises(self, sample_gif: Path) -> None:
        with pytest.raises(UnsupportedFormatError):
            extract_note(sample_gif)

    def test_missing_file_is_empty(self, temp_dir: Path) -> None:
        assert extract_note(temp_dir / "missing.png") == ExtractResult()

    def test_directory_is_empty(self, temp_dir: Path) -> None:
        folder = temp_dir / "album.png"
        folder.mkdir()

        assert extract_note(folder) == ExtractResult()


class TestReadNote:
    """Tests for read_note function."""

    def test_absent(self, sample_jpg: Path) -> None:
        assert read_note(sample_jpg).outcome is ReadOutcome.ABSENT

    def test_found(self, sample_jpg: Path) -> None:
        result = read_note(embed_note(sample_jpg.read_bytes(), "x"))

        assert result.outcome is ReadOutcome.FOUND

    def test_unreadable(self, temp_dir: Path) -> None:
        fake = temp_dir / "fake.png"
        fake.write_bytes(b"plain text")

        result = read_note(fake)

        assert result.outcome is ReadOutcome.UNREADABLE
        assert result.to_extract_result() == ExtractResult()


class TestHasNote:
    """Tests for has_note function."""

    def test_false_without_note(self, sample_png: Path) -> None:
        assert has_note(sample_png) is False

    def test_true_with_note(self, sample_png: Path) -> None:
        assert has_note(embed_note(sample_png, "note")) is True

    def test_true_with_empty_note(self, sample_png: Path) -> None:
        assert has_note(embed_note(sample_png, "")) is True


class TestExtractReport:
    """Tests for extract_report function."""

    def test_png_report(self, sample_png: Path) -> None:
        tagged = embed_note(sample_png, "note")

        assert extract_report(tagged) == {
            "file": str(tagged),
            "note": "note",
            "isEncrypted": False,
            "version": "1.0",
        }

    def test_jpeg_report_includes_metadata(self, sample_jpg_with_exif: Path) -> None:
        tagged = embed_note(sample_jpg_with_exif, "note")

        report = extract_report(tagged)

        assert report["note"] == "note"
        assert report["metadata"]["software"] == "MemoryInk v1.0"
        assert report["metadata"]["dateTime"] == "2023:07:14 10:30:00"

    def test_jpeg_without_exif_has_no_metadata(self, sample_jpg: Path) -> None:
        assert "metadata" not in extract_report(sample_jpg)

    def test_buffer_label(self, sample_png: Path) -> None:
        assert extract_report(sample_png.read_bytes())["file"] == "<buffer>"

    def test_unreadable_is_empty(self, temp_dir: Path) -> None:
        report = extract_report(temp_dir / "missing.jpg")

        assert report["note"] is None
        assert "metadata" not in report

    def test_strict_raises_when_unreadable(self, temp_dir: Path) -> None:
        with pytest.raises(ExtractFailedError):
            extract_report(temp_dir / "missing.jpg", strict=True)

    def test_strict_allows_images_without_note(self, sample_png: Path) -> None:
        assert extract_report(sample_png, strict=True)["note"] is None


class TestGetNoteSummary:
    """Tests for get_note_summary function."""

    def test_summary_with_note(self, sample_png: Path) -> None:
        summary = get_note_summary(embed_note(sample_png, "twelve chars"))

        assert summary["found"] is True
        assert summary["noteLength"] == 12
        assert summary["isEncrypted"] is False
        assert summary["version"] == "1.0"
        assert "note" not in summary

    def test_summary_without_note(self, sample_png: Path) -> None:
        summary = get_note_summary(sample_png)

        assert summary["found"] is False
        assert summary["noteLength"] == 0
        assert summary["file"] == str(sample_png)
