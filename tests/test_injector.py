"""Tests for injector module."""

from pathlib import Path

import piexif
import pytest
from PIL import Image

from config import CodecConfig
from errors import UnsupportedFormatError
from extractor import extract_note
from injector import embed_note
from targets import MemoryTarget, to_data_url


class TestEmbedNote:
    """Tests for embed_note function."""

    def test_embeds_into_png(self, sample_png: Path, temp_dir: Path) -> None:
        output_path = temp_dir / "output.png"

        result = embed_note(sample_png, "Summer 2023", output=output_path)

        assert result == output_path
        extracted = extract_note(output_path)
        assert extracted.note == "Summer 2023"
        assert extracted.is_encrypted is False
        assert extracted.version == "1.0"

    def test_embeds_into_jpg(self, sample_jpg: Path, temp_dir: Path) -> None:
        output_path = temp_dir / "output.jpg"

        embed_note(sample_jpg, "Summer 2023", output=output_path)

        assert extract_note(output_path).note == "Summer 2023"

    def test_default_output_next_to_source(self, sample_jpg: Path) -> None:
        original = sample_jpg.read_bytes()

        result = embed_note(sample_jpg, "note")

        assert result == sample_jpg.with_name("sample_embedded.jpg")
        assert result.exists()
        assert sample_jpg.read_bytes() == original

    def test_creates_output_directory(self, sample_png: Path, temp_dir: Path) -> None:
        output_path = temp_dir / "nested" / "dir" / "output.png"

        embed_note(sample_png, "note", output=output_path)

        assert output_path.exists()

    def test_in_place_when_output_is_source(self, sample_png: Path) -> None:
        embed_note(sample_png, "note", output=sample_png)

        assert extract_note(sample_png).note == "note"

    def test_bytes_in_bytes_out(self, sample_png: Path) -> None:
        result = embed_note(sample_png.read_bytes(), "from memory")

        assert isinstance(result, bytes)
        assert extract_note(result).note == "from memory"

    def test_data_url(self, sample_jpg: Path) -> None:
        url = to_data_url(sample_jpg.read_bytes(), "JPEG")

        result = embed_note(url, "uploaded")

        assert extract_note(result).note == "uploaded"

    def test_encrypted_flag(self, sample_jpg: Path) -> None:
        result = embed_note(sample_jpg.read_bytes(), "ENCRYPTED:v1:a:b:c:d", is_encrypted=True)

        assert extract_note(result).is_encrypted is True

    def test_preserves_pixels(self, sample_png: Path, temp_dir: Path) -> None:
        output_path = temp_dir / "output.png"

        embed_note(sample_png, "note", output=output_path)

        with Image.open(sample_png) as before, Image.open(output_path) as after:
            assert before.tobytes() == after.tobytes()

    def test_legacy_artist_from_config(self, sample_jpg: Path) -> None:
        config = CodecConfig(legacy_artist_marker=True)

        result = embed_note(
            sample_jpg.read_bytes(), "ENCRYPTED:v1:a:b:c:d", is_encrypted=True, config=config
        )

        exif = piexif.load(result)
        assert exif["0th"][piexif.ImageIFD.Artist] == b"ENCRYPTED"

    def test_custom_version(self, sample_png: Path) -> None:
        result = embed_note(sample_png.read_bytes(), "note", config=CodecConfig(note_version="2.0"))

        assert extract_note(result).version == "2.0"

    def test_rejects_non_string_note(self, sample_png: Path) -> None:
        with pytest.raises(TypeError):
            embed_note(sample_png, b"bytes")

    def test_rejects_gif(self, sample_gif: Path) -> None:
        with pytest.raises(UnsupportedFormatError):
            embed_note(sample_gif, "note")

        assert not sample_gif.with_name("sample_embedded.gif").exists()

    def test_rejects_bmp(self, sample_bmp: Path) -> None:
        with pytest.raises(UnsupportedFormatError):
            embed_note(sample_bmp, "note")

    def test_rejects_mismatched_content(self, sample_jpg: Path, temp_dir: Path) -> None:
        fake_png = temp_dir / "fake.png"
        fake_png.write_bytes(sample_jpg.read_bytes())

        with pytest.raises(UnsupportedFormatError):
            embed_note(fake_png, "note")

        assert not (temp_dir / "fake_embedded.png").exists()

    def test_rejects_unknown_buffer(self) -> None:
        with pytest.raises(UnsupportedFormatError):
            embed_note(MemoryTarget(b"GIF89a"), "note")


class TestEndToEnd:
    """A note survives the embed/extract round trip in both formats."""

    @pytest.mark.parametrize("fixture", ["sample_png", "sample_jpg"])
    def test_family_photo(
        self, fixture: str, request: pytest.FixtureRequest, temp_dir: Path
    ) -> None:
        source: Path = request.getfixturevalue(fixture)
        output_path = temp_dir / f"tagged{source.suffix}"
        note = "Summer 2023 - Maya's first steps at the beach 🏖"

        embed_note(source, note, output=output_path)
        result = extract_note(output_path)

        assert result.note == note
        assert result.is_encrypted is False
        assert result.version == "1.0"
