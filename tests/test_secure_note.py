"""Tests for secure_note module."""

from pathlib import Path

import pytest

from cipher import EncryptedNote
from errors import DecryptionFailedError
from extractor import extract_note
from injector import embed_note
from secure_note import embed_encrypted_note, load_note, reveal_note


class TestEmbedEncryptedNote:
    """Tests for embed_encrypted_note function."""

    @pytest.mark.parametrize("fixture", ["sample_png", "sample_jpg"])
    def test_round_trip(self, fixture: str, request: pytest.FixtureRequest) -> None:
        source: Path = request.getfixturevalue(fixture)

        tagged = embed_encrypted_note(source, "the key is under the mat", "hunter2")

        assert reveal_note(tagged, "hunter2") == "the key is under the mat"

    def test_stores_token_not_plaintext(self, sample_png: Path) -> None:
        tagged = embed_encrypted_note(sample_png.read_bytes(), "hidden words", "pw")

        result = extract_note(tagged)
        assert result.is_encrypted is True
        assert result.note.startswith("ENCRYPTED:v1:")
        assert b"hidden words" not in tagged

    def test_with_digest(self, sample_jpg: Path) -> None:
        tagged = embed_encrypted_note(sample_jpg, "note", "pw", include_digest=True)

        token = extract_note(tagged).note
        assert EncryptedNote.from_token(token).content_hash is not None
        assert reveal_note(tagged, "pw") == "note"


class TestLoadNote:
    """Tests for load_note function."""

    def test_none_without_note(self, sample_png: Path) -> None:
        assert load_note(sample_png) is None

    def test_plaintext(self, sample_png: Path) -> None:
        note = load_note(embed_note(sample_png, "plain"))

        assert note.content == "plain"
        assert note.is_encrypted is False
        assert note.salt is None

    def test_encrypted_fills_key_material(self, sample_jpg: Path) -> None:
        tagged = embed_encrypted_note(sample_jpg, "note", "pw")

        note = load_note(tagged)

        sealed = EncryptedNote.from_token(note.content)
        assert note.is_encrypted is True
        assert note.version == "1.0"
        assert (note.salt, note.iv, note.auth_tag) == (sealed.salt, sealed.iv, sealed.auth_tag)

    def test_malformed_token(self, sample_png: Path) -> None:
        tagged = embed_note(sample_png, "not a token", is_encrypted=True)

        with pytest.raises(DecryptionFailedError):
            load_note(tagged)


class TestRevealNote:
    """Tests for reveal_note function."""

    def test_plaintext_needs_no_password(self, sample_png: Path) -> None:
        assert reveal_note(embed_note(sample_png, "open book")) == "open book"

    def test_none_without_note(self, sample_jpg: Path) -> None:
        assert reveal_note(sample_jpg, "pw") is None

    def test_wrong_password(self, sample_png: Path) -> None:
        tagged = embed_encrypted_note(sample_png, "note", "right")

        with pytest.raises(DecryptionFailedError):
            reveal_note(tagged, "wrong")

    def test_missing_password(self, sample_png: Path) -> None:
        tagged = embed_encrypted_note(sample_png, "note", "right")

        with pytest.raises(DecryptionFailedError):
            reveal_note(tagged)


class TestFamilyPhotoScenario:
    """A plaintext and an encrypted note on the same 100x100 PNG."""

    NOTE = "Summer 2023 — Maya's first steps"

    def test_plaintext(self, sample_png: Path) -> None:
        result = extract_note(embed_note(sample_png.read_bytes(), self.NOTE))

        assert (result.note, result.is_encrypted) == (self.NOTE, False)

    def test_encrypted(self, sample_png: Path) -> None:
        tagged = embed_encrypted_note(sample_png.read_bytes(), self.NOTE, "correct-horse")

        result = extract_note(tagged)
        assert result.is_encrypted is True
        assert result.note != self.NOTE
        assert reveal_note(tagged, "correct-horse") == self.NOTE
        with pytest.raises(DecryptionFailedError):
            reveal_note(tagged, "wrong-password")
