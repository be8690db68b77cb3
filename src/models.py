"""Value types passed between the dispatcher, codecs, and callers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from constants import NOTE_VERSION


@dataclass(frozen=True)
class Note:
    """A note as embedded in (or recovered from) one image.

    When ``is_encrypted`` is True, ``content`` holds the ciphertext
    envelope and the key material fields are populated once parsed.
    """

    content: str
    is_encrypted: bool = False
    version: str = NOTE_VERSION
    salt: str | None = None
    iv: str | None = None
    auth_tag: str | None = None


@dataclass(frozen=True)
class ExtractResult:
    """Public result of an extraction: ``note`` is None when absent."""

    note: str | None = None
    is_encrypted: bool = False
    version: str | None = None

    @property
    def found(self) -> bool:
        return self.note is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "note": self.note,
            "isEncrypted": self.is_encrypted,
            "version": self.version,
        }


class ReadOutcome(Enum):
    """Why a codec read produced (or did not produce) a note."""

    FOUND = "found"
    ABSENT = "absent"
    UNREADABLE = "unreadable"


@dataclass(frozen=True)
class ReadResult:
    """Internal codec read result.

    Keeps "no note" and "container could not be parsed" apart for
    logging; both map to an empty ``ExtractResult`` at the boundary.
    """

    outcome: ReadOutcome
    note: str | None = None
    is_encrypted: bool = False
    version: str | None = None
    error: Exception | None = field(default=None, compare=False)

    @classmethod
    def absent(cls) -> ReadResult:
        return cls(ReadOutcome.ABSENT)

    @classmethod
    def unreadable(cls, error: Exception) -> ReadResult:
        return cls(ReadOutcome.UNREADABLE, error=error)

    def to_extract_result(self) -> ExtractResult:
        if self.outcome is not ReadOutcome.FOUND:
            return ExtractResult()
        return ExtractResult(
            note=self.note,
            is_encrypted=self.is_encrypted,
            version=self.version,
        )
