"""Runtime configuration for the note codecs.

Defaults come from ``constants``; ``CodecConfig.from_env`` lets the
environment override them, and CLI flags override both.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from constants import (
    ENV_LEGACY_ARTIST,
    ENV_PBKDF2_ITERATIONS,
    NOTE_VERSION,
    PBKDF2_ITERATIONS,
    PBKDF2_MIN_ITERATIONS,
)

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"", "0", "false", "no", "off"}


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


@dataclass(frozen=True)
class CodecConfig:
    """Settings shared by embed, extract and the cipher.

    Attributes:
        note_version: Version tag written next to each note.
        pbkdf2_iterations: Key derivation work factor. Notes must be
            decrypted with the value they were encrypted with.
        legacy_artist_marker: Also write the encrypted flag into EXIF
            ``Artist`` for readers that only check that field.
    """

    note_version: str = NOTE_VERSION
    pbkdf2_iterations: int = PBKDF2_ITERATIONS
    legacy_artist_marker: bool = False

    def __post_init__(self) -> None:
        if self.pbkdf2_iterations < PBKDF2_MIN_ITERATIONS:
            raise ValueError(
                f"pbkdf2_iterations must be at least {PBKDF2_MIN_ITERATIONS}"
            )
        if not self.note_version:
            raise ValueError("note_version must not be empty")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> CodecConfig:
        """Build a config from ``MEMORYINK_*`` environment variables."""
        env = os.environ if environ is None else environ
        kwargs = {}
        iterations = env.get(ENV_PBKDF2_ITERATIONS)
        if iterations:
            try:
                kwargs["pbkdf2_iterations"] = int(iterations)
            except ValueError as e:
                raise ValueError(f"{ENV_PBKDF2_ITERATIONS} must be an integer") from e
        legacy = env.get(ENV_LEGACY_ARTIST)
        if legacy is not None:
            kwargs["legacy_artist_marker"] = _parse_bool(ENV_LEGACY_ARTIST, legacy)
        return cls(**kwargs)


DEFAULT_CONFIG = CodecConfig()
