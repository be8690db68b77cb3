"""Byte source/sink adapters for the note codecs.

The codecs only ever see ``bytes``. These adapters give file paths and
in-memory buffers (including ``data:`` URLs from browser uploads) one
interface, so embed and extract share a single implementation.
"""

from __future__ import annotations

import base64
import binascii
import os
import tempfile
from pathlib import Path
from typing import Union

from errors import UnsupportedFormatError
from utils import get_image_format, sniff_format

_MIME_FORMATS = {
    "image/jpeg": "JPEG",
    "image/jpg": "JPEG",
    "image/png": "PNG",
}
_FORMAT_MIMES = {"JPEG": "image/jpeg", "PNG": "image/png"}


class FileTarget:
    """An image stored on disk."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"FileTarget({str(self.path)!r})"

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def format(self) -> str:
        return get_image_format(self.path)

    def read(self) -> bytes:
        return self.path.read_bytes()

    def default_output(self) -> Path:
        """Sibling path used when the caller gives no output."""
        return self.path.with_name(f"{self.path.stem}_embedded{self.path.suffix}")

    def write(self, data: bytes, output: Path | str | None = None) -> Path:
        """Write *data* to *output* (or the default sibling) and return the path.

        The file is written to a temporary sibling first and moved into
        place, so a failed write never leaves a truncated image behind.
        """
        output_path = Path(output) if output is not None else self.default_output()
        output_path.parent.mkdir(parents=True, exist_ok=True)

        fd, temp_name = tempfile.mkstemp(
            prefix=f".{output_path.name}.", suffix=".tmp", dir=output_path.parent
        )
        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            temp_path.replace(output_path)
        except BaseException:
            if temp_path.exists():
                temp_path.unlink()
            raise
        return output_path


class MemoryTarget:
    """An image held in memory.

    Args:
        data: Encoded image bytes.
        name: Optional filename; when given its extension decides the
            format, otherwise the signature bytes do.
    """

    def __init__(self, data: bytes | bytearray | memoryview, name: str | None = None) -> None:
        self.data = bytes(data)
        self.name = name

    def __repr__(self) -> str:
        return f"MemoryTarget(<{len(self.data)} bytes>, name={self.name!r})"

    @property
    def format(self) -> str:
        if self.name:
            return get_image_format(Path(self.name))
        detected = sniff_format(self.data)
        if detected is None:
            raise UnsupportedFormatError("Buffer is not a JPEG or PNG image")
        return detected

    def read(self) -> bytes:
        return self.data

    def write(self, data: bytes, output: Path | str | None = None) -> bytes | Path:
        """Return *data*, or write it to *output* when one is given."""
        if output is None:
            return data
        return FileTarget(output).write(data, output)

    @classmethod
    def from_data_url(cls, url: str) -> MemoryTarget:
        """Build a target from a ``data:image/...;base64,`` URL."""
        header, sep, payload = url.partition(",")
        if not sep or not header.startswith("data:") or ";base64" not in header:
            raise UnsupportedFormatError("Not a base64 data URL")
        mime = header[5:].split(";", 1)[0].lower()
        image_format = _MIME_FORMATS.get(mime)
        if image_format is None:
            raise UnsupportedFormatError(f"Unsupported data URL type: '{mime}'")
        try:
            data = base64.b64decode(payload, validate=True)
        except binascii.Error as e:
            raise UnsupportedFormatError(f"Malformed data URL payload: {e}") from e
        suffix = ".jpg" if image_format == "JPEG" else ".png"
        return cls(data, name=f"image{suffix}")


ImageTarget = Union[FileTarget, MemoryTarget]
TargetLike = Union[ImageTarget, Path, str, bytes, bytearray, memoryview]


def as_target(source: TargetLike) -> ImageTarget:
    """Wrap a path, buffer, or data URL in the matching adapter."""
    if isinstance(source, (FileTarget, MemoryTarget)):
        return source
    if isinstance(source, (bytes, bytearray, memoryview)):
        return MemoryTarget(source)
    if isinstance(source, str) and source.startswith("data:"):
        return MemoryTarget.from_data_url(source)
    return FileTarget(source)


def to_data_url(data: bytes, image_format: str) -> str:
    """Encode image bytes as a ``data:`` URL."""
    mime = _FORMAT_MIMES[image_format]
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"
