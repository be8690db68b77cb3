"""Test configuration and fixtures."""

from __future__ import annotations

import struct
import tempfile
from pathlib import Path
from typing import Generator

import piexif
import pytest
from PIL import Image
from PIL.PngImagePlugin import PngInfo

FOREIGN_XMP = (
    b'<?xpacket begin="\xef\xbb\xbf" id="W5M0MpCehiHzreSzNTczkc9d"?>'
    b'<x:xmpmeta xmlns:x="adobe:ns:meta/">'
    b'<rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#">'
    b'<rdf:Description rdf:about="" xmlns:xmp="http://ns.adobe.com/xap/1.0/"'
    b' xmp:CreatorTool="Darkroom 4.2">'
    b"<xmp:Rating>5</xmp:Rating>"
    b"</rdf:Description>"
    b"</rdf:RDF>"
    b"</x:xmpmeta>"
    b'<?xpacket end="w"?>'
)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_png(temp_dir: Path) -> Path:
    """Create a sample PNG image for testing."""
    img_path = temp_dir / "sample.png"
    img = Image.new("RGB", (100, 100), color="red")
    img.save(img_path, "PNG")
    return img_path


@pytest.fixture
def sample_jpg(temp_dir: Path) -> Path:
    """Create a sample JPG image for testing."""
    img_path = temp_dir / "sample.jpg"
    img = Image.new("RGB", (100, 100), color="blue")
    img.save(img_path, "JPEG")
    return img_path


@pytest.fixture
def sample_png_with_standard_metadata(temp_dir: Path) -> Path:
    """Create a PNG image with foreign text chunks."""
    img_path = temp_dir / "standard_sample.png"
    img = Image.new("RGB", (100, 100), color="yellow")

    metadata = PngInfo()
    metadata.add_text("Author", "Test Author")
    metadata.add_text("Title", "Test Image")
    metadata.add_text("Description", "A test image for unit tests")
    metadata.add_text("Copyright", "Test Copyright")

    img.save(img_path, "PNG", pnginfo=metadata)
    return img_path


@pytest.fixture
def sample_png_rgba(temp_dir: Path) -> Path:
    """Create a PNG image with alpha channel."""
    img_path = temp_dir / "sample_rgba.png"
    img = Image.new("RGBA", (100, 100), color=(255, 0, 0, 128))
    img.save(img_path, "PNG")
    return img_path


@pytest.fixture
def legacy_png(temp_dir: Path) -> Path:
    """PNG written the way older MemoryInk clients did (plain tEXt chunks)."""
    img_path = temp_dir / "legacy.png"
    img = Image.new("RGB", (40, 40), color="white")

    metadata = PngInfo()
    metadata.add_text("MemoryInkNote", "Written by the old uploader")
    metadata.add_text("MemoryInkEncrypted", "true")

    img.save(img_path, "PNG", pnginfo=metadata)
    return img_path


@pytest.fixture
def sample_jpg_with_exif(temp_dir: Path) -> Path:
    """Create a JPG image carrying foreign EXIF tags."""
    img_path = temp_dir / "exif_sample.jpg"
    img = Image.new("RGB", (100, 100), color="green")

    exif_dict = {
        "0th": {
            piexif.ImageIFD.Make: b"Canon",
            piexif.ImageIFD.Copyright: b"Test Copyright",
            piexif.ImageIFD.DateTime: b"2023:07:14 10:30:00",
        },
        "Exif": {
            piexif.ExifIFD.DateTimeOriginal: b"2023:07:14 10:30:00",
        },
        "GPS": {},
        "Interop": {},
        "1st": {},
        "thumbnail": None,
    }
    img.save(img_path, "JPEG", exif=piexif.dump(exif_dict))
    return img_path


@pytest.fixture
def sample_jpg_with_xmp(temp_dir: Path) -> Path:
    """Create a JPG image with a foreign XMP packet after the JFIF header."""
    plain = temp_dir / "plain.jpg"
    Image.new("RGB", (64, 64), color="purple").save(plain, "JPEG")
    data = plain.read_bytes()

    payload = b"http://ns.adobe.com/xap/1.0/\x00" + FOREIGN_XMP
    app1 = b"\xff\xe1" + struct.pack(">H", len(payload) + 2) + payload
    # SOI (2) + APP0 marker/length (4) + JFIF body
    app0_end = 4 + struct.unpack(">H", data[4:6])[0]
    img_path = temp_dir / "xmp_sample.jpg"
    img_path.write_bytes(data[:app0_end] + app1 + data[app0_end:])
    return img_path


@pytest.fixture
def sample_gif(temp_dir: Path) -> Path:
    """Create a GIF image (unsupported format)."""
    img_path = temp_dir / "sample.gif"
    Image.new("RGB", (20, 20), color="red").save(img_path, "GIF")
    return img_path


@pytest.fixture
def sample_bmp(temp_dir: Path) -> Path:
    """Create a BMP image (unsupported format)."""
    img_path = temp_dir / "sample.bmp"
    Image.new("RGB", (20, 20), color="red").save(img_path, "BMP")
    return img_path
