"""Reading, detecting, decoding and encoding JPEG and PPM images."""

from __future__ import annotations

import enum
import io
import re
import sys
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

MAX_METADATA_MARKERS = 20

_INT_PAIR = re.compile(rb"\s*([+-]?\d+)\s+([+-]?\d+)")
_INT = re.compile(rb"\s*([+-]?\d+)")


class ImageDecodeError(ValueError):
    """Raised when image data cannot be decoded."""


class FileType(enum.Enum):
    """Kinds of input image file."""

    UNKNOWN = "unknown"
    AUTO = "auto"
    JPEG = "jpeg"
    PPM = "ppm"


class Subsampling(enum.Enum):
    """Chroma subsampling used when encoding.

    ``DEFAULT`` is 4:2:0; ``S444`` keeps every chroma sample, which keeps
    fine coloured detail such as text in screenshots sharp.
    """

    DEFAULT = "default"
    S444 = "444"


class PixelFormat(enum.Enum):
    """Pixel layout of decoded or raw images."""

    GRAYSCALE = "L"
    RGB = "RGB"

    @property
    def components(self) -> int:
        return 3 if self is PixelFormat.RGB else 1


@dataclass(frozen=True)
class DecodedImage:
    """Raw interleaved 8-bit pixels with their dimensions."""

    pixels: bytes
    width: int
    height: int
    components: int

    @property
    def size(self) -> int:
        return len(self.pixels)


def read_file(name):
    """Return the whole content of file ``name``; ``"-"`` reads standard input."""
    if name == "-":
        return sys.stdin.buffer.read()
    with open(name, "rb") as handle:
        return handle.read()


def check_jpeg_magic(buf):
    """Return True if ``buf`` starts with the JPEG start-of-image marker."""
    return len(buf) >= 2 and buf[0] == 0xFF and buf[1] == 0xD8


def check_ppm_magic(buf):
    """Return True if ``buf`` starts with the binary PPM signature ``P6``."""
    return len(buf) >= 2 and buf[0] == ord("P") and buf[1] == ord("6")


def decode_jpeg(buf, pixel_format=PixelFormat.RGB):
    """Decode JPEG data into raw pixels of the given format."""
    try:
        with Image.open(io.BytesIO(bytes(buf))) as img:
            if img.format != "JPEG":
                raise ImageDecodeError("not a valid JPEG image!")
            converted = img.convert(pixel_format.value)
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ImageDecodeError(f"unable to decode JPEG: {exc}") from exc
    return DecodedImage(
        pixels=converted.tobytes(),
        width=converted.width,
        height=converted.height,
        components=pixel_format.components,
    )


def _after_newline(buf: bytes, pos: int) -> int:
    idx = buf.find(b"\n", pos)
    return len(buf) if idx < 0 else idx + 1


def decode_ppm(buf):
    """Decode a binary (P6) PPM with a bit depth of 255 into RGB pixels."""
    buf = bytes(buf)
    if not check_ppm_magic(buf):
        raise ImageDecodeError("not a valid PPM format image!")
    size = len(buf)

    pos = _after_newline(buf, 0)
    while pos < size and buf[pos] in b"#\n":
        pos = _after_newline(buf, pos)
    if pos >= size:
        raise ImageDecodeError("not a valid PPM format image!")

    match = _INT_PAIR.match(buf, pos)
    if match is None:
        raise ImageDecodeError("not a valid PPM format image!")
    width, height = int(match.group(1)), int(match.group(2))
    if width < 0 or height < 0:
        raise ImageDecodeError(f"invalid image dimensions: {width}x{height}")

    pos = _after_newline(buf, pos)
    if pos >= size:
        raise ImageDecodeError("not a valid PPM format image!")

    match = _INT.match(buf, pos)
    if match is None:
        raise ImageDecodeError("not a valid PPM format image!")
    depth = int(match.group(1))
    if depth != 255:
        raise ImageDecodeError(f"unsupported bit depth: {depth}")

    pos = _after_newline(buf, pos)
    data_size = width * height * 3
    if pos + data_size != size:
        raise ImageDecodeError(f"incorrect image size: {size} vs. {pos + data_size}")

    return DecodedImage(pixels=buf[pos:], width=width, height=height, components=3)


def encode_jpeg(
    image,
    width,
    height,
    pixel_format=PixelFormat.RGB,
    quality=75,
    progressive=False,
    optimize=False,
    subsample=Subsampling.DEFAULT,
):
    """Encode raw pixels as a JPEG and return its bytes.

    ``quality`` is clamped to 1..100. ``optimize`` spends extra effort on a
    smaller file; ``progressive`` writes a progressive scan sequence.
    """
    data = bytes(image)
    expected = width * height * pixel_format.components
    if width <= 0 or height <= 0:
        raise ValueError(f"invalid image dimensions: {width}x{height}")
    if len(data) != expected:
        raise ValueError(f"pixel buffer holds {len(data)} bytes, expected {expected}")

    img = Image.frombytes(pixel_format.value, (width, height), data)
    options = {
        "quality": max(1, min(100, int(quality))),
        "progressive": bool(progressive),
        "optimize": bool(optimize),
    }
    if subsample is Subsampling.S444:
        options["subsampling"] = 0
    out = io.BytesIO()
    img.save(out, format="JPEG", **options)
    return out.getvalue()


def detect_filetype_from_buffer(buf):
    """Return the file type indicated by the magic bytes of ``buf``."""
    if check_jpeg_magic(buf):
        return FileType.JPEG
    if check_ppm_magic(buf):
        return FileType.PPM
    return FileType.UNKNOWN


def detect_filetype(filename):
    """Read ``filename`` and return its detected file type."""
    return detect_filetype_from_buffer(read_file(filename))


def decode_file_from_buffer(buf, filetype, pixel_format=PixelFormat.RGB):
    """Decode ``buf`` as ``filetype``; PPM input is always RGB."""
    if filetype is FileType.PPM:
        return decode_ppm(buf)
    if filetype is FileType.JPEG:
        return decode_jpeg(buf, pixel_format)
    raise ImageDecodeError(f"cannot decode file type: {filetype.value}")


def decode_file(filename, filetype, pixel_format=PixelFormat.RGB):
    """Read ``filename`` and decode it as ``filetype``."""
    return decode_file_from_buffer(read_file(filename), filetype, pixel_format)


def get_metadata(buf, comment=None):
    """Collect the APP1-APP15 and COM segments of a JPEG, up to 20 of them.

    Returns the concatenated segments, markers included, ready to be written
    into another file. If ``comment`` is given and a COM segment starts with
    it, returns None, so callers can spot files they have processed before.
    """
    buf = bytes(buf)
    size = len(buf)
    prefix = comment.encode() if isinstance(comment, str) else comment
    segments: list[bytes] = []
    pos = 0

    while pos < size and len(segments) < MAX_METADATA_MARKERS:
        if pos + 1 >= size:
            break
        marker = (buf[pos] << 8) + buf[pos + 1]
        if marker == 0xFFDA:  # start of scan: metadata is over
            break
        if marker == 0xFFDD:  # DRI
            pos += 2 + 4
        elif 0xFFD0 <= marker <= 0xFFD9:  # RSTn, SOI, EOI
            pos += 2
        else:
            if pos + 3 >= size:
                break
            length = (buf[pos + 2] << 8) + buf[pos + 3]
            if 0xFFE1 <= marker <= 0xFFEF or marker == 0xFFFE:
                if marker == 0xFFFE and prefix is not None and buf[pos + 4:].startswith(prefix):
                    return None
                segments.append(buf[pos:pos + length + 2])
            pos += 2 + length

    return b"".join(segments)