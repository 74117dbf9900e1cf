import io
import sys

import pytest

from jpegmetrics.util import (
    DecodedImage,
    FileType,
    ImageDecodeError,
    PixelFormat,
    Subsampling,
    check_jpeg_magic,
    check_ppm_magic,
    decode_file,
    decode_file_from_buffer,
    decode_jpeg,
    decode_ppm,
    detect_filetype,
    detect_filetype_from_buffer,
    encode_jpeg,
    get_metadata,
    read_file,
)

PPM_2X2 = b"P6\n2 2\n255\n\x01\x02\x03\x04\x05\x06\x07\x08\x09\x0a\x0b\x0c"


def _segment(marker, payload):
    return bytes([0xFF, marker]) + (len(payload) + 2).to_bytes(2, "big") + payload


def test_decode_ppm_from_source():
    assert len(PPM_2X2) == 23
    image = decode_ppm(PPM_2X2)
    assert image.width == 2
    assert image.height == 2
    assert image.pixels[0] == 0x01
    assert image.pixels[11] == 0x0C
    assert image.size == 12


def test_decode_ppm_skips_comments():
    data = b"P6\n# a comment\n\n1 1\n255\n\xff\x00\x10"
    image = decode_ppm(data)
    assert (image.width, image.height) == (1, 1)
    assert image.pixels == b"\xff\x00\x10"


def test_decode_ppm_bad_magic():
    with pytest.raises(ImageDecodeError):
        decode_ppm(b"P5\n1 1\n255\n\x00")


def test_decode_ppm_bad_depth():
    with pytest.raises(ImageDecodeError, match="bit depth"):
        decode_ppm(b"P6\n1 1\n65535\n\x00\x00\x00")


def test_decode_ppm_wrong_size():
    with pytest.raises(ImageDecodeError, match="incorrect image size"):
        decode_ppm(PPM_2X2[:-1])


def test_magic_checks():
    assert check_jpeg_magic(b"\xff\xd8\xff")
    assert not check_jpeg_magic(b"\xff")
    assert check_ppm_magic(b"P6\n")
    assert not check_ppm_magic(b"P3\n")


@pytest.mark.parametrize(
    "data, expected",
    [
        (b"\xff\xd8rest", FileType.JPEG),
        (PPM_2X2, FileType.PPM),
        (b"GIF89a", FileType.UNKNOWN),
        (b"", FileType.UNKNOWN),
    ],
)
def test_detect_filetype_from_buffer(data, expected):
    assert detect_filetype_from_buffer(data) is expected


def test_encode_decode_gray_round_trip():
    width, height = 16, 16
    pixels = bytes([128]) * (width * height)
    jpeg = encode_jpeg(pixels, width, height, PixelFormat.GRAYSCALE, 90, False, False, Subsampling.DEFAULT)
    assert jpeg[:2] == b"\xff\xd8"
    decoded = decode_jpeg(jpeg, PixelFormat.GRAYSCALE)
    assert (decoded.width, decoded.height, decoded.components) == (16, 16, 1)
    assert max(abs(v - 128) for v in decoded.pixels) <= 2


def test_encode_rgb_444_progressive_round_trip():
    width, height = 8, 8
    pixels = bytes([200, 40, 40]) * (width * height)
    jpeg = encode_jpeg(pixels, width, height, PixelFormat.RGB, 95, True, True, Subsampling.S444)
    decoded = decode_jpeg(jpeg, PixelFormat.RGB)
    assert decoded.size == width * height * 3
    assert abs(decoded.pixels[0] - 200) <= 6
    assert abs(decoded.pixels[1] - 40) <= 6


def test_encode_rejects_wrong_buffer_size():
    with pytest.raises(ValueError):
        encode_jpeg(b"\x00" * 10, 4, 4, PixelFormat.GRAYSCALE)


def test_decode_jpeg_garbage():
    with pytest.raises(ImageDecodeError):
        decode_jpeg(b"\xff\xd8not really a jpeg")


def test_read_and_decode_file(tmp_path):
    path = tmp_path / "image.ppm"
    path.write_bytes(PPM_2X2)
    assert read_file(str(path)) == PPM_2X2
    assert detect_filetype(str(path)) is FileType.PPM
    image = decode_file(str(path), FileType.PPM, PixelFormat.RGB)
    assert image == DecodedImage(PPM_2X2[11:], 2, 2, 3)


def test_read_file_from_stdin(monkeypatch):
    class _Stdin:
        buffer = io.BytesIO(b"abc")

    monkeypatch.setattr(sys, "stdin", _Stdin())
    assert read_file("-") == b"abc"


def test_read_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_file(str(tmp_path / "missing.jpg"))


def test_decode_file_from_buffer_unknown_type():
    with pytest.raises(ImageDecodeError):
        decode_file_from_buffer(b"xx", FileType.UNKNOWN, PixelFormat.RGB)


def test_decode_file_from_buffer_jpeg():
    jpeg = encode_jpeg(bytes([50]) * 64, 8, 8, PixelFormat.GRAYSCALE, 90)
    image = decode_file_from_buffer(jpeg, FileType.JPEG, PixelFormat.RGB)
    assert (image.width, image.height, image.components) == (8, 8, 3)


def _sample_jpeg_header():
    app0 = _segment(0xE0, b"JFIF\x00" + b"\x00" * 9)
    app1 = _segment(0xE1, b"Exif\x00\x00")
    com = _segment(0xFE, b"test")
    dqt = _segment(0xDB, b"\x00" * 5)
    sos = b"\xff\xda\x00\x08" + b"\x00" * 6
    return b"\xff\xd8" + app0 + app1 + com + dqt + sos, app1, com


def test_get_metadata_collects_app_and_com():
    data, app1, com = _sample_jpeg_header()
    assert get_metadata(data) == app1 + com
    assert get_metadata(data, "other") == app1 + com


def test_get_metadata_detects_comment():
    data, _, _ = _sample_jpeg_header()
    assert get_metadata(data, "test") is None


def test_get_metadata_limits_marker_count():
    segments = [_segment(0xE2, bytes([i])) for i in range(25)]
    data = b"\xff\xd8" + b"".join(segments) + b"\xff\xda"
    assert get_metadata(data) == b"".join(segments[:20])