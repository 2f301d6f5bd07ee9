import base64
import struct
from pathlib import Path

import pytest

from naicli.errors import FileAccessError, InvalidDimensionsError, UnsupportedImageError
from naicli.images import (
    MIME_JPEG,
    MIME_PNG,
    MIME_UNKNOWN,
    MIME_WEBP,
    ImageDimensions,
    detect_mime,
    extension_for,
    load_image_as_base64,
    load_image_dimensions,
    read_dimensions,
)


def test_detect_mime_by_magic_bytes(make_png, make_jpeg, make_webp):
    assert detect_mime(make_png()) == MIME_PNG
    assert detect_mime(make_jpeg()) == MIME_JPEG
    assert detect_mime(make_webp(b"VP8X", b"\x00" * 10)) == MIME_WEBP
    assert detect_mime(b"GIF89a") == MIME_UNKNOWN
    assert detect_mime(b"") == MIME_UNKNOWN


def test_extension_for_known_types():
    assert extension_for(MIME_PNG) == ".png"
    assert extension_for(MIME_JPEG) == ".jpg"
    assert extension_for(MIME_UNKNOWN) is None


def test_png_dimensions_from_ihdr(make_png):
    assert read_dimensions(make_png(832, 1216)) == ImageDimensions(width=832, height=1216)


def test_jpeg_dimensions_from_sof(make_jpeg):
    assert read_dimensions(make_jpeg(1024, 768)) == ImageDimensions(width=1024, height=768)


def test_jpeg_progressive_sof(make_jpeg):
    assert read_dimensions(make_jpeg(300, 200, sof_marker=0xC2)) == ImageDimensions(width=300, height=200)


def test_jpeg_huffman_table_marker_is_not_a_frame(make_jpeg):
    # 0xC4 is DHT; the reader must skip it and reach EOI without dimensions.
    with pytest.raises(UnsupportedImageError):
        read_dimensions(make_jpeg(300, 200, sof_marker=0xC4))


def test_webp_lossy_dimensions(make_webp):
    body = b"\x00\x00\x00" + b"\x9d\x01\x2a" + struct.pack("<HH", 640, 480)
    assert read_dimensions(make_webp(b"VP8 ", body)) == ImageDimensions(width=640, height=480)


def test_webp_lossless_dimensions(make_webp):
    bits = (200 - 1) | ((100 - 1) << 14)
    body = b"\x2f" + struct.pack("<I", bits)
    assert read_dimensions(make_webp(b"VP8L", body)) == ImageDimensions(width=200, height=100)


def test_webp_extended_dimensions(make_webp):
    body = b"\x00" * 4 + (1920 - 1).to_bytes(3, "little") + (1080 - 1).to_bytes(3, "little")
    assert read_dimensions(make_webp(b"VP8X", body)) == ImageDimensions(width=1920, height=1080)


@pytest.mark.parametrize("length", range(0, 29))
def test_truncated_jpeg_is_unsupported(make_jpeg, length):
    # The frame header of the sample ends at byte 29.
    with pytest.raises(UnsupportedImageError):
        read_dimensions(make_jpeg()[:length])


def test_jpeg_segment_length_past_end_is_unsupported():
    data = b"\xff\xd8\xff\xe0" + struct.pack(">H", 0x0100) + b"JFIF\x00"
    with pytest.raises(UnsupportedImageError):
        read_dimensions(data)


def test_jpeg_missing_marker_prefix_is_unsupported():
    data = b"\xff\xd8\xff\xe0" + struct.pack(">H", 4) + b"AB" + b"\x12\xc0" + b"\x00" * 16
    with pytest.raises(UnsupportedImageError):
        read_dimensions(data)


def test_webp_skips_padded_unknown_chunk():
    iccp = b"ICCP" + struct.pack("<I", 3) + b"abc" + b"\x00"
    body = b"\x00" * 4 + (511).to_bytes(3, "little") + (255).to_bytes(3, "little")
    vp8x = b"VP8X" + struct.pack("<I", len(body)) + body
    chunks = iccp + vp8x
    data = b"RIFF" + struct.pack("<I", 4 + len(chunks)) + b"WEBP" + chunks
    assert read_dimensions(data) == ImageDimensions(width=512, height=256)


def test_webp_lossy_without_sync_bytes_is_unsupported(make_webp):
    body = b"\x00\x00\x00" + b"\x00\x00\x00" + struct.pack("<HH", 640, 480)
    with pytest.raises(UnsupportedImageError):
        read_dimensions(make_webp(b"VP8 ", body))


def test_truncated_png_is_unsupported(make_png):
    with pytest.raises(UnsupportedImageError):
        read_dimensions(make_png()[:20])


def test_non_image_is_unsupported():
    with pytest.raises(UnsupportedImageError):
        read_dimensions(b"not an image at all")


def test_zero_dimension_is_invalid(make_png):
    with pytest.raises(InvalidDimensionsError):
        read_dimensions(make_png(0, 10))


def test_load_image_as_base64(tmp_path: Path, make_png):
    data = make_png()
    path = tmp_path / "in.png"
    path.write_bytes(data)
    encoded = load_image_as_base64(path)
    assert encoded.mime == MIME_PNG
    assert base64.b64decode(encoded.base64) == data
    assert load_image_dimensions(path) == ImageDimensions(width=4, height=3)


def test_missing_image_file(tmp_path: Path):
    with pytest.raises(FileAccessError):
        load_image_as_base64(tmp_path / "missing.png")
