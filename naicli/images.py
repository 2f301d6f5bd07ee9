"""Image sniffing and dimension extraction from raw bytes."""
from __future__ import annotations

import base64
import logging
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from .errors import FileAccessError, InvalidDimensionsError, UnsupportedImageError

log = logging.getLogger(__name__)

MIME_PNG = "image/png"
MIME_JPEG = "image/jpeg"
MIME_WEBP = "image/webp"
MIME_UNKNOWN = "application/octet-stream"

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

EXTENSIONS = {
    MIME_PNG: ".png",
    MIME_JPEG: ".jpg",
    MIME_WEBP: ".webp",
}

# Start-of-frame markers that carry the frame size; 0xC4, 0xC8 and 0xCC are excluded.
_JPEG_SOF_MARKERS = frozenset(
    {0xC0, 0xC1, 0xC2, 0xC3, 0xC5, 0xC6, 0xC7, 0xC9, 0xCA, 0xCB, 0xCD, 0xCE, 0xCF}
)
_JPEG_EOI = 0xD9
_JPEG_SOS = 0xDA

_VP8_SYNC = b"\x9d\x01\x2a"
_VP8L_SIGNATURE = 0x2F


@dataclass(frozen=True, slots=True)
class ImageDimensions:
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class EncodedImage:
    mime: str
    base64: str


def detect_mime(data: bytes) -> str:
    """Classify ``data`` by its magic bytes only."""
    if len(data) >= 8 and data[:8] == PNG_SIGNATURE:
        return MIME_PNG
    if len(data) >= 3 and data[0] == 0xFF and data[1] == 0xD8 and data[2] == 0xFF:
        return MIME_JPEG
    if len(data) >= 12 and data[0:4] == b"RIFF" and data[8:12] == b"WEBP":
        return MIME_WEBP
    return MIME_UNKNOWN


def extension_for(mime: str) -> Optional[str]:
    return EXTENSIONS.get(mime)


def _has(data: bytes, offset: int, length: int) -> bool:
    return offset >= 0 and offset + length <= len(data)


def _png_dimensions(data: bytes) -> Optional[Tuple[int, int]]:
    if not _has(data, 12, 12) or data[12:16] != b"IHDR":
        return None
    width, height = struct.unpack_from(">II", data, 16)
    return width, height


def _jpeg_dimensions(data: bytes) -> Optional[Tuple[int, int]]:
    offset = 2
    size = len(data)
    while offset < size:
        if data[offset] != 0xFF:
            return None
        while offset < size and data[offset] == 0xFF:
            offset += 1
        if offset >= size:
            return None
        marker = data[offset]
        offset += 1
        if marker in (_JPEG_EOI, _JPEG_SOS):
            return None
        if not _has(data, offset, 2):
            return None
        (segment_length,) = struct.unpack_from(">H", data, offset)
        if segment_length < 2:
            return None
        if marker in _JPEG_SOF_MARKERS:
            if not _has(data, offset, 7):
                return None
            height, width = struct.unpack_from(">HH", data, offset + 3)
            return width, height
        offset += segment_length
    return None


def _webp_dimensions(data: bytes) -> Optional[Tuple[int, int]]:
    offset = 12
    while _has(data, offset, 8):
        fourcc = data[offset:offset + 4]
        (chunk_size,) = struct.unpack_from("<I", data, offset + 4)
        start = offset + 8

        if fourcc == b"VP8 ":
            if not _has(data, start, 10) or data[start + 3:start + 6] != _VP8_SYNC:
                return None
            width, height = struct.unpack_from("<HH", data, start + 6)
            return width & 0x3FFF, height & 0x3FFF

        if fourcc == b"VP8L":
            if not _has(data, start, 5) or data[start] != _VP8L_SIGNATURE:
                return None
            (bits,) = struct.unpack_from("<I", data, start + 1)
            return (bits & 0x3FFF) + 1, ((bits >> 14) & 0x3FFF) + 1

        if fourcc == b"VP8X":
            if not _has(data, start, 10):
                return None
            width = int.from_bytes(data[start + 4:start + 7], "little") + 1
            height = int.from_bytes(data[start + 7:start + 10], "little") + 1
            return width, height

        # Chunks are padded to an even length.
        offset = start + chunk_size + (chunk_size & 1)
    return None


_READERS = {
    MIME_PNG: _png_dimensions,
    MIME_JPEG: _jpeg_dimensions,
    MIME_WEBP: _webp_dimensions,
}


def read_dimensions(data: bytes) -> ImageDimensions:
    """Return the pixel size declared in the image header.

    Raises :class:`UnsupportedImageError` when the bytes are not a PNG, JPEG
    or WebP image or the header is truncated, and
    :class:`InvalidDimensionsError` when either dimension is zero.
    """
    mime = detect_mime(data)
    reader = _READERS.get(mime)
    if reader is None:
        raise UnsupportedImageError("Unsupported image format; expected PNG, JPEG or WebP.")
    size = reader(data)
    if size is None:
        raise UnsupportedImageError(f"Could not read dimensions from {mime} header.")
    width, height = size
    if width <= 0 or height <= 0:
        raise InvalidDimensionsError(f"Image reports invalid dimensions {width}x{height}.")
    return ImageDimensions(width=width, height=height)


def load_image_file(path: str | Path) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise FileAccessError(f"Failed to read image file '{path}': {exc}") from exc


def load_image_as_base64(path: str | Path) -> EncodedImage:
    data = load_image_file(path)
    return EncodedImage(mime=detect_mime(data), base64=base64.b64encode(data).decode("ascii"))


def load_image_dimensions(path: str | Path) -> ImageDimensions:
    dimensions = read_dimensions(load_image_file(path))
    log.debug("Image %s is %dx%d", path, dimensions.width, dimensions.height)
    return dimensions


__all__ = [
    "EncodedImage",
    "ImageDimensions",
    "MIME_JPEG",
    "MIME_PNG",
    "MIME_UNKNOWN",
    "MIME_WEBP",
    "PNG_SIGNATURE",
    "detect_mime",
    "extension_for",
    "load_image_as_base64",
    "load_image_dimensions",
    "load_image_file",
    "read_dimensions",
]
