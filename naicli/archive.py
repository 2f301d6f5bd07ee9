"""Minimal ZIP reader for bundles returned by the image API.

Only what the server actually produces is supported: a single-disk archive
whose entries are stored (method 0) or raw-deflated (method 8). Every offset
and length is checked against the buffer before it is read, so a malformed
archive always surfaces as :class:`ArchiveFormatError` and never as a partial
list of entries.
"""
from __future__ import annotations

import logging
import struct
import zlib
from dataclasses import dataclass
from typing import List

from .errors import ArchiveFormatError

log = logging.getLogger(__name__)

END_OF_CENTRAL_DIR_SIG = 0x06054B50
CENTRAL_DIR_FILE_HEADER_SIG = 0x02014B50
LOCAL_FILE_HEADER_SIG = 0x04034B50

EOCD_SIZE = 22
CENTRAL_HEADER_SIZE = 46
LOCAL_HEADER_SIZE = 30
MAX_COMMENT_LENGTH = 65535

METHOD_STORED = 0
METHOD_DEFLATE = 8


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    name: str
    data: bytes


def _ensure_range(data: bytes, offset: int, length: int) -> None:
    if offset < 0 or length < 0 or offset + length > len(data):
        raise ArchiveFormatError("ZIP parsing failed due to an out-of-range read.")


def _u16(data: bytes, offset: int) -> int:
    _ensure_range(data, offset, 2)
    return struct.unpack_from("<H", data, offset)[0]


def _u32(data: bytes, offset: int) -> int:
    _ensure_range(data, offset, 4)
    return struct.unpack_from("<I", data, offset)[0]


def _find_end_of_central_dir(data: bytes) -> int:
    # The record sits at the very end unless followed by a comment of up to 64 KiB.
    lowest = max(0, len(data) - MAX_COMMENT_LENGTH - EOCD_SIZE)
    for offset in range(len(data) - EOCD_SIZE, lowest - 1, -1):
        if _u32(data, offset) == END_OF_CENTRAL_DIR_SIG:
            return offset
    raise ArchiveFormatError("Could not locate ZIP end-of-central-directory record.")


def _decompress(method: int, payload: bytes, name: str) -> bytes:
    if method == METHOD_STORED:
        return bytes(payload)
    if method == METHOD_DEFLATE:
        inflater = zlib.decompressobj(-zlib.MAX_WBITS)
        try:
            return inflater.decompress(payload) + inflater.flush()
        except zlib.error as exc:
            raise ArchiveFormatError(f"ZIP entry '{name}' could not be inflated: {exc}") from exc
    raise ArchiveFormatError(f"Unsupported ZIP compression method: {method}.")


def read_archive(data: bytes) -> List[ArchiveEntry]:
    """Parse ``data`` as a ZIP container and return its file entries.

    Entries come back in central-directory order. Directory markers (names
    ending in ``/``) are validated like any other record but not returned.
    An archive with a well-formed end record and no entries yields ``[]``.
    """
    data = bytes(data)
    if len(data) < EOCD_SIZE:
        raise ArchiveFormatError("ZIP payload is too small to be valid.")

    eocd_offset = _find_end_of_central_dir(data)
    _ensure_range(data, eocd_offset, EOCD_SIZE)
    directory_size = _u32(data, eocd_offset + 12)
    directory_offset = _u32(data, eocd_offset + 16)
    _ensure_range(data, directory_offset, directory_size)

    entries: List[ArchiveEntry] = []
    cursor = directory_offset
    directory_end = directory_offset + directory_size

    while cursor < directory_end:
        _ensure_range(data, cursor, CENTRAL_HEADER_SIZE)
        if _u32(data, cursor) != CENTRAL_DIR_FILE_HEADER_SIG:
            raise ArchiveFormatError("Invalid central directory file header signature.")

        method = _u16(data, cursor + 10)
        compressed_size = _u32(data, cursor + 20)
        uncompressed_size = _u32(data, cursor + 24)
        name_length = _u16(data, cursor + 28)
        extra_length = _u16(data, cursor + 30)
        comment_length = _u16(data, cursor + 32)
        local_offset = _u32(data, cursor + 42)

        name_start = cursor + CENTRAL_HEADER_SIZE
        _ensure_range(data, name_start, name_length + extra_length + comment_length)
        try:
            name = data[name_start:name_start + name_length].decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ArchiveFormatError("ZIP entry name is not valid UTF-8.") from exc

        _ensure_range(data, local_offset, LOCAL_HEADER_SIZE)
        if _u32(data, local_offset) != LOCAL_FILE_HEADER_SIG:
            raise ArchiveFormatError("Invalid local file header signature.")
        local_name_length = _u16(data, local_offset + 26)
        local_extra_length = _u16(data, local_offset + 28)
        data_offset = local_offset + LOCAL_HEADER_SIZE + local_name_length + local_extra_length
        _ensure_range(data, data_offset, compressed_size)

        content = _decompress(method, data[data_offset:data_offset + compressed_size], name)
        if len(content) != uncompressed_size:
            raise ArchiveFormatError(f"ZIP entry '{name}' has mismatched uncompressed size.")

        if not name.endswith("/"):
            entries.append(ArchiveEntry(name=name, data=content))

        cursor = name_start + name_length + extra_length + comment_length

    log.debug("Read %d entries from ZIP archive", len(entries))
    return entries


__all__ = ["ArchiveEntry", "read_archive"]
