import io
import struct
import zipfile

import pytest

from naicli.archive import ArchiveEntry, read_archive
from naicli.errors import ArchiveFormatError


def _zip(entries, compression=zipfile.ZIP_DEFLATED, comment=b""):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=compression) as archive:
        for name, data in entries:
            archive.writestr(name, data)
        archive.comment = comment
    return buffer.getvalue()


def test_reads_deflated_entries_in_directory_order():
    data = _zip([("image_0.png", b"first" * 100), ("image_1.png", b"second")])
    entries = read_archive(data)
    assert entries == [
        ArchiveEntry(name="image_0.png", data=b"first" * 100),
        ArchiveEntry(name="image_1.png", data=b"second"),
    ]


def test_reads_stored_entries():
    data = _zip([("meta.json", b'{"a": 1}')], compression=zipfile.ZIP_STORED)
    assert read_archive(data) == [ArchiveEntry(name="meta.json", data=b'{"a": 1}')]


def test_skips_directory_entries():
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr(zipfile.ZipInfo("images/"), b"")
        archive.writestr("images/a.png", b"abc")
    entries = read_archive(buffer.getvalue())
    assert [entry.name for entry in entries] == ["images/a.png"]


def test_handles_archive_comment():
    data = _zip([("a.txt", b"hello")], comment=b"generated by test")
    assert read_archive(data)[0].data == b"hello"


def test_empty_archive_returns_no_entries():
    assert read_archive(_zip([])) == []


def test_rejects_tiny_buffer():
    with pytest.raises(ArchiveFormatError):
        read_archive(b"PK\x03\x04")


def test_rejects_buffer_without_end_record():
    with pytest.raises(ArchiveFormatError):
        read_archive(b"\x00" * 64)


def test_rejects_central_directory_out_of_range():
    data = bytearray(_zip([("a.txt", b"hello")]))
    eocd = data.rfind(b"PK\x05\x06")
    struct.pack_into("<I", data, eocd + 16, len(data) + 100)
    with pytest.raises(ArchiveFormatError):
        read_archive(bytes(data))


def test_rejects_truncated_entry_data():
    data = bytearray(_zip([("a.txt", b"hello world")], compression=zipfile.ZIP_STORED))
    central = data.find(b"PK\x01\x02")
    struct.pack_into("<I", data, central + 20, 10_000)
    with pytest.raises(ArchiveFormatError):
        read_archive(bytes(data))


def test_rejects_bad_local_header_signature():
    data = bytearray(_zip([("a.txt", b"hello")]))
    data[0:4] = b"XXXX"
    with pytest.raises(ArchiveFormatError):
        read_archive(bytes(data))


def test_rejects_bad_central_directory_signature():
    data = bytearray(_zip([("a.txt", b"hello")]))
    central = data.find(b"PK\x01\x02")
    data[central + 3] = 0x03
    with pytest.raises(ArchiveFormatError, match="central directory"):
        read_archive(bytes(data))


def test_rejects_non_utf8_entry_name():
    data = bytearray(_zip([("a.txt", b"hello")]))
    central = data.find(b"PK\x01\x02")
    data[central + 46] = 0xFF
    with pytest.raises(ArchiveFormatError, match="UTF-8"):
        read_archive(bytes(data))


def test_rejects_unsupported_compression_method():
    data = bytearray(_zip([("a.txt", b"hello")], compression=zipfile.ZIP_STORED))
    central = data.find(b"PK\x01\x02")
    struct.pack_into("<H", data, central + 10, 12)
    with pytest.raises(ArchiveFormatError, match="Unsupported ZIP compression method"):
        read_archive(bytes(data))


def test_rejects_size_mismatch():
    data = bytearray(_zip([("a.txt", b"hello")], compression=zipfile.ZIP_STORED))
    central = data.find(b"PK\x01\x02")
    struct.pack_into("<I", data, central + 24, 99)
    with pytest.raises(ArchiveFormatError, match="mismatched"):
        read_archive(bytes(data))


def test_rejects_corrupt_deflate_stream():
    data = bytearray(_zip([("a.txt", b"hello" * 50)]))
    local_name_length = struct.unpack_from("<H", data, 26)[0]
    start = 30 + local_name_length
    data[start:start + 4] = b"\xff\xff\xff\xff"
    with pytest.raises(ArchiveFormatError):
        read_archive(bytes(data))
