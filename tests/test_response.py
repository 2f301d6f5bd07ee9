import io
import zipfile

import httpx
import pytest

from naicli.errors import ArchiveFormatError, MalformedJsonError, UnsupportedResponseError
from naicli.response import JsonResponse, PngResponse, ZipResponse, normalize_response


def _response(content: bytes, content_type: str = "") -> httpx.Response:
    headers = {"content-type": content_type} if content_type else {}
    return httpx.Response(200, headers=headers, content=content)


def _zip(entries) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, data in entries:
            archive.writestr(name, data)
    return buffer.getvalue()


def test_json_by_content_type():
    result = normalize_response(_response(b'{"ok": true}', "application/json; charset=utf-8"))
    assert result == JsonResponse(data={"ok": True})
    assert result.kind == "json"


def test_json_sniffed_despite_image_content_type():
    result = normalize_response(_response(b'  [1, 2]', "image/png"))
    assert isinstance(result, JsonResponse)
    assert result.data == [1, 2]


def test_malformed_json_is_fatal():
    with pytest.raises(MalformedJsonError):
        normalize_response(_response(b"{not json", "application/json"))


def test_zip_splits_images_and_metadata_sorted(make_png):
    png = make_png()
    body = _zip([("image_1.PNG", png), ("meta.json", b"{}"), ("image_0.png", png), ("a.txt", b"x")])
    result = normalize_response(_response(body, "application/zip"))
    assert isinstance(result, ZipResponse)
    assert [entry.name for entry in result.images] == ["image_0.png", "image_1.PNG"]
    assert [entry.name for entry in result.metadata_files] == ["a.txt", "meta.json"]


def test_zip_sniffed_without_content_type(make_png):
    result = normalize_response(_response(_zip([("image_0.png", make_png())])))
    assert isinstance(result, ZipResponse)
    assert len(result.images) == 1


def test_png_sniffed_with_octet_stream(make_png):
    png = make_png()
    result = normalize_response(_response(png, "application/octet-stream"))
    assert result == PngResponse(image=png)


def test_corrupt_zip_propagates_archive_error():
    with pytest.raises(ArchiveFormatError):
        normalize_response(_response(b"PK\x03\x04garbage", "application/zip"))


def test_unknown_body_is_unsupported():
    with pytest.raises(UnsupportedResponseError, match="text/html"):
        normalize_response(_response(b"<html></html>", "text/html"))
