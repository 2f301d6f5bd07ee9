"""Classification of API response bodies into JSON, PNG or ZIP results."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, ClassVar, List, Literal, Protocol, Sequence, Tuple, Union

from .archive import ArchiveEntry, read_archive
from .errors import MalformedJsonError, UnsupportedResponseError
from .images import PNG_SIGNATURE

log = logging.getLogger(__name__)

ZIP_SIGNATURE = b"PK\x03\x04"


class _Headers(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...


class HttpResponseLike(Protocol):
    headers: _Headers
    content: bytes


@dataclass(frozen=True, slots=True)
class JsonResponse:
    data: Any
    kind: ClassVar[Literal["json"]] = "json"


@dataclass(frozen=True, slots=True)
class PngResponse:
    image: bytes
    kind: ClassVar[Literal["png"]] = "png"


@dataclass(frozen=True, slots=True)
class ZipResponse:
    images: List[ArchiveEntry] = field(default_factory=list)
    metadata_files: List[ArchiveEntry] = field(default_factory=list)
    kind: ClassVar[Literal["zip"]] = "zip"


NormalizedResponse = Union[JsonResponse, PngResponse, ZipResponse]


def looks_like_json(data: bytes) -> bool:
    return data.lstrip()[:1] in (b"{", b"[")


def looks_like_zip(data: bytes) -> bool:
    return data[:4] == ZIP_SIGNATURE


def looks_like_png(data: bytes) -> bool:
    return data[:8] == PNG_SIGNATURE


def _parse_json(data: bytes) -> Any:
    try:
        return json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedJsonError("Response body looked like JSON but could not be parsed.") from exc


def split_archive_entries(
    entries: Sequence[ArchiveEntry],
) -> Tuple[List[ArchiveEntry], List[ArchiveEntry]]:
    """Partition entries into ``.png`` images and everything else, each sorted by name."""
    images = [entry for entry in entries if entry.name.lower().endswith(".png")]
    metadata = [entry for entry in entries if not entry.name.lower().endswith(".png")]
    images.sort(key=lambda entry: entry.name)
    metadata.sort(key=lambda entry: entry.name)
    return images, metadata


def normalize_response(response: HttpResponseLike) -> NormalizedResponse:
    """Decode an HTTP response body into one of the three known shapes.

    The content type is only a hint; the body bytes decide for mislabeled
    responses. JSON is checked first because error payloads are always JSON
    whatever the success content type would have been.
    """
    content_type = str(response.headers.get("content-type") or "").lower()
    raw = bytes(response.content)

    if "application/json" in content_type or looks_like_json(raw):
        return JsonResponse(data=_parse_json(raw))

    if "application/zip" in content_type or looks_like_zip(raw):
        images, metadata = split_archive_entries(read_archive(raw))
        log.debug("ZIP response with %d images and %d metadata files", len(images), len(metadata))
        return ZipResponse(images=images, metadata_files=metadata)

    if "image/png" in content_type or looks_like_png(raw):
        return PngResponse(image=raw)

    raise UnsupportedResponseError(
        f"Unsupported response type '{content_type or 'unknown'}' from NovelAI."
    )


__all__ = [
    "HttpResponseLike",
    "JsonResponse",
    "NormalizedResponse",
    "PngResponse",
    "ZipResponse",
    "normalize_response",
    "split_archive_entries",
]
