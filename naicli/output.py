"""Writing generated images and their JSON sidecars to disk."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Any, Callable, List, Optional, Tuple, assert_never

from .errors import FileAccessError, ValidationError
from .images import detect_mime, extension_for
from .response import JsonResponse, NormalizedResponse, PngResponse, ZipResponse
from .template import TemplateVariables, render_template, sanitize_token

log = logging.getLogger(__name__)


@dataclass(slots=True)
class GenerationRecord:
    """What was asked for; copied into every sidecar file."""

    model: str
    seed: int
    prompt: str
    request_payload: Any
    negative_prompt: Optional[str] = None
    sampler: Optional[str] = None


@dataclass(slots=True)
class OutputArtifact:
    image_path: Path
    metadata_path: Path


@dataclass(slots=True)
class OutputResult:
    output_dir: Path
    artifacts: List[OutputArtifact] = field(default_factory=list)


def response_images(response: NormalizedResponse) -> List[Tuple[bytes, str]]:
    """Return ``(data, extension)`` pairs for every image in ``response``.

    The extension comes from sniffing the bytes; archive entries of unknown
    type keep their own suffix.
    """
    if isinstance(response, JsonResponse):
        return []
    if isinstance(response, PngResponse):
        return [(response.image, extension_for(detect_mime(response.image)) or ".png")]
    if isinstance(response, ZipResponse):
        items = []
        for entry in response.images:
            fallback = PurePosixPath(entry.name).suffix or ".png"
            items.append((entry.data, extension_for(detect_mime(entry.data)) or fallback))
        return items
    assert_never(response)


def available_base_path(base_path: Path, extensions: Tuple[str, ...]) -> Path:
    """Return ``base_path`` or the first ``base_path-N`` free for all ``extensions``."""

    def _taken(candidate: Path) -> bool:
        return any(candidate.with_name(candidate.name + ext).exists() for ext in extensions)

    if not _taken(base_path):
        return base_path
    suffix = 1
    while True:
        candidate = base_path.with_name(f"{base_path.name}-{suffix}")
        if not _taken(candidate):
            return candidate
        suffix += 1


def _build_metadata(record: GenerationRecord, index: int, kind: str, now: datetime) -> dict:
    return {
        "generated_at": now.isoformat(),
        "model": record.model,
        "sampler": record.sampler,
        "seed": record.seed,
        "image_index": index,
        "prompt": record.prompt,
        "negative_prompt": record.negative_prompt,
        "request": record.request_payload,
        "response_kind": kind,
    }


def _base_name(record: GenerationRecord, index: int, template: Optional[str], now: datetime) -> str:
    index_token = f"{index:02d}"
    if template:
        rendered = render_template(
            template,
            TemplateVariables(
                date=now.strftime("%Y-%m-%d"),
                model=record.model,
                seed=str(record.seed),
                index=index_token,
                prompt=record.prompt,
                sampler=record.sampler,
            ),
        )
        return rendered or f"image-{index_token}"
    return f"{sanitize_token(record.model)}-seed-{record.seed}-img-{index_token}"


def write_generation_output(
    output_dir: str | Path,
    record: GenerationRecord,
    response: NormalizedResponse,
    *,
    template: Optional[str] = None,
    now: Optional[Callable[[], datetime]] = None,
) -> OutputResult:
    directory = Path(output_dir)
    items = response_images(response)
    if not items:
        raise ValidationError(f"NovelAI {response.kind} response did not contain any image files.")

    clock = now or (lambda: datetime.now(timezone.utc))
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FileAccessError(f"Failed to create output directory '{directory}': {exc}") from exc

    result = OutputResult(output_dir=directory)
    for index, (data, extension) in enumerate(items, start=1):
        timestamp = clock()
        base = available_base_path(
            directory / _base_name(record, index, template, timestamp), (extension, ".json")
        )
        image_path = base.with_name(base.name + extension)
        metadata_path = base.with_name(base.name + ".json")
        metadata = _build_metadata(record, index, response.kind, timestamp)
        try:
            image_path.write_bytes(data)
            metadata_path.write_text(json.dumps(metadata, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        except OSError as exc:
            raise FileAccessError(f"Failed to write output files to '{directory}': {exc}") from exc
        log.debug("Wrote %s (%d bytes)", image_path, len(data))
        result.artifacts.append(OutputArtifact(image_path=image_path, metadata_path=metadata_path))
    return result


def write_image(directory: str | Path, base_name: str, data: bytes, extension: str = ".png") -> Path:
    target_dir = Path(directory)
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        base = available_base_path(target_dir / base_name, (extension,))
        path = base.with_name(base.name + extension)
        path.write_bytes(data)
    except OSError as exc:
        raise FileAccessError(f"Failed to write image to '{target_dir}': {exc}") from exc
    return path


__all__ = [
    "GenerationRecord",
    "OutputArtifact",
    "OutputResult",
    "available_base_path",
    "response_images",
    "write_generation_output",
    "write_image",
]
