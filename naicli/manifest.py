"""JSONL manifest of generation jobs."""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .errors import FileAccessError


MANIFEST_FILE_NAME = "manifest.jsonl"


@dataclass(slots=True)
class ManifestEntry:
    prompt: str
    model: str
    sampler: str
    seed: int
    filename: str
    success: bool
    error: Optional[str] = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


def append_manifest(output_dir: str | Path, entry: ManifestEntry) -> Path:
    directory = Path(output_dir)
    manifest_path = directory / MANIFEST_FILE_NAME
    record = {key: value for key, value in asdict(entry).items() if value is not None}
    try:
        directory.mkdir(parents=True, exist_ok=True)
        with manifest_path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record, ensure_ascii=False))
            handle.write("\n")
    except OSError as exc:
        raise FileAccessError(f"Failed to write manifest: {exc}") from exc
    return manifest_path


__all__ = ["MANIFEST_FILE_NAME", "ManifestEntry", "append_manifest"]
