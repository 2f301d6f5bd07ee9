"""Named generation presets stored next to the config file."""
from __future__ import annotations

import json
import os
import re
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, List, Mapping, Optional

from .config import config_dir
from .errors import FileAccessError, ValidationError
from .models import is_model_id, is_sampler_id

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


@dataclass(slots=True)
class Preset:
    name: str
    model: Optional[str] = None
    sampler: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    steps: Optional[int] = None
    scale: Optional[float] = None
    negative: Optional[str] = None
    output_dir: Optional[str] = None
    output_template: Optional[str] = None

    def to_dict(self) -> dict:
        return {key: value for key, value in asdict(self).items() if value is not None}


def presets_dir(env: Optional[Mapping[str, str]] = None) -> Path:
    return config_dir(env) / "presets"


def validate_preset_name(name: str) -> None:
    if not _NAME_PATTERN.match(name):
        raise ValidationError(
            "Preset name must contain only alphanumeric characters, hyphens, and underscores."
        )


def _preset_path(name: str, env: Optional[Mapping[str, str]]) -> Path:
    return presets_dir(env) / f"{name}.json"


def parse_preset(raw: Any, name: str) -> Preset:
    if not isinstance(raw, Mapping):
        raise ValidationError(f"Invalid preset '{name}': expected a JSON object")
    known = {f.name for f in fields(Preset)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValidationError(f"Invalid preset '{name}': unknown fields {', '.join(unknown)}")
    preset = Preset(**{key: raw[key] for key in raw})
    issues = []
    if not isinstance(preset.name, str) or not preset.name:
        issues.append("name: required")
    if preset.model is not None and not is_model_id(preset.model):
        issues.append(f"model: unknown model '{preset.model}'")
    if preset.sampler is not None and not is_sampler_id(preset.sampler):
        issues.append(f"sampler: unknown sampler '{preset.sampler}'")
    for key in ("width", "height", "steps"):
        value = getattr(preset, key)
        if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value <= 0):
            issues.append(f"{key}: must be a positive integer")
    if preset.scale is not None and (isinstance(preset.scale, bool) or not isinstance(preset.scale, (int, float)) or preset.scale <= 0):
        issues.append("scale: must be a positive number")
    if issues:
        raise ValidationError(f"Invalid preset '{name}': {'; '.join(issues)}")
    return preset


def save_preset(preset: Preset, env: Optional[Mapping[str, str]] = None) -> Path:
    validate_preset_name(preset.name)
    data = parse_preset(preset.to_dict(), preset.name).to_dict()
    path = _preset_path(preset.name, env)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        raise FileAccessError(f"Failed to save preset '{preset.name}': {exc}") from exc
    return path


def load_preset(name: str, env: Optional[Mapping[str, str]] = None) -> Preset:
    validate_preset_name(name)
    path = _preset_path(name, env)
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ValidationError(f"Preset '{name}' not found.") from exc
    except OSError as exc:
        raise FileAccessError(f"Failed to read preset '{name}': {exc}") from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Preset '{name}' is not valid JSON.") from exc
    return parse_preset(data, name)


def list_presets(env: Optional[Mapping[str, str]] = None) -> List[str]:
    directory = presets_dir(env)
    try:
        names = os.listdir(directory)
    except FileNotFoundError:
        return []
    except OSError as exc:
        raise FileAccessError(f"Failed to list presets: {exc}") from exc
    return sorted(name[: -len(".json")] for name in names if name.endswith(".json"))


def delete_preset(name: str, env: Optional[Mapping[str, str]] = None) -> None:
    validate_preset_name(name)
    try:
        _preset_path(name, env).unlink()
    except FileNotFoundError as exc:
        raise ValidationError(f"Preset '{name}' not found.") from exc
    except OSError as exc:
        raise FileAccessError(f"Failed to delete preset '{name}': {exc}") from exc


__all__ = [
    "Preset",
    "delete_preset",
    "list_presets",
    "load_preset",
    "parse_preset",
    "presets_dir",
    "save_preset",
    "validate_preset_name",
]
