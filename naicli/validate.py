"""Validation of generation parameters against the model registry."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, List, Optional

from .errors import ValidationError
from .models import MODEL_IDS, SAMPLER_IDS, generation_constraints, is_model_id, is_sampler_id

MAX_SEED = 4_294_967_295


@dataclass(slots=True)
class GenerateParams:
    prompt: str
    model: str
    sampler: str
    width: int
    height: int
    steps: int
    scale: float
    seed: int
    output_dir: str
    negative_prompt: Optional[str] = None


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _collect_issues(params: GenerateParams) -> List[str]:
    issues: List[str] = []

    if not params.prompt or not params.prompt.strip():
        issues.append("prompt: Prompt is required.")
    if not is_model_id(params.model):
        issues.append(f"model: Expected one of {', '.join(MODEL_IDS)}.")
    if not is_sampler_id(params.sampler):
        issues.append(f"sampler: Expected one of {', '.join(SAMPLER_IDS)}.")
    for name in ("width", "height", "steps"):
        value = getattr(params, name)
        if not _is_int(value) or value <= 0:
            issues.append(f"{name}: Must be a positive integer.")
    if isinstance(params.scale, bool) or not isinstance(params.scale, (int, float)) or not math.isfinite(params.scale) or params.scale <= 0:
        issues.append("scale: Must be a positive number.")
    if not _is_int(params.seed) or params.seed < 0 or params.seed > MAX_SEED:
        issues.append(f"seed: Must be an integer between 0 and {MAX_SEED}.")
    if not params.output_dir or not params.output_dir.strip():
        issues.append("output_dir: Output directory is required.")

    if issues:
        return issues

    limits = generation_constraints(params.model)
    if params.width % limits.width_multiple != 0:
        issues.append(f"width: Width must be a multiple of {limits.width_multiple}.")
    if params.height % limits.height_multiple != 0:
        issues.append(f"height: Height must be a multiple of {limits.height_multiple}.")
    if not limits.min_width <= params.width <= limits.max_width:
        issues.append(f"width: Width must be between {limits.min_width} and {limits.max_width}.")
    if not limits.min_height <= params.height <= limits.max_height:
        issues.append(f"height: Height must be between {limits.min_height} and {limits.max_height}.")
    if not limits.min_steps <= params.steps <= limits.max_steps:
        issues.append(f"steps: Steps must be between {limits.min_steps} and {limits.max_steps}.")
    return issues


def validate_generate_params(params: GenerateParams) -> GenerateParams:
    issues = _collect_issues(params)
    if issues:
        raise ValidationError(f"Invalid generate parameters: {'; '.join(issues)}")
    params.prompt = params.prompt.strip()
    if params.negative_prompt is not None:
        params.negative_prompt = params.negative_prompt.strip() or None
    params.output_dir = params.output_dir.strip()
    return params


def validate_unit_interval(value: float, label: str) -> float:
    if not math.isfinite(value) or value < 0 or value > 1:
        raise ValidationError(f"{label} must be between 0 and 1.")
    return value


__all__ = ["GenerateParams", "MAX_SEED", "validate_generate_params", "validate_unit_interval"]
