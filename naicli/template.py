"""Output filename templates."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

_UNSAFE = re.compile(r"[^a-z0-9._-]+")
_DASHES = re.compile(r"-+")


def sanitize_token(value: str, fallback: str = "unknown") -> str:
    cleaned = _UNSAFE.sub("-", value.strip().lower())
    cleaned = _DASHES.sub("-", cleaned).strip("-")
    return cleaned or fallback


@dataclass(slots=True)
class TemplateVariables:
    date: str
    model: str
    seed: str
    index: str
    prompt: str
    sampler: Optional[str] = None


def render_template(template: str, variables: TemplateVariables) -> str:
    """Substitute ``{date}``, ``{model}``, ``{seed}``, ``{index}``, ``{prompt}`` and ``{sampler}``."""
    replacements = {
        "{date}": variables.date,
        "{model}": sanitize_token(variables.model),
        "{seed}": variables.seed,
        "{index}": variables.index,
        "{prompt}": sanitize_token(variables.prompt[:50]),
        "{sampler}": sanitize_token(variables.sampler or "unknown"),
    }
    result = template
    for placeholder, value in replacements.items():
        result = result.replace(placeholder, value)
    return result


__all__ = ["TemplateVariables", "render_template", "sanitize_token"]
