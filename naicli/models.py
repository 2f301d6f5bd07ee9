"""Model and sampler registry with per-model generation limits."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

MODEL_IDS = (
    "nai-diffusion-4-5-curated",
    "nai-diffusion-4-5-full",
    "nai-diffusion-4-full",
    "nai-diffusion-4-curated",
    "nai-diffusion-3",
    "nai-diffusion-3-inpainting",
    "nai-diffusion-furry-3",
    "nai-diffusion-2",
    "nai-diffusion",
    "safe-diffusion",
)

SAMPLER_IDS = (
    "k_euler",
    "k_euler_ancestral",
    "k_dpmpp_2s_ancestral",
    "k_dpmpp_2m",
    "k_dpmpp_sde",
    "ddim",
)

DEFAULT_MODEL = "nai-diffusion-4-5-curated"
DEFAULT_SAMPLER = "k_euler_ancestral"


@dataclass(frozen=True, slots=True)
class GenerationConstraints:
    width_multiple: int = 64
    height_multiple: int = 64
    min_width: int = 64
    max_width: int = 4096
    min_height: int = 64
    max_height: int = 4096
    min_steps: int = 1
    max_steps: int = 50


DEFAULT_CONSTRAINTS = GenerationConstraints()

MODEL_CONSTRAINTS: Dict[str, GenerationConstraints] = {
    model: DEFAULT_CONSTRAINTS for model in MODEL_IDS
}


def is_model_id(value: str) -> bool:
    return value in MODEL_IDS


def is_sampler_id(value: str) -> bool:
    return value in SAMPLER_IDS


def generation_constraints(model: str) -> GenerationConstraints:
    return MODEL_CONSTRAINTS.get(model, DEFAULT_CONSTRAINTS)


def is_v4_model(model: str) -> bool:
    return model.startswith("nai-diffusion-4")


__all__ = [
    "DEFAULT_MODEL",
    "DEFAULT_SAMPLER",
    "GenerationConstraints",
    "MODEL_IDS",
    "SAMPLER_IDS",
    "generation_constraints",
    "is_model_id",
    "is_sampler_id",
    "is_v4_model",
]
