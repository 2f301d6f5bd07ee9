"""Helpers shared by the generation sub-commands."""
from __future__ import annotations

import argparse
import json
import secrets
from typing import Any, Optional

from ..client import NovelAIClient
from ..config import NaiCliConfig
from ..endpoints import Endpoint
from ..presets import Preset, load_preset
from ..response import NormalizedResponse, normalize_response
from ..runtime import CliRuntime
from ..validate import MAX_SEED, GenerateParams, validate_generate_params

DEFAULT_WIDTH = 1024
DEFAULT_HEIGHT = 1024
DEFAULT_STEPS = 28
DEFAULT_SCALE = 5.0


def random_seed() -> int:
    return secrets.randbelow(MAX_SEED + 1)


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def add_sampling_arguments(parser: argparse.ArgumentParser, *, seed: bool = True) -> None:
    parser.add_argument("--negative", help="Negative prompt text")
    parser.add_argument("--sampler", help="Sampler ID from registry")
    parser.add_argument("--width", type=int, help="Image width")
    parser.add_argument("--height", type=int, help="Image height")
    parser.add_argument("--steps", type=int, help="Sampling steps")
    parser.add_argument("--scale", type=float, help="CFG scale")
    if seed:
        parser.add_argument("--seed", type=int, help="Seed (random when omitted)")
    parser.add_argument("--out", help="Output directory")
    parser.add_argument("--output-template", help="Filename template, e.g. '{date}-{model}-{seed}-{index}'")
    parser.add_argument("--preset", help="Apply a saved preset before command-line options")


def _pick(*values):
    for value in values:
        if value is not None:
            return value
    return None


def resolve_preset(args: argparse.Namespace, runtime: CliRuntime) -> Optional[Preset]:
    name = getattr(args, "preset", None)
    if not name:
        return None
    return load_preset(name, runtime.env)


def resolve_generate_params(
    args: argparse.Namespace,
    config: NaiCliConfig,
    preset: Optional[Preset],
    *,
    prompt: Optional[str] = None,
    model: Optional[str] = None,
    sampler: Optional[str] = None,
    seed: Optional[int] = None,
) -> GenerateParams:
    """Merge command-line options over preset values over config defaults, then validate."""
    preset = preset or Preset(name="")
    params = GenerateParams(
        prompt=_pick(prompt, getattr(args, "prompt", None)) or "",
        negative_prompt=_pick(args.negative, preset.negative),
        model=_pick(model, getattr(args, "model", None), preset.model, config.default_model),
        sampler=_pick(sampler, args.sampler, preset.sampler, config.default_sampler),
        width=_pick(args.width, preset.width, DEFAULT_WIDTH),
        height=_pick(args.height, preset.height, DEFAULT_HEIGHT),
        steps=_pick(args.steps, preset.steps, DEFAULT_STEPS),
        scale=_pick(args.scale, preset.scale, DEFAULT_SCALE),
        seed=_pick(seed, getattr(args, "seed", None), random_seed()),
        output_dir=_pick(args.out, preset.output_dir, config.default_output_dir),
    )
    return validate_generate_params(params)


def resolve_output_template(args: argparse.Namespace, config: NaiCliConfig, preset: Optional[Preset]) -> Optional[str]:
    return _pick(getattr(args, "output_template", None), preset.output_template if preset else None, config.default_output_template)


async def post_and_normalize(
    client: NovelAIClient, endpoint: Endpoint, payload: Any, runtime: CliRuntime
) -> NormalizedResponse:
    response = await client.post_json(
        endpoint.path, payload, base_url=endpoint.host, signal=runtime.cancel_token
    )
    return normalize_response(response)


__all__ = [
    "add_sampling_arguments",
    "post_and_normalize",
    "print_json",
    "random_seed",
    "resolve_generate_params",
    "resolve_output_template",
    "resolve_preset",
]
