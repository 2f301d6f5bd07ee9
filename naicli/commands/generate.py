"""``generate``, ``img2img`` and ``inpaint`` sub-commands."""
from __future__ import annotations

import argparse
import logging
from typing import Any, Dict

from ..endpoints import endpoint
from ..images import load_image_as_base64
from ..manifest import ManifestEntry, append_manifest
from ..output import GenerationRecord, write_generation_output
from ..payloads import build_generate_payload, build_img2img_payload, build_inpaint_payload
from ..response import JsonResponse
from ..runtime import CliRuntime
from ..validate import GenerateParams, validate_unit_interval
from .common import (
    add_sampling_arguments,
    post_and_normalize,
    print_json,
    resolve_generate_params,
    resolve_output_template,
    resolve_preset,
)

log = logging.getLogger(__name__)


async def _generate_and_write(
    runtime: CliRuntime, params: GenerateParams, payload: Dict[str, Any], template
) -> int:
    config = runtime.config
    log.debug("Submitting %s request for model %s (seed %d)", payload["action"], params.model, params.seed)
    async with runtime.create_client() as client:
        try:
            response = await post_and_normalize(client, endpoint("generate_image"), payload, runtime)
            if isinstance(response, JsonResponse):
                print_json(response.data)
                return 0
            result = write_generation_output(
                params.output_dir,
                GenerationRecord(
                    model=params.model,
                    seed=params.seed,
                    prompt=params.prompt,
                    request_payload=payload,
                    negative_prompt=params.negative_prompt,
                    sampler=params.sampler,
                ),
                response,
                template=template,
                now=runtime.now,
            )
        except Exception as exc:
            if config.manifest_enabled:
                append_manifest(
                    params.output_dir,
                    ManifestEntry(
                        prompt=params.prompt,
                        model=params.model,
                        sampler=params.sampler,
                        seed=params.seed,
                        filename="",
                        success=False,
                        error=str(exc),
                    ),
                )
            raise

    if config.manifest_enabled:
        for artifact in result.artifacts:
            append_manifest(
                result.output_dir,
                ManifestEntry(
                    prompt=params.prompt,
                    model=params.model,
                    sampler=params.sampler,
                    seed=params.seed,
                    filename=artifact.image_path.name,
                    success=True,
                ),
            )

    print_json(
        {
            "output_dir": str(result.output_dir),
            "seed": params.seed,
            "files": [
                {"image": str(artifact.image_path), "metadata": str(artifact.metadata_path)}
                for artifact in result.artifacts
            ],
        }
    )
    return 0


def _resolve(args: argparse.Namespace, runtime: CliRuntime):
    preset = resolve_preset(args, runtime)
    config = runtime.config
    params = resolve_generate_params(args, config, preset)
    return params, resolve_output_template(args, config, preset)


async def run_generate(args: argparse.Namespace, runtime: CliRuntime) -> int:
    params, template = _resolve(args, runtime)
    payload = build_generate_payload(params, n_samples=args.samples)
    return await _generate_and_write(runtime, params, payload, template)


async def run_img2img(args: argparse.Namespace, runtime: CliRuntime) -> int:
    strength = validate_unit_interval(args.strength, "Strength")
    noise = validate_unit_interval(args.noise, "Noise")
    params, template = _resolve(args, runtime)
    image = load_image_as_base64(args.image)
    payload = build_img2img_payload(params, image.base64, strength, noise, n_samples=args.samples)
    return await _generate_and_write(runtime, params, payload, template)


async def run_inpaint(args: argparse.Namespace, runtime: CliRuntime) -> int:
    strength = validate_unit_interval(args.strength, "Strength")
    params, template = _resolve(args, runtime)
    image = load_image_as_base64(args.image)
    mask = load_image_as_base64(args.mask)
    payload = build_inpaint_payload(params, image.base64, mask.base64, strength, n_samples=args.samples)
    return await _generate_and_write(runtime, params, payload, template)


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--prompt", required=True, help="Prompt text")
    parser.add_argument("--model", help="Model ID from registry")
    parser.add_argument("--samples", type=int, default=1, choices=range(1, 5), metavar="N", help="Images per request (1-4)")
    add_sampling_arguments(parser)


def register(subparsers, parents) -> None:
    generate_parser = subparsers.add_parser("generate", help="Generate images from a prompt", parents=parents)
    _add_common(generate_parser)
    generate_parser.set_defaults(func=run_generate)

    img2img_parser = subparsers.add_parser("img2img", help="Transform an existing image", parents=parents)
    _add_common(img2img_parser)
    img2img_parser.add_argument("--image", required=True, help="Source image file")
    img2img_parser.add_argument("--strength", type=float, default=0.7, help="Transformation strength 0-1 (default: 0.7)")
    img2img_parser.add_argument("--noise", type=float, default=0.0, help="Added noise 0-1 (default: 0)")
    img2img_parser.set_defaults(func=run_img2img)

    inpaint_parser = subparsers.add_parser("inpaint", help="Repaint the masked area of an image", parents=parents)
    _add_common(inpaint_parser)
    inpaint_parser.add_argument("--image", required=True, help="Source image file")
    inpaint_parser.add_argument("--mask", required=True, help="Mask image file (white marks the area to repaint)")
    inpaint_parser.add_argument("--strength", type=float, default=0.7, help="Inpaint strength 0-1 (default: 0.7)")
    inpaint_parser.set_defaults(func=run_inpaint)


__all__ = ["register", "run_generate", "run_img2img", "run_inpaint"]
