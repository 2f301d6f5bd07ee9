"""``batch`` sub-command: prompts x models x samplers with bounded concurrency."""
from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import List, Optional

from ..batch import BatchJob, BatchResult, build_batch_matrix, format_batch_summary, load_prompt_file, run_with_concurrency
from ..client import NovelAIClient
from ..endpoints import endpoint
from ..errors import CliError, ValidationError
from ..manifest import ManifestEntry, append_manifest
from ..output import GenerationRecord, write_generation_output
from ..payloads import build_generate_payload
from ..presets import Preset
from ..response import JsonResponse
from ..runtime import CliRuntime
from .common import (
    add_sampling_arguments,
    post_and_normalize,
    resolve_generate_params,
    resolve_output_template,
    resolve_preset,
)

log = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 2


def _split_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


async def _run_job(
    job: BatchJob,
    args: argparse.Namespace,
    runtime: CliRuntime,
    client: NovelAIClient,
    preset: Optional[Preset],
    template: Optional[str],
) -> BatchResult:
    started = time.monotonic()
    params = None
    try:
        params = resolve_generate_params(
            args, runtime.config, preset, prompt=job.prompt, model=job.model, sampler=job.sampler
        )
        payload = build_generate_payload(params)
        response = await post_and_normalize(client, endpoint("generate_image"), payload, runtime)
        if isinstance(response, JsonResponse):
            raise ValidationError("Generation endpoint returned JSON instead of an image.")
        output = write_generation_output(
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
    except CliError as exc:
        log.debug("Batch job %d failed: %s", job.index, exc)
        result = BatchResult(job=job, success=False, error=exc.message)
    else:
        first = output.artifacts[0].image_path
        result = BatchResult(job=job, success=True, file_path=str(first))
    result.duration_ms = int((time.monotonic() - started) * 1000)

    if runtime.config.manifest_enabled and params is not None:
        append_manifest(
            params.output_dir,
            ManifestEntry(
                prompt=job.prompt,
                model=job.model,
                sampler=job.sampler,
                seed=params.seed,
                filename=Path(result.file_path).name if result.file_path else "",
                success=result.success,
                error=result.error,
            ),
        )
    status = "ok" if result.success else "failed"
    print(f"[{job.index + 1}] {status}: {result.file_path or result.error}")
    return result


async def run_batch(args: argparse.Namespace, runtime: CliRuntime) -> int:
    prompts = load_prompt_file(args.prompts)
    if not prompts:
        raise ValidationError(f"Prompt file '{args.prompts}' does not contain any prompts.")
    config = runtime.config
    preset = resolve_preset(args, runtime)
    models = _split_list(args.models) or [(preset and preset.model) or config.default_model]
    samplers = _split_list(args.samplers) or [(preset and preset.sampler) or config.default_sampler]
    template = resolve_output_template(args, config, preset)

    jobs = build_batch_matrix(prompts, models, samplers)
    log.info("Running %d batch jobs with concurrency %d", len(jobs), args.concurrency)

    async with runtime.create_client() as client:
        results = await run_with_concurrency(
            [lambda job=job: _run_job(job, args, runtime, client, preset, template) for job in jobs],
            args.concurrency,
        )

    print(format_batch_summary(results))
    return 0 if all(result.success for result in results) else 1


def register(subparsers, parents) -> None:
    parser = subparsers.add_parser("batch", help="Generate images for every prompt in a file", parents=parents)
    parser.add_argument("--prompts", required=True, help="File with one prompt per line ('#' starts a comment)")
    parser.add_argument("--models", help="Comma-separated model IDs")
    parser.add_argument("--samplers", help="Comma-separated sampler IDs")
    parser.add_argument("--concurrency", type=int, default=DEFAULT_CONCURRENCY, help="Parallel requests (default: 2)")
    add_sampling_arguments(parser, seed=False)
    parser.set_defaults(func=run_batch)


__all__ = ["register", "run_batch"]
