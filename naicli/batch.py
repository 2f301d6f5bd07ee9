"""Batch job expansion and bounded-concurrency execution."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

from .errors import FileAccessError, ValidationError

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class BatchJob:
    prompt: str
    model: str
    sampler: str
    index: int


@dataclass(slots=True)
class BatchResult:
    job: BatchJob
    success: bool
    file_path: Optional[str] = None
    error: Optional[str] = None
    duration_ms: int = 0


def load_prompt_file(path: str | Path) -> List[str]:
    """Read one prompt per line, skipping blank lines and ``#`` comments."""
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise FileAccessError(f"Failed to read prompt file '{path}': {exc}") from exc
    prompts = []
    for line in content.splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            prompts.append(stripped)
    return prompts


def build_batch_matrix(prompts: Sequence[str], models: Sequence[str], samplers: Sequence[str]) -> List[BatchJob]:
    jobs: List[BatchJob] = []
    for prompt in prompts:
        for model in models:
            for sampler in samplers:
                jobs.append(BatchJob(prompt=prompt, model=model, sampler=sampler, index=len(jobs)))
    return jobs


async def run_with_concurrency(tasks: Sequence[Callable[[], Awaitable[T]]], concurrency: int) -> List[T]:
    """Run ``tasks`` with at most ``concurrency`` in flight; results keep input order."""
    if concurrency < 1:
        raise ValidationError("Concurrency must be at least 1.")
    semaphore = asyncio.Semaphore(concurrency)

    async def _run(task: Callable[[], Awaitable[T]]) -> T:
        async with semaphore:
            return await task()

    return list(await asyncio.gather(*(_run(task) for task in tasks)))


def format_batch_summary(results: Sequence[BatchResult]) -> str:
    succeeded = sum(1 for result in results if result.success)
    failed = len(results) - succeeded
    lines = [f"Batch complete: {succeeded} succeeded, {failed} failed out of {len(results)} total."]
    if failed:
        lines.append("Failed jobs:")
        for result in results:
            if not result.success:
                lines.append(f"  [{result.job.index}] {result.job.prompt[:60]}: {result.error}")
    return "\n".join(lines)


__all__ = [
    "BatchJob",
    "BatchResult",
    "build_batch_matrix",
    "format_batch_summary",
    "load_prompt_file",
    "run_with_concurrency",
]
