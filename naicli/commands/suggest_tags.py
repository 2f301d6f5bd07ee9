"""``suggest-tags`` sub-command."""
from __future__ import annotations

import argparse
import math
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, assert_never

from ..endpoints import endpoint
from ..errors import ValidationError
from ..payloads import build_suggest_tags_params
from ..response import JsonResponse, NormalizedResponse, PngResponse, ZipResponse, normalize_response
from ..runtime import CliRuntime
from .common import print_json

_LABEL_KEYS = ("tag", "text", "label", "name")
_CONFIDENCE_KEYS = ("confidence", "score", "probability")


@dataclass(slots=True)
class TagRow:
    tag: str
    confidence: str = "-"


def _label(entry: Mapping[str, Any]) -> Optional[str]:
    for key in _LABEL_KEYS:
        value = entry.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def _confidence(entry: Mapping[str, Any]) -> str:
    for key in _CONFIDENCE_KEYS:
        value = entry.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value):
            return f"{value:.4f}"
    return "-"


def extract_rows(data: Any) -> List[TagRow]:
    """Pull tag rows out of either a bare list or a ``{"tags": [...]}`` object."""
    if isinstance(data, list):
        source = data
    elif isinstance(data, Mapping) and isinstance(data.get("tags"), list):
        source = data["tags"]
    else:
        source = []

    rows: List[TagRow] = []
    for entry in source:
        if isinstance(entry, str):
            rows.append(TagRow(tag=entry))
        elif isinstance(entry, Mapping):
            label = _label(entry)
            if label:
                rows.append(TagRow(tag=label, confidence=_confidence(entry)))
    return rows


def format_tag_table(rows: List[TagRow]) -> str:
    if not rows:
        return "No tags returned."
    index_width = max(1, len(str(len(rows))))
    tag_width = max(len("Tag"), *(len(row.tag) for row in rows))
    conf_width = max(len("Confidence"), *(len(row.confidence) for row in rows))
    lines = [
        f"{'#':<{index_width}}  {'Tag':<{tag_width}}  {'Confidence':<{conf_width}}",
        f"{'-' * index_width}  {'-' * tag_width}  {'-' * conf_width}",
    ]
    for index, row in enumerate(rows, start=1):
        lines.append(f"{index:<{index_width}}  {row.tag:<{tag_width}}  {row.confidence:<{conf_width}}")
    return "\n".join(lines)


def suggestion_data(response: NormalizedResponse) -> Any:
    if isinstance(response, JsonResponse):
        return response.data
    if isinstance(response, (PngResponse, ZipResponse)):
        raise ValidationError(f"Suggest-tags endpoint returned a non-JSON ({response.kind}) response.")
    assert_never(response)


async def run_suggest_tags(args: argparse.Namespace, runtime: CliRuntime) -> int:
    params = build_suggest_tags_params(args.model or runtime.config.default_model, args.prompt, args.lang)
    target = endpoint("suggest_tags")
    async with runtime.create_client() as client:
        response = await client.get_json(
            target.path, params, base_url=target.host, signal=runtime.cancel_token
        )
    data = suggestion_data(normalize_response(response))

    if args.format == "json":
        print_json(data)
        return 0
    rows = extract_rows(data)
    if not rows:
        print_json(data)
        return 0
    print(format_tag_table(rows))
    return 0


def register(subparsers, parents) -> None:
    parser = subparsers.add_parser("suggest-tags", help="Suggest prompt tags for a model", parents=parents)
    parser.add_argument("--prompt", required=True, help="Prompt text")
    parser.add_argument("--model", help="Model ID from registry")
    parser.add_argument("--lang", choices=("en", "jp"), help="Tag language")
    parser.add_argument("--format", choices=("json", "table"), default="table", help="Output format (default: table)")
    parser.set_defaults(func=run_suggest_tags)


__all__ = ["TagRow", "extract_rows", "format_tag_table", "register", "run_suggest_tags", "suggestion_data"]
