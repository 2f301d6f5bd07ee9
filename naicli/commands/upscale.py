"""``upscale`` sub-command."""
from __future__ import annotations

import argparse
from pathlib import Path

from ..endpoints import endpoint
from ..errors import ValidationError
from ..images import load_image_dimensions, load_image_as_base64
from ..output import response_images, write_image
from ..payloads import build_upscale_payload
from ..response import JsonResponse
from ..runtime import CliRuntime
from ..template import sanitize_token
from .common import post_and_normalize, print_json

DEFAULT_UPSCALE_FACTOR = 4


async def run_upscale(args: argparse.Namespace, runtime: CliRuntime) -> int:
    if args.scale <= 0:
        raise ValidationError("scale must be a positive integer.")
    image = load_image_as_base64(args.image)
    dimensions = load_image_dimensions(args.image)
    payload = build_upscale_payload(image.base64, dimensions.width, dimensions.height, args.scale)

    async with runtime.create_client() as client:
        response = await post_and_normalize(client, endpoint("upscale"), payload, runtime)

    if isinstance(response, JsonResponse):
        print_json(response.data)
        return 0

    items = response_images(response)
    if not items:
        raise ValidationError("Upscale response did not contain any image files.")

    output_dir = args.out or runtime.config.default_output_dir
    source = sanitize_token(Path(args.image).stem, fallback="upscaled")
    for index, (data, extension) in enumerate(items, start=1):
        path = write_image(output_dir, f"{source}-upscale-x{args.scale}-img-{index:02d}", data, extension)
        print(path)
    return 0


def register(subparsers, parents) -> None:
    parser = subparsers.add_parser("upscale", help="Upscale an input image", parents=parents)
    parser.add_argument("--image", required=True, help="Input image path")
    parser.add_argument("--scale", type=int, default=DEFAULT_UPSCALE_FACTOR, help="Upscale factor (default: 4)")
    parser.add_argument("--out", help="Output directory")
    parser.set_defaults(func=run_upscale)


__all__ = ["register", "run_upscale"]
