"""NovelAI hosts and endpoint paths."""
from __future__ import annotations

from dataclasses import dataclass

IMAGE_BASE_URL = "https://image.novelai.net"
API_BASE_URL = "https://api.novelai.net"


@dataclass(frozen=True, slots=True)
class Endpoint:
    path: str
    host: str


ENDPOINTS = {
    "generate_image": Endpoint("/ai/generate-image", IMAGE_BASE_URL),
    "generate_image_stream": Endpoint("/ai/generate-image-stream", IMAGE_BASE_URL),
    "suggest_tags": Endpoint("/ai/generate-image/suggest-tags", IMAGE_BASE_URL),
    "augment_image": Endpoint("/ai/augment-image", IMAGE_BASE_URL),
    "encode_vibe": Endpoint("/ai/encode-vibe", IMAGE_BASE_URL),
    "upscale": Endpoint("/ai/upscale", API_BASE_URL),
    "classify": Endpoint("/ai/classify", API_BASE_URL),
    "annotate": Endpoint("/ai/annotate-image", API_BASE_URL),
}


def endpoint(name: str) -> Endpoint:
    try:
        return ENDPOINTS[name]
    except KeyError as exc:
        raise KeyError(f"Unknown endpoint '{name}'") from exc


__all__ = ["API_BASE_URL", "ENDPOINTS", "Endpoint", "IMAGE_BASE_URL", "endpoint"]
