"""Request payload builders for the image endpoints."""
from __future__ import annotations

from typing import Any, Dict, Optional

from .models import is_v4_model
from .validate import GenerateParams


def _v4_prompt(prompt: str) -> Dict[str, Any]:
    return {
        "caption": {"base_caption": prompt, "char_captions": []},
        "use_coords": False,
        "use_order": True,
    }


def _v4_negative_prompt(negative_prompt: Optional[str]) -> Dict[str, Any]:
    return {"caption": {"base_caption": negative_prompt or "", "char_captions": []}}


def _envelope(params: GenerateParams, action: str, n_samples: int, extra: Dict[str, Any]) -> Dict[str, Any]:
    parameters: Dict[str, Any] = {
        "prompt": params.prompt,
        "width": params.width,
        "height": params.height,
        "steps": params.steps,
        "scale": params.scale,
        "sampler": params.sampler,
        "seed": params.seed,
        "n_samples": n_samples,
    }
    if params.negative_prompt and params.negative_prompt.strip():
        parameters["negative_prompt"] = params.negative_prompt
    if is_v4_model(params.model):
        # V4 models read the structured captions; the flat fields stay for older servers.
        parameters["v4_prompt"] = _v4_prompt(params.prompt)
        parameters["v4_negative_prompt"] = _v4_negative_prompt(params.negative_prompt)
    parameters.update(extra)
    return {
        "input": params.prompt,
        "model": params.model,
        "action": action,
        "parameters": parameters,
    }


def build_generate_payload(params: GenerateParams, n_samples: int = 1) -> Dict[str, Any]:
    return _envelope(params, "generate", n_samples, {})


def build_img2img_payload(
    params: GenerateParams, image: str, strength: float, noise: float = 0.0, n_samples: int = 1
) -> Dict[str, Any]:
    return _envelope(params, "img2img", n_samples, {"image": image, "strength": strength, "noise": noise})


def build_inpaint_payload(
    params: GenerateParams, image: str, mask: str, strength: float, n_samples: int = 1
) -> Dict[str, Any]:
    return _envelope(params, "infill", n_samples, {"image": image, "mask": mask, "strength": strength})


def build_upscale_payload(image: str, width: int, height: int, scale: int) -> Dict[str, Any]:
    return {"image": image, "width": width, "height": height, "scale": scale}


def build_suggest_tags_params(model: str, prompt: str, lang: Optional[str] = None) -> Dict[str, str]:
    params = {"model": model, "prompt": prompt}
    if lang:
        params["lang"] = lang
    return params


__all__ = [
    "build_generate_payload",
    "build_img2img_payload",
    "build_inpaint_payload",
    "build_suggest_tags_params",
    "build_upscale_payload",
]
