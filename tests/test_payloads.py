import pytest

from naicli.errors import ValidationError
from naicli.payloads import (
    build_generate_payload,
    build_img2img_payload,
    build_inpaint_payload,
    build_suggest_tags_params,
    build_upscale_payload,
)
from naicli.validate import GenerateParams, validate_generate_params, validate_unit_interval


def _params(**overrides) -> GenerateParams:
    values = dict(
        prompt="1girl, solo",
        model="nai-diffusion-4-5-curated",
        sampler="k_euler_ancestral",
        width=832,
        height=1216,
        steps=28,
        scale=5.0,
        seed=1234,
        output_dir="./outputs",
    )
    values.update(overrides)
    return GenerateParams(**values)


def test_generate_payload_for_v4_model_includes_structured_prompts():
    payload = build_generate_payload(_params(negative_prompt="lowres"))
    assert payload["input"] == "1girl, solo"
    assert payload["action"] == "generate"
    parameters = payload["parameters"]
    assert parameters["negative_prompt"] == "lowres"
    assert parameters["v4_prompt"] == {
        "caption": {"base_caption": "1girl, solo", "char_captions": []},
        "use_coords": False,
        "use_order": True,
    }
    assert parameters["v4_negative_prompt"]["caption"]["base_caption"] == "lowres"


def test_generate_payload_for_v3_model_has_flat_prompt_only():
    payload = build_generate_payload(_params(model="nai-diffusion-3"), n_samples=2)
    parameters = payload["parameters"]
    assert "v4_prompt" not in parameters
    assert "negative_prompt" not in parameters
    assert parameters["n_samples"] == 2
    assert parameters["seed"] == 1234


def test_img2img_and_inpaint_payloads():
    img2img = build_img2img_payload(_params(), "aW1n", 0.6, 0.1)
    assert img2img["action"] == "img2img"
    assert img2img["parameters"]["image"] == "aW1n"
    assert img2img["parameters"]["strength"] == 0.6
    assert img2img["parameters"]["noise"] == 0.1

    inpaint = build_inpaint_payload(_params(), "aW1n", "bWFzaw==", 0.7)
    assert inpaint["action"] == "infill"
    assert inpaint["parameters"]["mask"] == "bWFzaw=="


def test_upscale_and_suggest_tags():
    assert build_upscale_payload("aW1n", 512, 768, 4) == {"image": "aW1n", "width": 512, "height": 768, "scale": 4}
    assert build_suggest_tags_params("nai-diffusion-3", "cat") == {"model": "nai-diffusion-3", "prompt": "cat"}
    assert build_suggest_tags_params("nai-diffusion-3", "cat", "jp")["lang"] == "jp"


def test_validate_strips_and_accepts_valid_params():
    params = validate_generate_params(_params(prompt="  cat  ", negative_prompt="   "))
    assert params.prompt == "cat"
    assert params.negative_prompt is None


def test_validate_collects_all_issues():
    with pytest.raises(ValidationError) as info:
        validate_generate_params(_params(prompt=" ", model="sdxl", seed=-1))
    message = info.value.message
    assert message.startswith("Invalid generate parameters:")
    assert "prompt:" in message
    assert "model:" in message
    assert "seed:" in message


def test_validate_model_constraints():
    with pytest.raises(ValidationError, match="multiple of 64"):
        validate_generate_params(_params(width=833))
    with pytest.raises(ValidationError, match="Steps must be between 1 and 50"):
        validate_generate_params(_params(steps=51))


def test_validate_unit_interval():
    assert validate_unit_interval(0.5, "Strength") == 0.5
    with pytest.raises(ValidationError, match="Strength must be between 0 and 1"):
        validate_unit_interval(1.5, "Strength")
