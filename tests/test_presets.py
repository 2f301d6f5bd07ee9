from pathlib import Path

import pytest

from naicli.errors import ValidationError
from naicli.presets import Preset, delete_preset, list_presets, load_preset, parse_preset, save_preset


@pytest.fixture
def env(tmp_path: Path):
    return {"XDG_CONFIG_HOME": str(tmp_path)}


def test_save_load_list_delete(env, tmp_path: Path):
    path = save_preset(Preset(name="portrait", width=832, height=1216, negative="lowres"), env)
    assert path == tmp_path.resolve() / "nai-cli" / "presets" / "portrait.json"
    save_preset(Preset(name="anime", model="nai-diffusion-3"), env)

    assert list_presets(env) == ["anime", "portrait"]
    loaded = load_preset("portrait", env)
    assert loaded.width == 832
    assert loaded.model is None

    delete_preset("anime", env)
    assert list_presets(env) == ["portrait"]


def test_list_without_directory(env):
    assert list_presets(env) == []


def test_invalid_names_are_rejected(env):
    with pytest.raises(ValidationError, match="alphanumeric"):
        save_preset(Preset(name="../evil"), env)


def test_unknown_preset(env):
    with pytest.raises(ValidationError, match="not found"):
        load_preset("missing", env)
    with pytest.raises(ValidationError, match="not found"):
        delete_preset("missing", env)


def test_parse_preset_validation():
    with pytest.raises(ValidationError, match="unknown fields"):
        parse_preset({"name": "x", "colour": "red"}, "x")
    with pytest.raises(ValidationError, match="unknown model"):
        parse_preset({"name": "x", "model": "sdxl"}, "x")
    with pytest.raises(ValidationError, match="positive integer"):
        parse_preset({"name": "x", "steps": 0}, "x")
