import json
from dataclasses import replace
from pathlib import Path

import pytest

from naicli.config import (
    CONFIG_VERSION,
    NaiCliConfig,
    config_file_path,
    load_config,
    mask_token,
    parse_config,
    save_config,
    update_config,
)
from naicli.errors import ConfigError


def test_load_config_from_file(tmp_path: Path):
    data = {
        "version": CONFIG_VERSION,
        "api_token": "pst-abcdef123456",
        "default_model": "nai-diffusion-3",
        "default_sampler": "k_euler",
        "request_timeout_ms": 30000,
        "max_retries": 5,
        "manifest_enabled": True,
    }
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data))
    loaded = load_config(path, env={})
    assert loaded.source == "file"
    assert loaded.config.default_model == "nai-diffusion-3"
    assert loaded.config.request_timeout_s == 30.0
    assert loaded.config.max_retries == 5
    assert loaded.config.manifest_enabled is True
    assert loaded.config.default_output_dir == "./outputs"


def test_missing_config_uses_defaults(tmp_path: Path):
    loaded = load_config(tmp_path / "absent.json", env={})
    assert loaded.source == "default"
    assert loaded.config == NaiCliConfig()


def test_default_path_follows_xdg(tmp_path: Path):
    path = config_file_path(env={"XDG_CONFIG_HOME": str(tmp_path)})
    assert path == tmp_path.resolve() / "nai-cli" / "config.json"


def test_env_token_overrides_file(tmp_path: Path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"api_token": "from-file"}))
    loaded = load_config(path, env={"NAI_API_TOKEN": "  from-env  "})
    assert loaded.config.api_token == "from-env"


def test_invalid_json_is_config_error(tmp_path: Path):
    path = tmp_path / "config.json"
    path.write_text("{broken")
    with pytest.raises(ConfigError, match="not valid JSON"):
        load_config(path, env={})


@pytest.mark.parametrize(
    "raw, message",
    [
        ([], "must be a JSON object"),
        ({"version": 2}, "Unsupported config version"),
        ({"default_model": "sdxl"}, "Unknown default_model"),
        ({"default_sampler": "plms"}, "Unknown default_sampler"),
        ({"max_retries": 11}, "between 0 and 10"),
        ({"request_timeout_ms": 0}, "at least 1"),
        ({"request_timeout_ms": "fast"}, "Expected integer"),
        ({"manifest_enabled": "yes"}, "Expected boolean"),
        ({"api_token": ""}, "non-empty string"),
    ],
)
def test_parse_config_rejects_invalid_values(raw, message):
    with pytest.raises(ConfigError, match=message):
        parse_config(raw)


def test_save_and_update_round_trip(tmp_path: Path):
    path = tmp_path / "nested" / "config.json"
    save_config(NaiCliConfig(default_output_dir="/tmp/images"), path, env={})
    assert json.loads(path.read_text())["default_output_dir"] == "/tmp/images"

    updated = update_config(lambda current: replace(current, api_token="new-token"), path, env={})
    assert updated.config.api_token == "new-token"
    assert load_config(path, env={}).config.default_output_dir == "/tmp/images"


def test_save_rejects_invalid_config(tmp_path: Path):
    with pytest.raises(ConfigError):
        save_config(NaiCliConfig(max_retries=99), tmp_path / "config.json", env={})


def test_mask_token():
    assert mask_token(None) is None
    assert mask_token("short") == "****"
    assert mask_token("pst-1234567890abcd") == "pst-...abcd"
