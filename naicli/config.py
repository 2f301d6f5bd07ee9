"""Configuration loading and validation for nai-cli."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

from .errors import ConfigError
from .models import DEFAULT_MODEL, DEFAULT_SAMPLER, is_model_id, is_sampler_id

log = logging.getLogger(__name__)

CONFIG_VERSION = 1
CONFIG_DIR_NAME = "nai-cli"
CONFIG_FILE_NAME = "config.json"
TOKEN_ENV_VAR = "NAI_API_TOKEN"


@dataclass(slots=True)
class NaiCliConfig:
    """Persisted client settings

    ``api_token`` may be overridden from the environment at load time; the
    override is never written back by :func:`save_config` unless the caller
    explicitly stores it."""

    version: int = CONFIG_VERSION
    api_token: Optional[str] = None
    default_model: str = DEFAULT_MODEL
    default_sampler: str = DEFAULT_SAMPLER
    default_output_dir: str = "./outputs"
    default_output_template: Optional[str] = None
    request_timeout_ms: int = 60_000
    max_retries: int = 3
    manifest_enabled: bool = False
    debug: bool = False

    @property
    def request_timeout_s(self) -> float:
        return self.request_timeout_ms / 1000


@dataclass(slots=True)
class LoadedConfig:
    config: NaiCliConfig
    config_path: Path
    source: str


def config_dir(env: Optional[Mapping[str, str]] = None) -> Path:
    env = os.environ if env is None else env
    xdg_home = env.get("XDG_CONFIG_HOME")
    base = Path(xdg_home).resolve() if xdg_home else Path.home() / ".config"
    return base / CONFIG_DIR_NAME


def config_file_path(path: Optional[str | os.PathLike[str]] = None, env: Optional[Mapping[str, str]] = None) -> Path:
    if path:
        return Path(path).resolve()
    return config_dir(env) / CONFIG_FILE_NAME


def _expect_int(raw: Mapping[str, Any], key: str, default: int, *, minimum: int, maximum: Optional[int] = None) -> int:
    value = raw.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"Expected integer for '{key}'")
    if value < minimum or (maximum is not None and value > maximum):
        bound = f"between {minimum} and {maximum}" if maximum is not None else f"at least {minimum}"
        raise ConfigError(f"'{key}' must be {bound}")
    return value


def _expect_str(raw: Mapping[str, Any], key: str, default: Optional[str], *, nullable: bool = False) -> Optional[str]:
    value = raw.get(key, default)
    if value is None:
        if nullable:
            return None
        raise ConfigError(f"Missing field '{key}'")
    if not isinstance(value, str) or not value:
        raise ConfigError(f"Expected non-empty string for '{key}'")
    return value


def _expect_bool(raw: Mapping[str, Any], key: str, default: bool) -> bool:
    value = raw.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"Expected boolean for '{key}'")
    return value


def parse_config(raw: Any, ctx: str = "config") -> NaiCliConfig:
    if not isinstance(raw, Mapping):
        raise ConfigError(f"Config at '{ctx}' must be a JSON object")

    defaults = NaiCliConfig()
    version = raw.get("version", CONFIG_VERSION)
    if version != CONFIG_VERSION:
        raise ConfigError(f"Unsupported config version {version!r} in '{ctx}'")

    model = _expect_str(raw, "default_model", defaults.default_model)
    if not is_model_id(model):
        raise ConfigError(f"Unknown default_model '{model}' in '{ctx}'")
    sampler = _expect_str(raw, "default_sampler", defaults.default_sampler)
    if not is_sampler_id(sampler):
        raise ConfigError(f"Unknown default_sampler '{sampler}' in '{ctx}'")

    return NaiCliConfig(
        version=CONFIG_VERSION,
        api_token=_expect_str(raw, "api_token", None, nullable=True),
        default_model=model,
        default_sampler=sampler,
        default_output_dir=_expect_str(raw, "default_output_dir", defaults.default_output_dir),
        default_output_template=_expect_str(raw, "default_output_template", None, nullable=True),
        request_timeout_ms=_expect_int(raw, "request_timeout_ms", defaults.request_timeout_ms, minimum=1),
        max_retries=_expect_int(raw, "max_retries", defaults.max_retries, minimum=0, maximum=10),
        manifest_enabled=_expect_bool(raw, "manifest_enabled", defaults.manifest_enabled),
        debug=_expect_bool(raw, "debug", defaults.debug),
    )


def _apply_env_overrides(config: NaiCliConfig, env: Mapping[str, str]) -> NaiCliConfig:
    token = (env.get(TOKEN_ENV_VAR) or "").strip()
    if not token:
        return config
    return replace(config, api_token=token)


def load_config(path: Optional[str | os.PathLike[str]] = None, env: Optional[Mapping[str, str]] = None) -> LoadedConfig:
    env = os.environ if env is None else env
    config_path = config_file_path(path, env)
    try:
        raw = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        log.debug("No config file at %s; using defaults", config_path)
        return LoadedConfig(_apply_env_overrides(NaiCliConfig(), env), config_path, "default")
    except OSError as exc:
        raise ConfigError(f"Unable to read config at '{config_path}': {exc}") from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config at '{config_path}' is not valid JSON: {exc}") from exc

    config = parse_config(data, str(config_path))
    return LoadedConfig(_apply_env_overrides(config, env), config_path, "file")


def save_config(config: NaiCliConfig, path: Optional[str | os.PathLike[str]] = None, env: Optional[Mapping[str, str]] = None) -> Path:
    config_path = config_file_path(path, env)
    data = asdict(config)
    parse_config(data, str(config_path))
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to write config at '{config_path}': {exc}") from exc
    return config_path


def update_config(
    updater: Callable[[NaiCliConfig], NaiCliConfig],
    path: Optional[str | os.PathLike[str]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> LoadedConfig:
    loaded = load_config(path, env)
    updated = updater(loaded.config)
    save_config(updated, loaded.config_path, env)
    return LoadedConfig(updated, loaded.config_path, "file")


def mask_token(token: Optional[str]) -> Optional[str]:
    """Mask an API token for safe display."""
    if not token:
        return None
    if len(token) <= 8:
        return "****"
    return f"{token[:4]}...{token[-4:]}"


__all__ = [
    "CONFIG_VERSION",
    "LoadedConfig",
    "NaiCliConfig",
    "TOKEN_ENV_VAR",
    "config_dir",
    "config_file_path",
    "load_config",
    "mask_token",
    "parse_config",
    "save_config",
    "update_config",
]
