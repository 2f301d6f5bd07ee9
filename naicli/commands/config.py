"""``config`` sub-commands."""
from __future__ import annotations

import argparse
from dataclasses import asdict, replace

from ..config import load_config, mask_token, update_config
from ..errors import ConfigError
from ..runtime import CliRuntime
from .common import print_json


async def run_set_token(args: argparse.Namespace, runtime: CliRuntime) -> int:
    token = args.token.strip()
    if not token:
        raise ConfigError("Token cannot be empty.")
    updated = update_config(
        lambda current: replace(current, api_token=token),
        runtime.config_path_override,
        runtime.env,
    )
    print(f"Token saved in '{updated.config_path}'.")
    return 0


async def run_show(args: argparse.Namespace, runtime: CliRuntime) -> int:
    loaded = load_config(runtime.config_path_override, runtime.env)
    visible = asdict(loaded.config)
    visible["api_token"] = mask_token(loaded.config.api_token)
    print_json(visible)
    print(f"config_path: {loaded.config_path}")
    print(f"source: {loaded.source}")
    return 0


async def run_validate(args: argparse.Namespace, runtime: CliRuntime) -> int:
    loaded = load_config(runtime.config_path_override, runtime.env)
    if not loaded.config.api_token:
        raise ConfigError(
            "Config is valid but api_token is missing. Set it with 'nai config set-token <TOKEN>'."
        )
    print(f"Config is valid: {loaded.config_path}")
    return 0


def register(subparsers, parents) -> None:
    config_parser = subparsers.add_parser("config", help="Manage local nai-cli configuration", parents=parents)
    config_commands = config_parser.add_subparsers(dest="config_command", required=True)

    token_parser = config_commands.add_parser("set-token", help="Store the API token", parents=parents)
    token_parser.add_argument("token", help="NovelAI bearer token")
    token_parser.set_defaults(func=run_set_token)

    show_parser = config_commands.add_parser("show", help="Show effective config (token is masked)", parents=parents)
    show_parser.set_defaults(func=run_show)

    validate_parser = config_commands.add_parser("validate", help="Validate config and required auth settings", parents=parents)
    validate_parser.set_defaults(func=run_validate)


__all__ = ["register", "run_set_token", "run_show", "run_validate"]
