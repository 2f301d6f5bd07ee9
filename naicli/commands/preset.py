"""``preset`` sub-commands."""
from __future__ import annotations

import argparse

from ..presets import Preset, delete_preset, list_presets, load_preset, save_preset, validate_preset_name
from ..runtime import CliRuntime
from .common import print_json


async def run_save(args: argparse.Namespace, runtime: CliRuntime) -> int:
    validate_preset_name(args.name)
    preset = Preset(
        name=args.name,
        model=args.model,
        sampler=args.sampler,
        width=args.width,
        height=args.height,
        steps=args.steps,
        scale=args.scale,
        negative=args.negative,
        output_dir=args.out,
        output_template=args.output_template,
    )
    path = save_preset(preset, runtime.env)
    print(f"Preset '{args.name}' saved to {path}")
    return 0


async def run_list(args: argparse.Namespace, runtime: CliRuntime) -> int:
    names = list_presets(runtime.env)
    if not names:
        print("No presets found.")
        return 0
    for name in names:
        print(name)
    return 0


async def run_show(args: argparse.Namespace, runtime: CliRuntime) -> int:
    print_json(load_preset(args.name, runtime.env).to_dict())
    return 0


async def run_delete(args: argparse.Namespace, runtime: CliRuntime) -> int:
    delete_preset(args.name, runtime.env)
    print(f"Preset '{args.name}' deleted.")
    return 0


def register(subparsers, parents) -> None:
    preset_parser = subparsers.add_parser("preset", help="Manage generation presets", parents=parents)
    preset_commands = preset_parser.add_subparsers(dest="preset_command", required=True)

    save_parser = preset_commands.add_parser("save", help="Save a preset", parents=parents)
    save_parser.add_argument("name", help="Preset name")
    save_parser.add_argument("--model", help="Model ID")
    save_parser.add_argument("--sampler", help="Sampler ID")
    save_parser.add_argument("--width", type=int, help="Image width")
    save_parser.add_argument("--height", type=int, help="Image height")
    save_parser.add_argument("--steps", type=int, help="Sampling steps")
    save_parser.add_argument("--scale", type=float, help="CFG scale")
    save_parser.add_argument("--negative", help="Negative prompt")
    save_parser.add_argument("--out", help="Output directory")
    save_parser.add_argument("--output-template", help="Output filename template")
    save_parser.set_defaults(func=run_save)

    list_parser = preset_commands.add_parser("list", help="List available presets", parents=parents)
    list_parser.set_defaults(func=run_list)

    show_parser = preset_commands.add_parser("show", help="Show preset contents", parents=parents)
    show_parser.add_argument("name", help="Preset name")
    show_parser.set_defaults(func=run_show)

    delete_parser = preset_commands.add_parser("delete", help="Delete a preset", parents=parents)
    delete_parser.add_argument("name", help="Preset name")
    delete_parser.set_defaults(func=run_delete)


__all__ = ["register", "run_delete", "run_list", "run_save", "run_show"]
