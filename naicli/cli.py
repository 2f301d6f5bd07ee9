"""Console entry point for nai-cli."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import traceback
from typing import Mapping, Optional, Sequence

import httpx

from . import __version__
from .cancel import REASON_INTERRUPTED
from .commands import COMMAND_MODULES
from .errors import describe, to_cli_error
from .log import configure_logging
from .runtime import CliRuntime
from .signals import install_interrupt_handlers

log = logging.getLogger(__name__)

EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    # SUPPRESS keeps a sub-command's unset copy from clobbering the top-level value.
    global_parent = argparse.ArgumentParser(add_help=False)
    global_parent.add_argument("--debug", action="store_true", default=argparse.SUPPRESS, help="Enable debug logging")
    global_parent.add_argument("--config", default=argparse.SUPPRESS, help="Path to the config file")

    parser = argparse.ArgumentParser(prog="nai", description="NovelAI image generation client", parents=[global_parent])
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command")
    for module in COMMAND_MODULES:
        module.register(subparsers, [global_parent])
    return parser


async def _dispatch(args: argparse.Namespace, runtime: CliRuntime) -> int:
    restore = install_interrupt_handlers(runtime.cancel_token)
    try:
        return await args.func(args, runtime)
    finally:
        restore()


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    debug = getattr(args, "debug", False)
    configure_logging(debug)

    if not getattr(args, "func", None):
        parser.print_help(sys.stderr)
        return EXIT_USAGE

    runtime = CliRuntime(getattr(args, "config", None), debug=debug, env=env, transport=transport)
    try:
        return asyncio.run(_dispatch(args, runtime))
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        return EXIT_INTERRUPTED
    except Exception as exc:
        error = to_cli_error(exc)
        if debug:
            traceback.print_exception(exc, file=sys.stderr)
        else:
            log.debug("Command failed", exc_info=exc)
        print(describe(error), file=sys.stderr)
        if runtime.cancel_token.reason == REASON_INTERRUPTED:
            return EXIT_INTERRUPTED
        return error.exit_code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
