"""Sub-command implementations for the ``nai`` CLI."""
from __future__ import annotations

from . import batch, config, generate, preset, suggest_tags, upscale

COMMAND_MODULES = (generate, upscale, suggest_tags, batch, preset, config)

__all__ = ["COMMAND_MODULES"]
