"""Runtime wiring for a single CLI invocation."""
from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Mapping, Optional

import httpx

from .cancel import CancelToken
from .client import NovelAIClient
from .config import LoadedConfig, NaiCliConfig, load_config
from .errors import ConfigError
from .log import configure_logging

log = logging.getLogger(__name__)


class CliRuntime:
    """Holds the loaded configuration, the cancel token and the clock.

    The config file is read on first use so commands that never touch it
    (``preset list`` for instance) do not fail on a broken config file.
    """

    def __init__(
        self,
        config_path: Optional[str | os.PathLike[str]] = None,
        *,
        debug: bool = False,
        env: Optional[Mapping[str, str]] = None,
        now: Optional[Callable[[], datetime]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._config_path = config_path
        self._debug_flag = debug
        self._env = env
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._transport = transport
        self._loaded: Optional[LoadedConfig] = None
        self.cancel_token = CancelToken()

    @property
    def env(self) -> Optional[Mapping[str, str]]:
        return self._env

    @property
    def config_path_override(self) -> Optional[str | os.PathLike[str]]:
        return self._config_path

    @property
    def loaded(self) -> LoadedConfig:
        if self._loaded is None:
            self._loaded = load_config(self._config_path, self._env)
            if self._loaded.config.debug and not self._debug_flag:
                configure_logging(True)
            log.debug("Loaded config from %s (%s)", self._loaded.config_path, self._loaded.source)
        return self._loaded

    @property
    def config(self) -> NaiCliConfig:
        return self.loaded.config

    @property
    def config_path(self) -> Path:
        return self.loaded.config_path

    @property
    def debug(self) -> bool:
        return self._debug_flag or self.config.debug

    def now(self) -> datetime:
        return self._now()

    def require_token(self) -> str:
        token = self.config.api_token
        if not token:
            raise ConfigError(
                "API token is not configured. Set it with 'nai config set-token <TOKEN>'."
            )
        return token

    def create_client(self) -> NovelAIClient:
        config = self.config
        return NovelAIClient(
            self.require_token(),
            timeout_s=config.request_timeout_s,
            max_retries=config.max_retries,
            transport=self._transport,
        )


__all__ = ["CliRuntime"]
