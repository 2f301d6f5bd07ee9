"""Signal handling utilities."""
from __future__ import annotations

import asyncio
import logging
import signal
from typing import Callable

from .cancel import REASON_INTERRUPTED, CancelToken

log = logging.getLogger(__name__)


def install_interrupt_handlers(token: CancelToken) -> Callable[[], None]:
    """Cancel ``token`` on SIGINT/SIGTERM; returns a function restoring the defaults."""
    loop = asyncio.get_running_loop()
    installed = []

    def _handler(signame: str) -> None:
        log.info("%s received; cancelling in-flight request", signame)
        token.cancel(REASON_INTERRUPTED)

    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, _handler, signum.name)
        except (NotImplementedError, RuntimeError):  # pragma: no cover - Windows
            continue
        installed.append(signum)

    def _restore() -> None:
        for signum in installed:
            loop.remove_signal_handler(signum)

    return _restore


__all__ = ["install_interrupt_handlers"]
