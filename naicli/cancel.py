"""Cooperative cancellation tokens for in-flight requests."""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Optional, TypeVar

T = TypeVar("T")

REASON_CANCELLED = "cancelled"
REASON_TIMEOUT = "timeout"
REASON_INTERRUPTED = "interrupted"


class OperationCancelled(Exception):
    """Raised by :meth:`CancelToken.guard` when the token fires first."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class CancelToken:
    """One-shot cancellation flag that awaiting code can race against.

    Tokens can be combined with :meth:`any_of`; the combined token fires as
    soon as any of its sources does and reports that source's reason.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: Optional[str] = None
        self._listeners: List[Callable[[str], None]] = []
        self._detach: List[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: str = REASON_CANCELLED) -> None:
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            listener(reason)

    def add_listener(self, listener: Callable[[str], None]) -> Callable[[], None]:
        """Call ``listener`` on cancellation; returns a function that detaches it."""
        if self.cancelled:
            listener(self._reason or REASON_CANCELLED)
            return lambda: None
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def cancel_after(self, delay_s: float, reason: str = REASON_TIMEOUT) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(delay_s, self.cancel, reason)

    @classmethod
    def any_of(cls, *tokens: Optional["CancelToken"]) -> "CancelToken":
        combined = cls()
        for token in tokens:
            if token is None:
                continue
            combined._detach.append(token.add_listener(combined.cancel))
        return combined

    def close(self) -> None:
        """Detach a combined token from its sources."""
        detach, self._detach = self._detach, []
        for remove in detach:
            remove()

    def __enter__(self) -> "CancelToken":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    async def wait(self) -> str:
        await self._event.wait()
        return self._reason or REASON_CANCELLED

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token fires first.

        When the token wins, the pending work is cancelled and
        :class:`OperationCancelled` is raised with the token's reason.
        """
        if self.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise OperationCancelled(self._reason or REASON_CANCELLED)

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()

        if task in done:
            return task.result()
        await asyncio.wait({task})
        if not task.cancelled():
            task.exception()
        raise OperationCancelled(self._reason or REASON_CANCELLED)


__all__ = ["CancelToken", "OperationCancelled", "REASON_CANCELLED", "REASON_INTERRUPTED", "REASON_TIMEOUT"]
