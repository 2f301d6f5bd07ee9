"""HTTP client for the NovelAI API with bounded retries and cancellation.

One logical request runs its attempts strictly one after another. Each
attempt races the transport against a token that fires on either the
per-attempt timeout or the caller's cancel token. Status 429 and 503 as well
as transport failures are retried with exponential backoff (or the server's
``Retry-After``); any other non-2xx status is terminal.
"""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

import httpx

from .cancel import CancelToken, OperationCancelled
from .endpoints import IMAGE_BASE_URL
from .errors import ApiError, NetworkError

log = logging.getLogger(__name__)

RETRYABLE_STATUSES = frozenset({429, 503})
BACKOFF_BASE_MS = 300
BACKOFF_CAP_MS = 5_000
RETRY_AFTER_CAP_MS = 30_000

DEFAULT_TIMEOUT_S = 60.0
DEFAULT_MAX_RETRIES = 3

SleepFunc = Callable[[float], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class RetryDecision:
    should_retry: bool
    delay_ms: int = 0


def parse_retry_after_ms(value: Optional[str], now: Optional[datetime] = None) -> Optional[int]:
    """Interpret a ``Retry-After`` header as seconds or an HTTP date.

    Returns ``None`` when the header is absent or unparseable so the caller
    can fall back to exponential backoff.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None

    # delta-seconds is digits only.
    if value.isascii() and value.isdigit():
        return int(value) * 1000

    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if retry_at is None:
        return None
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=timezone.utc)
    current = now or datetime.now(timezone.utc)
    return max(0, int((retry_at - current).total_seconds() * 1000))


def backoff_ms(attempt: int, response: Optional[httpx.Response] = None) -> int:
    if response is not None:
        retry_after = parse_retry_after_ms(response.headers.get("retry-after"))
        if retry_after is not None:
            return min(RETRY_AFTER_CAP_MS, retry_after)
    return min(BACKOFF_CAP_MS, BACKOFF_BASE_MS * 2 ** attempt)


def is_retryable_status(status: int) -> bool:
    return status in RETRYABLE_STATUSES


def decide_retry(
    attempt: int, max_retries: int, response: Optional[httpx.Response] = None
) -> RetryDecision:
    """Decide whether a failed attempt is retried and after how long.

    ``response`` is ``None`` for transport failures (including timeouts).
    """
    if attempt >= max_retries:
        return RetryDecision(should_retry=False)
    if response is not None and not is_retryable_status(response.status_code):
        return RetryDecision(should_retry=False)
    return RetryDecision(should_retry=True, delay_ms=backoff_ms(attempt, response))


def read_error_payload(response: httpx.Response) -> Optional[Dict[str, Any]]:
    text = response.text
    if not text:
        return None
    try:
        parsed = json.loads(text)
    except ValueError:
        # Some endpoints answer errors with text/plain.
        return {"message": text}
    if isinstance(parsed, dict):
        return parsed
    return {"message": text}


def resolve_error_message(status: int, payload: Optional[Mapping[str, Any]]) -> str:
    if payload:
        for key in ("message", "error", "detail"):
            candidate = payload.get(key)
            if isinstance(candidate, str):
                return candidate
    return f"NovelAI request failed with status {status}."


def _network_error(exc: BaseException, timeout_s: float, endpoint: str) -> NetworkError:
    if isinstance(exc, (OperationCancelled, httpx.TimeoutException)):
        return NetworkError(f"Request to '{endpoint}' timed out after {int(timeout_s * 1000)}ms.")
    detail = str(exc)
    if detail:
        return NetworkError(f"Network request to '{endpoint}' failed: {detail}")
    return NetworkError(f"Network request to '{endpoint}' failed.")


class NovelAIClient:
    """Async client holding read-only connection settings.

    The client keeps no per-request state, so one instance may serve many
    concurrent logical requests.
    """

    def __init__(
        self,
        token: str,
        *,
        base_url: str = IMAGE_BASE_URL,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        max_retries: int = DEFAULT_MAX_RETRIES,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        if not token:
            raise ValueError("NovelAI client requires a token")
        if timeout_s <= 0:
            raise ValueError("timeout_s must be positive")
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")
        self._token = token
        self._base_url = base_url
        self._timeout_s = timeout_s
        self._max_retries = max_retries
        self._sleep = sleep
        # Attempt deadlines come from the cancel token, not from httpx.
        self._http = httpx.AsyncClient(transport=transport, timeout=None)

    @property
    def max_retries(self) -> int:
        return self._max_retries

    @property
    def timeout_s(self) -> float:
        return self._timeout_s

    async def __aenter__(self) -> "NovelAIClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def build_url(
        self,
        endpoint: str,
        params: Optional[Mapping[str, str]] = None,
        base_url: Optional[str] = None,
    ) -> httpx.URL:
        url = httpx.URL(base_url or self._base_url).join(endpoint)
        if params:
            url = url.copy_merge_params(dict(params))
        return url

    async def post_json(
        self,
        endpoint: str,
        body: Any,
        *,
        base_url: Optional[str] = None,
        signal: Optional[CancelToken] = None,
    ) -> httpx.Response:
        return await self.send("POST", endpoint, json_body=body, base_url=base_url, signal=signal)

    async def get_json(
        self,
        endpoint: str,
        params: Optional[Mapping[str, str]] = None,
        *,
        base_url: Optional[str] = None,
        signal: Optional[CancelToken] = None,
    ) -> httpx.Response:
        return await self.send("GET", endpoint, params=params, base_url=base_url, signal=signal)

    async def send(
        self,
        method: str,
        endpoint: str,
        *,
        json_body: Any = None,
        params: Optional[Mapping[str, str]] = None,
        base_url: Optional[str] = None,
        signal: Optional[CancelToken] = None,
    ) -> httpx.Response:
        """Send one logical request, retrying transient failures.

        Returns the first 2xx response. Raises :class:`ApiError` for a
        terminal failure status and :class:`NetworkError` for transport
        failures once retries are exhausted, or as soon as ``signal`` fires.
        """
        method = method.upper()
        url = self.build_url(endpoint, params, base_url)

        for attempt in range(self._max_retries + 1):
            if signal is not None and signal.cancelled:
                raise NetworkError(f"Request to '{endpoint}' was aborted.")

            response: Optional[httpx.Response] = None
            failure: Optional[BaseException] = None
            timer = CancelToken()
            handle = timer.cancel_after(self._timeout_s)
            try:
                with CancelToken.any_of(timer, signal) as attempt_token:
                    response = await attempt_token.guard(self._request(method, url, json_body))
            except OperationCancelled as exc:
                if signal is not None and signal.cancelled:
                    raise NetworkError(f"Request to '{endpoint}' was aborted.") from exc
                failure = exc
            except httpx.RequestError as exc:
                failure = exc
            finally:
                handle.cancel()

            if response is not None:
                if response.is_success:
                    return response
                decision = decide_retry(attempt, self._max_retries, response)
                if not decision.should_retry:
                    payload = read_error_payload(response)
                    raise ApiError(
                        resolve_error_message(response.status_code, payload),
                        status=response.status_code,
                        endpoint=endpoint,
                        payload=payload,
                    )
                log.debug(
                    "Retrying %s %s after status %d (attempt %d/%d) in %dms",
                    method,
                    endpoint,
                    response.status_code,
                    attempt + 1,
                    self._max_retries,
                    decision.delay_ms,
                )
            else:
                decision = decide_retry(attempt, self._max_retries)
                if not decision.should_retry:
                    raise _network_error(failure, self._timeout_s, endpoint) from failure
                log.debug(
                    "Retrying %s %s after network error %r (attempt %d/%d) in %dms",
                    method,
                    endpoint,
                    failure,
                    attempt + 1,
                    self._max_retries,
                    decision.delay_ms,
                )

            await self._pause(decision.delay_ms, endpoint, signal)

        raise NetworkError(f"Request to '{endpoint}' exhausted retries.")

    async def _request(self, method: str, url: httpx.URL, json_body: Any) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self._token}", "Accept": "*/*"}
        if method == "POST":
            return await self._http.request(method, url, headers=headers, json=json_body)
        return await self._http.request(method, url, headers=headers)

    async def _pause(self, delay_ms: int, endpoint: str, signal: Optional[CancelToken]) -> None:
        pause = self._sleep(delay_ms / 1000)
        if signal is None:
            await pause
            return
        try:
            await signal.guard(pause)
        except OperationCancelled as exc:
            raise NetworkError(f"Request to '{endpoint}' was aborted.") from exc


__all__ = [
    "NovelAIClient",
    "RetryDecision",
    "backoff_ms",
    "decide_retry",
    "is_retryable_status",
    "parse_retry_after_ms",
    "read_error_payload",
    "resolve_error_message",
]
