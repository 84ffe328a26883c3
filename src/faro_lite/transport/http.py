"""HTTP transport: POST each envelope to the collector."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Any

import httpx

from ..envelope import Envelope
from .base import SendOutcome, Transport


logger = logging.getLogger(__name__)


@dataclass
class HttpTransport(Transport):
    """
    Best-effort JSON POST to a collector endpoint.

    Any 2xx status is success. Timeouts, connection errors and other
    statuses are failures: logged once at WARNING and returned as a failed
    SendOutcome, never raised.

    Config:
        url: Collector URL (e.g., "http://localhost:4328/collect")
        timeout: Per-request timeout in seconds
        retries: Extra attempts after a failure (default 0)
        retry_backoff_seconds: Base delay before a retry, jittered 50-150%
        headers: Extra request headers
    """
    url: str
    timeout: float = 5.0
    retries: int = 0
    retry_backoff_seconds: float = 0.5
    headers: dict[str, str] = field(default_factory=dict)

    # Optional httpx transport (tests use httpx.MockTransport / ASGITransport)
    http_transport: Any = None

    name: str = field(default="http", init=False)

    _client: httpx.AsyncClient | None = field(default=None, init=False, repr=False)

    async def start(self) -> None:
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            headers={"Content-Type": "application/json", **self.headers},
            transport=self.http_transport,
        )
        logger.info(f"HTTP transport started (url={self.url}, timeout={self.timeout}s)")

    async def stop(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def send(self, envelope: Envelope) -> SendOutcome:
        if self._client is None:
            await self.start()

        body = envelope.to_json()
        attempts = 0
        outcome = SendOutcome.failure("not attempted", attempts=0)

        while attempts <= self.retries:
            if attempts:
                await asyncio.sleep(self._backoff())
            attempts += 1
            outcome = await self._attempt(body, attempts)
            if outcome.ok:
                return outcome
            logger.debug(
                f"Send attempt {attempts} failed for {envelope.type.value} "
                f"envelope: {outcome.error}"
            )

        logger.warning(
            f"Failed to send {envelope.type.value} envelope to {self.url}: "
            f"{outcome.error} (attempts={outcome.attempts})"
        )
        return outcome

    async def _attempt(self, body: bytes, attempts: int) -> SendOutcome:
        try:
            response = await self._client.post(self.url, content=body)
        except httpx.TimeoutException as e:
            return SendOutcome.failure(f"timeout: {e!r}", attempts=attempts)
        except httpx.HTTPError as e:
            return SendOutcome.failure(f"network error: {e!r}", attempts=attempts)

        if response.is_success:
            return SendOutcome.success(response.status_code, attempts=attempts)
        return SendOutcome.failure(
            f"HTTP {response.status_code}",
            status_code=response.status_code,
            attempts=attempts,
        )

    def _backoff(self) -> float:
        return self.retry_backoff_seconds * random.uniform(0.5, 1.5)

    async def health_check(self) -> bool:
        return self._client is not None and not self._client.is_closed
