"""
Forwarding engine for the CORS proxy.

One forward operation runs a small state machine:

    Attempting(i) -> Success
                  -> Retry -> Backoff(i) -> Attempting(i + 1)
                  -> TerminalFailure      (transport error on the last attempt, 502)
                  -> Exhausted            (5xx on the last attempt, relayed as-is)

and, when no attempt ran at all, an unexpected terminal state (500).
Every method is retried on 5xx, including non-idempotent ones, so a flaky
target can see a POST more than once.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import httpx
from fastapi import Request
from fastapi.responses import Response
from opentelemetry import trace
from starlette.background import BackgroundTask

from app.cors_proxy.config import ProxyConfig
from app.cors_proxy.headers import prepare_forward_headers
from app.cors_proxy.responses import (
    bad_gateway_response,
    relay_response,
    unexpected_error_response,
)
from app.cors_proxy.url_validator import TargetURL
from app.utils import redact_url
from app.utils.traced_requests import traced_request

logger = logging.getLogger("uvicorn.error")
tracer = trace.get_tracer(__name__)


class Step(enum.Enum):
    SUCCESS = "success"
    RETRY = "retry"
    TERMINAL_FAILURE = "terminal_failure"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class ProxyAttempt:
    """Outcome of one attempt: exactly one of response or error is set."""

    index: int
    response: Optional[httpx.Response] = None
    error: Optional[httpx.RequestError] = None

    @property
    def status_code(self) -> Optional[int]:
        return self.response.status_code if self.response is not None else None


def next_step(attempt: ProxyAttempt, retry_count: int) -> Step:
    if attempt.response is not None and attempt.response.status_code < 500:
        return Step.SUCCESS
    if attempt.index < retry_count - 1:
        return Step.RETRY
    if attempt.error is not None:
        return Step.TERMINAL_FAILURE
    return Step.EXHAUSTED


def backoff_delay(attempt_index: int, base_delay_ms: int) -> float:
    """Seconds to wait after a failed attempt: base * 2^index, no jitter."""
    return base_delay_ms * (2**attempt_index) / 1000.0


async def _close_upstream(response: httpx.Response, client: httpx.AsyncClient) -> None:
    await response.aclose()
    await client.aclose()


class Forwarder:
    """Sends one inbound request to a validated target, retrying per ProxyConfig."""

    def __init__(
        self,
        config: ProxyConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.config = config
        self.transport = transport
        self.sleep = sleep

    def _create_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.config.timeout),
            follow_redirects=True,
            transport=self.transport,
        )

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        method: str,
        target: TargetURL,
        headers: httpx.Headers,
        body: bytes,
        index: int,
    ) -> ProxyAttempt:
        request = client.build_request(
            method, target.url, headers=headers, content=body or None
        )
        try:
            response = await client.send(request, stream=True)
        except httpx.RequestError as e:
            logger.warning(
                f"[Proxy] Attempt {index + 1} failed: {type(e).__name__}: {e}"
            )
            return ProxyAttempt(index=index, error=e)
        return ProxyAttempt(index=index, response=response)

    async def run_attempts(
        self,
        client: httpx.AsyncClient,
        method: str,
        target: TargetURL,
        headers: httpx.Headers,
        body: bytes,
    ) -> Optional[ProxyAttempt]:
        """
        Drive the retry loop and return the deciding attempt.

        Returns None only when the retry budget allows no attempt at all.
        """
        retry_count = self.config.retry_count
        for index in range(retry_count):
            attempt = await self._attempt(client, method, target, headers, body, index)
            step = next_step(attempt, retry_count)
            if step is not Step.RETRY:
                return attempt

            if attempt.response is not None:
                logger.warning(
                    f"[Proxy] Attempt {index + 1} got {attempt.response.status_code} "
                    f"from {redact_url(target.url)}, retrying"
                )
                await attempt.response.aclose()
            await self.sleep(backoff_delay(index, self.config.retry_delay_ms))
        return None

    async def forward(self, request: Request, target: TargetURL) -> Response:
        body = await request.body()
        headers = prepare_forward_headers(request.headers, target.origin)
        client = self._create_client()

        with traced_request(
            tracer,
            operation="proxy_request",
            method=request.method,
            target_url=target.url,
            extra_attrs={"proxy.retry_count": self.config.retry_count},
        ) as span:
            try:
                attempt = await self.run_attempts(
                    client, request.method, target, headers, body
                )
            except BaseException:
                await client.aclose()
                raise

            if attempt is None:
                await client.aclose()
                logger.error(
                    f"[Proxy] No response from {redact_url(target.url)} after all retries"
                )
                span.set_attribute("proxy.error", "no_response")
                return unexpected_error_response()

            span.set_attribute("proxy.attempts", attempt.index + 1)

            if attempt.error is not None:
                await client.aclose()
                logger.error(
                    f"[Proxy] Giving up on {redact_url(target.url)} after "
                    f"{attempt.index + 1} attempts: {attempt.error}"
                )
                span.set_attribute("proxy.error", type(attempt.error).__name__)
                return bad_gateway_response()

            span.set_attribute("proxy.status_code", attempt.response.status_code)
            return relay_response(
                attempt.response,
                background=BackgroundTask(_close_upstream, attempt.response, client),
            )
