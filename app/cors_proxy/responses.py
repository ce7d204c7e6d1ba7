from typing import AsyncIterator, Optional

import httpx
from fastapi.responses import Response, StreamingResponse
from starlette.background import BackgroundTask

from app.cors_proxy.headers import (
    build_error_headers,
    build_preflight_headers,
    build_response_headers,
    to_raw_headers,
)

INVALID_URL_MESSAGE = "Invalid or forbidden URL provided."
BAD_GATEWAY_MESSAGE = "Proxy failed to connect to the target server."
UNEXPECTED_ERROR_MESSAGE = "The proxy encountered an unexpected error after all retries."


def error_response(status_code: int, message: str) -> Response:
    response = Response(content=message.encode("utf-8"), status_code=status_code)
    headers = build_error_headers()
    headers["Content-Length"] = str(len(response.body))
    response.raw_headers = to_raw_headers(headers)
    return response


def invalid_url_response() -> Response:
    return error_response(400, INVALID_URL_MESSAGE)


def bad_gateway_response() -> Response:
    return error_response(502, BAD_GATEWAY_MESSAGE)


def unexpected_error_response() -> Response:
    return error_response(500, UNEXPECTED_ERROR_MESSAGE)


def preflight_response(requested_headers: Optional[str]) -> Response:
    """204 answer to a browser preflight; never touches the target."""
    response = Response(status_code=204)
    response.raw_headers = to_raw_headers(build_preflight_headers(requested_headers))
    return response


async def _raw_body(upstream: httpx.Response) -> AsyncIterator[bytes]:
    if upstream.is_stream_consumed:
        # Already buffered by httpx, nothing left to stream
        yield upstream.content
        return
    async for chunk in upstream.aiter_raw():
        yield chunk


def relay_response(
    upstream: httpx.Response, background: Optional[BackgroundTask] = None
) -> StreamingResponse:
    """
    Stream an upstream response back to the caller with rewritten headers.

    The body is relayed as raw bytes so Content-Encoding and Content-Length
    from the target still describe what is sent.
    """
    response = StreamingResponse(
        _raw_body(upstream),
        status_code=upstream.status_code,
        background=background,
    )
    response.raw_headers = to_raw_headers(build_response_headers(upstream.headers))
    return response
