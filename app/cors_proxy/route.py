import logging

from fastapi import APIRouter, Request
from fastapi.responses import Response

from app.cors_proxy.forwarder import Forwarder
from app.cors_proxy.responses import (
    invalid_url_response,
    preflight_response,
    unexpected_error_response,
)
from app.cors_proxy.url_validator import validate_target_url
from app.utils import redact_url

router = APIRouter()
logger = logging.getLogger("uvicorn.error")

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def get_forwarder(request: Request) -> Forwarder:
    """The forwarder is built once at startup and stored on the app state."""
    return request.app.state.forwarder


@router.api_route("/proxy", methods=PROXY_METHODS)
async def proxy(request: Request) -> Response:
    """Forward the request to the `url` query parameter with CORS headers rewritten."""
    if request.method == "OPTIONS":
        return preflight_response(request.headers.get("access-control-request-headers"))

    forwarder = get_forwarder(request)
    candidate = request.query_params.get("url")
    target = validate_target_url(candidate, forwarder.config.allowed_hosts)
    if target is None:
        logger.info(
            f"[Proxy] Rejected target URL: {redact_url(candidate) if candidate else '<missing>'}"
        )
        return invalid_url_response()

    try:
        return await forwarder.forward(request, target)
    except Exception as e:
        logger.error(
            f"[Proxy] Unexpected error forwarding to {redact_url(target.url)}: {e}",
            exc_info=True,
        )
        return unexpected_error_response()
