"""
Header handling for the CORS proxy.

Headers are kept in ``httpx.Headers`` so multi-valued entries (Set-Cookie)
survive the copy. Assignment replaces every existing value for a name, which
gives the override order upstream -> security -> CORS.
"""

from typing import Iterable, List, Mapping, Optional, Tuple, Union

import httpx

ALLOWED_METHODS = "GET, POST, PUT, PATCH, DELETE, OPTIONS"
DEFAULT_ALLOWED_HEADERS = "Content-Type, Authorization, X-Requested-With"

SECURITY_HEADERS = {
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none';",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains; preload",
    "Referrer-Policy": "no-referrer",
}

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": ALLOWED_METHODS,
}

# Hop-by-hop headers describe a single connection and are never relayed (RFC 2616)
HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
}

# Identify the proxy rather than the target; content-length is recomputed by httpx
STRIPPED_REQUEST_HEADERS = {"host", "referer", "content-length"}

HeaderSource = Union[httpx.Headers, Mapping[str, str], Iterable[Tuple[str, str]]]


def _copy(source: HeaderSource, skip: Iterable[str] = ()) -> httpx.Headers:
    headers = httpx.Headers(source)
    skipped = set(skip)
    return httpx.Headers(
        [(k, v) for k, v in headers.multi_items() if k.lower() not in skipped]
    )


def _set_all(headers: httpx.Headers, values: Mapping[str, str]) -> None:
    for name, value in values.items():
        headers[name] = value


def prepare_forward_headers(incoming: HeaderSource, origin: str) -> httpx.Headers:
    """
    Build the headers sent to the target.

    Every inbound header is copied except Host, Referer, Content-Length and
    hop-by-hop headers; Origin is set to the target's own origin.
    """
    headers = _copy(incoming, skip=STRIPPED_REQUEST_HEADERS | HOP_BY_HOP_HEADERS)
    headers["Origin"] = origin
    return headers


def exposed_header_names(upstream: HeaderSource) -> str:
    """Comma-joined, de-duplicated header names in first-seen order."""
    names: List[str] = []
    seen = set()
    for name, _ in httpx.Headers(upstream).multi_items():
        lowered = name.lower()
        if lowered not in seen:
            seen.add(lowered)
            names.append(name)
    return ", ".join(names)


def build_response_headers(upstream: HeaderSource) -> httpx.Headers:
    """Upstream headers, then security headers, then CORS headers, then the expose list."""
    headers = _copy(upstream, skip=HOP_BY_HOP_HEADERS)
    _set_all(headers, SECURITY_HEADERS)
    _set_all(headers, CORS_HEADERS)
    headers["Access-Control-Expose-Headers"] = exposed_header_names(upstream)
    return headers


def build_preflight_headers(requested_headers: Optional[str]) -> httpx.Headers:
    headers = httpx.Headers(CORS_HEADERS)
    _set_all(headers, SECURITY_HEADERS)
    headers["Access-Control-Allow-Headers"] = requested_headers or DEFAULT_ALLOWED_HEADERS
    return headers


def build_error_headers() -> httpx.Headers:
    headers = httpx.Headers(
        {"Content-Type": "text/plain", "Access-Control-Allow-Origin": "*"}
    )
    _set_all(headers, SECURITY_HEADERS)
    return headers


def to_raw_headers(headers: httpx.Headers) -> List[Tuple[bytes, bytes]]:
    """Convert to the ASGI raw header list, keeping repeated names."""
    return [
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in headers.multi_items()
    ]
