import httpx

from app.cors_proxy.headers import (
    ALLOWED_METHODS,
    DEFAULT_ALLOWED_HEADERS,
    SECURITY_HEADERS,
    build_error_headers,
    build_preflight_headers,
    build_response_headers,
    exposed_header_names,
    prepare_forward_headers,
    to_raw_headers,
)


class TestPrepareForwardHeaders:
    """Test the headers sent on to the target."""

    def test_copies_inbound_headers(self):
        result = prepare_forward_headers(
            {
                "user-agent": "test-agent",
                "accept": "application/json",
                "authorization": "Bearer token123",
            },
            "https://api.example.com",
        )

        assert result["user-agent"] == "test-agent"
        assert result["accept"] == "application/json"
        assert result["authorization"] == "Bearer token123"

    def test_host_and_referer_removed(self):
        result = prepare_forward_headers(
            {
                "host": "proxy.example.net",
                "referer": "https://proxy.example.net/page",
                "x-custom": "1",
            },
            "https://api.example.com",
        )

        assert "host" not in result
        assert "referer" not in result
        assert result["x-custom"] == "1"

    def test_hop_by_hop_and_length_removed(self):
        result = prepare_forward_headers(
            {
                "connection": "keep-alive",
                "transfer-encoding": "chunked",
                "upgrade": "websocket",
                "content-length": "12",
                "content-type": "application/json",
            },
            "https://api.example.com",
        )

        assert "connection" not in result
        assert "transfer-encoding" not in result
        assert "upgrade" not in result
        assert "content-length" not in result
        assert result["content-type"] == "application/json"

    def test_origin_replaced_with_target_origin(self):
        result = prepare_forward_headers(
            {"Origin": "http://localhost:3000"}, "https://api.example.com:8443"
        )

        assert result.get_list("origin") == ["https://api.example.com:8443"]

    def test_repeated_headers_preserved(self):
        incoming = httpx.Headers([("x-tag", "a"), ("x-tag", "b")])

        result = prepare_forward_headers(incoming, "https://api.example.com")

        assert result.get_list("x-tag") == ["a", "b"]


class TestBuildResponseHeaders:
    """Test the rewrite applied to upstream response headers."""

    def test_upstream_headers_kept(self):
        result = build_response_headers(
            {"content-type": "application/json", "x-request-id": "abc"}
        )

        assert result["content-type"] == "application/json"
        assert result["x-request-id"] == "abc"

    def test_security_headers_override_upstream(self):
        result = build_response_headers(
            {"X-Frame-Options": "SAMEORIGIN", "Content-Security-Policy": "default-src *"}
        )

        assert result.get_list("x-frame-options") == ["DENY"]
        assert result["content-security-policy"] == SECURITY_HEADERS["Content-Security-Policy"]
        for name, value in SECURITY_HEADERS.items():
            assert result[name] == value

    def test_cors_headers_override_upstream(self):
        result = build_response_headers(
            {
                "Access-Control-Allow-Origin": "https://only-me.example.com",
                "Access-Control-Allow-Methods": "GET",
            }
        )

        assert result.get_list("access-control-allow-origin") == ["*"]
        assert result["access-control-allow-methods"] == ALLOWED_METHODS

    def test_expose_headers_lists_every_upstream_name(self):
        upstream = httpx.Headers(
            [
                ("Content-Type", "text/plain"),
                ("X-RateLimit-Remaining", "10"),
                ("Set-Cookie", "a=1"),
                ("Set-Cookie", "b=2"),
            ]
        )

        result = build_response_headers(upstream)

        exposed = [n.strip() for n in result["access-control-expose-headers"].split(",")]
        assert exposed == ["content-type", "x-ratelimit-remaining", "set-cookie"]

    def test_multiple_set_cookie_values_survive(self):
        upstream = httpx.Headers([("set-cookie", "a=1"), ("set-cookie", "b=2")])

        result = build_response_headers(upstream)

        assert result.get_list("set-cookie") == ["a=1", "b=2"]

    def test_hop_by_hop_not_relayed(self):
        result = build_response_headers(
            {"transfer-encoding": "chunked", "connection": "close", "etag": "x"}
        )

        assert "transfer-encoding" not in result
        assert "connection" not in result
        assert result["etag"] == "x"

    def test_empty_upstream(self):
        assert exposed_header_names({}) == ""
        result = build_response_headers({})
        assert result["access-control-expose-headers"] == ""
        assert result["access-control-allow-origin"] == "*"


class TestPreflightAndErrorHeaders:
    def test_preflight_echoes_requested_headers(self):
        result = build_preflight_headers("X-Custom")

        assert result["access-control-allow-headers"] == "X-Custom"
        assert result["access-control-allow-origin"] == "*"
        assert result["access-control-allow-methods"] == ALLOWED_METHODS

    def test_preflight_default_allowed_headers(self):
        assert (
            build_preflight_headers(None)["access-control-allow-headers"]
            == DEFAULT_ALLOWED_HEADERS
        )
        assert build_preflight_headers("")["access-control-allow-headers"] == (
            "Content-Type, Authorization, X-Requested-With"
        )

    def test_error_headers(self):
        result = build_error_headers()

        assert result["content-type"] == "text/plain"
        assert result["access-control-allow-origin"] == "*"
        for name, value in SECURITY_HEADERS.items():
            assert result[name] == value

    def test_raw_headers_keep_repeats(self):
        raw = to_raw_headers(httpx.Headers([("Set-Cookie", "a=1"), ("Set-Cookie", "b=2")]))

        assert raw == [(b"set-cookie", b"a=1"), (b"set-cookie", b"b=2")]
