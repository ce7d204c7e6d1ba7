from typing import Callable

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.cors_proxy import Forwarder, ProxyConfig
from app.cors_proxy.route import router as proxy_router
from app.utils_tests.upstream import RecordingSleep, UpstreamStub


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def make_forwarder(recording_sleep) -> Callable[..., Forwarder]:
    """Build a Forwarder whose upstream is the given stub and whose backoff is recorded."""

    def _make(stub: UpstreamStub, config: ProxyConfig = None) -> Forwarder:
        return Forwarder(
            config or ProxyConfig.create(),
            transport=httpx.MockTransport(stub),
            sleep=recording_sleep,
        )

    return _make


@pytest.fixture
def make_client(make_forwarder) -> Callable[..., TestClient]:
    """TestClient over a bare app with only the proxy route mounted."""

    def _make(stub: UpstreamStub, config: ProxyConfig = None) -> TestClient:
        test_app = FastAPI()
        test_app.state.forwarder = make_forwarder(stub, config)
        test_app.include_router(proxy_router)
        return TestClient(test_app)

    return _make
