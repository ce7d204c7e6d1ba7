import pytest
from fastapi.testclient import TestClient

from app.cors_proxy import Forwarder


@pytest.fixture(scope="module")
def test_client():
    from app.server import app

    with TestClient(app) as client:
        yield client


def test_forwarder_built_at_startup(test_client):
    assert isinstance(test_client.app.state.forwarder, Forwarder)


def test_health_under_base_path(test_client):
    from app.vars import PROXY_BASE_PATH

    r = test_client.get(f"{PROXY_BASE_PATH}/health")

    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_proxy_rejects_invalid_target(test_client):
    from app.vars import PROXY_BASE_PATH

    r = test_client.get(f"{PROXY_BASE_PATH}/proxy", params={"url": "http://localhost/"})

    assert r.status_code == 400
    assert r.text == "Invalid or forbidden URL provided."


def test_metrics_exposed(test_client):
    r = test_client.get("/metrics")

    assert r.status_code == 200
    assert "fastapi_app_info" in r.text
