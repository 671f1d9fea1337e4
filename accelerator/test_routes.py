import httpx
import pytest
from fastapi.testclient import TestClient

from accelerator.models import ServerOptions
from accelerator.queries import UpstreamQueryError
from accelerator.server import create_app


@pytest.fixture
def app(fake_upstream):
    options = ServerOptions(
        server="rpc.test:26657", port=5384, height_check_interval_ms=600000
    )
    return create_app(options, transport=fake_upstream.transport())


def test_is_synced_when_caught_up(app, fake_upstream):
    with TestClient(app) as client:
        response = client.get("/is-synced")

    assert response.status_code == 200
    assert response.content == b""
    assert str(fake_upstream.requests[-1].url) == "http://rpc.test:26657/status"


def test_is_synced_while_catching_up(app, fake_upstream):
    with TestClient(app) as client:
        fake_upstream.catching_up = True
        response = client.get("/is-synced")

    assert response.status_code == 503
    assert response.content == b""


def test_is_synced_upstream_unreachable(app, fake_upstream):
    with TestClient(app) as client:
        fake_upstream.error = httpx.ConnectError("Connection refused")
        response = client.get("/is-synced")

    assert response.status_code == 502
    assert response.text == "Failed to retrieve RPC status"


def test_is_synced_is_never_cached(app, fake_upstream):
    with TestClient(app) as client:
        assert client.get("/is-synced").status_code == 200
        fake_upstream.catching_up = True
        assert client.get("/is-synced").status_code == 503

    status_calls = [r for r in fake_upstream.requests if r.url.path == "/status"]
    # One startup check plus one per request
    assert len(status_calls) == 3


def test_startup_fails_when_upstream_unreachable(app, fake_upstream):
    fake_upstream.error = httpx.ConnectError("Connection refused")

    with pytest.raises(UpstreamQueryError):
        with TestClient(app):
            pass


def test_lifespan_starts_and_stops_poller(app):
    with TestClient(app):
        assert app.state.height_poller.is_running is True

    assert app.state.height_poller.is_running is False
    assert app.state.http_client.is_closed is True


def test_metrics_are_served_locally(app, fake_upstream):
    with TestClient(app) as client:
        response = client.get("/metrics")

    assert response.status_code == 200
    assert "cosmos_accelerator_cache_hits_total" in response.text
    assert fake_upstream.rpc_requests() == []
