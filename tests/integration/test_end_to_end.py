"""
End-to-end flow: app startup runs the polling loop against a mock upstream
and /data reflects the first fetch.
"""
import gzip
import json
import time

import httpx
from fastapi.testclient import TestClient

from pollproxy.main import create_app


def _wait_for_status(client, deadline=5.0):
    end = time.monotonic() + deadline
    while time.monotonic() < end:
        data = client.get("/data").json()
        if data["status"] != "no_data":
            return data
        time.sleep(0.02)
    raise AssertionError("no fetch completed before the deadline")


class TestEndToEnd:
    """Startup fetch through the lifespan-managed scheduler"""

    def test_startup_fetch_serves_gzip_payload(self, registry, mock_upstream):
        body = gzip.compress(json.dumps({"price": 1.23}).encode())
        app = create_app(registry=registry, transport=mock_upstream(body, encoding="gzip"))

        with TestClient(app) as client:
            data = _wait_for_status(client)
            assert app.state.scheduler.running

        assert data["data"] == {"price": 1.23}
        assert data["error"] is None
        assert data["status"] == "success"
        assert not app.state.scheduler.running

    def test_startup_fetch_with_malformed_json(self, registry, mock_upstream):
        app = create_app(registry=registry, transport=mock_upstream(b"<!DOCTYPE html>"))

        with TestClient(app) as client:
            data = _wait_for_status(client)

        assert data["status"] == "error"
        assert "parse" in data["error"]
        assert data["data"] is None

    def test_unreachable_upstream_does_not_break_serving(self, registry):
        def handler(request):
            raise httpx.ConnectError("Name or service not known", request=request)

        app = create_app(registry=registry, transport=httpx.MockTransport(handler))

        with TestClient(app) as client:
            data = _wait_for_status(client)
            health = client.get("/health").json()

        assert data["status"] == "error"
        assert data["errorKind"] == "transport"
        assert health["status"] == "ok"
