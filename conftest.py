# Ensure tests import modules from this service directory first, so
# `import accelerator.*` works without an installed package.
import os
import sys

import httpx
import pytest

SERVICE_ROOT = os.path.dirname(__file__)

if SERVICE_ROOT not in sys.path:
    sys.path.insert(0, SERVICE_ROOT)


class FakeUpstream:
    """
    Programmable stand-in for a Tendermint RPC node behind httpx.MockTransport.

    Tests set ``height``, ``catching_up``, ``error`` or ``rpc_handler`` and inspect
    ``requests`` to count what reached upstream.
    """

    def __init__(self):
        self.height = "100"
        self.catching_up = False
        self.status_code = 200
        self.rpc_handler = None
        self.error = None
        self.requests: list[httpx.Request] = []

    def rpc_requests(self) -> list[httpx.Request]:
        return [
            r for r in self.requests if r.url.path not in ("/status", "/blockchain")
        ]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if request.url.path == "/status":
            return httpx.Response(
                self.status_code,
                json={"result": {"sync_info": {"catching_up": self.catching_up}}},
            )
        if request.url.path == "/blockchain":
            return httpx.Response(
                self.status_code, json={"result": {"last_height": self.height}}
            )
        if self.rpc_handler is not None:
            return self.rpc_handler(request)
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": -1, "result": {}})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@pytest.fixture
def fake_upstream():
    return FakeUpstream()
