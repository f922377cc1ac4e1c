"""Shared fixtures: a simulated Chapa API behind httpx.MockTransport."""

import httpx
import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import get_chapa_client
from app.services.chapa import ChapaClient
from main import app

CHECKOUT_URL = "https://checkout.chapa.co/checkout/payment/abc123"


class FakeChapa:
    """Records outbound requests and answers with configurable responses."""

    def __init__(self):
        self.requests = []
        self.initialize = lambda request: httpx.Response(
            200,
            json={
                "message": "Hosted Link",
                "status": "success",
                "data": {"checkout_url": CHECKOUT_URL},
            },
        )
        self.verify = lambda request: httpx.Response(
            200,
            json={
                "message": "Payment details",
                "status": "success",
                "data": {"tx_ref": request.url.path.rsplit("/", 1)[-1], "status": "success"},
            },
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/transaction/initialize"):
            return self.initialize(request)
        if "/transaction/verify/" in request.url.path:
            return self.verify(request)
        return httpx.Response(404, json={"message": "Not found"})

    def fail_initialize(self, status_code, body):
        self.initialize = lambda request: httpx.Response(status_code, json=body)

    def fail_verify(self, status_code, body):
        self.verify = lambda request: httpx.Response(status_code, json=body)


@pytest.fixture
def fake_chapa():
    return FakeChapa()


@pytest.fixture
def chapa_client(fake_chapa):
    return ChapaClient(
        secret_key="CHASECK_TEST-secret",
        callback_url="https://relay.test/api/webhook/chapa",
        return_url="https://relay.test/close-webview",
        transport=httpx.MockTransport(fake_chapa),
    )


@pytest.fixture
def client(chapa_client):
    """TestClient wired to the simulated provider."""
    app.dependency_overrides[get_chapa_client] = lambda: chapa_client
    yield TestClient(app)
    app.dependency_overrides.clear()
