"""Unit tests for API error handling and request limits."""

import pytest
from fastapi.testclient import TestClient

from payrouter import __version__
from payrouter.api.endpoints import get_router
from payrouter.api.main import app
from tests.helpers import RECEIVER


@pytest.fixture
def client(payment_router):
    app.dependency_overrides[get_router] = lambda: payment_router
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


class TestUnhandledErrors:
    def test_router_exception_returns_generic_500(self, client):
        """Unmapped failures return 500 without leaking the exception."""

        class ExplodingRouter:
            async def quote_payment(self, _request):
                raise RuntimeError("Boom! secret internals")

        app.dependency_overrides[get_router] = lambda: ExplodingRouter()

        response = client.post(
            "/quote", json={"amount": "1", "fromChain": "base", "receiver": RECEIVER}
        )

        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}


class TestInvalidRequests:
    @pytest.mark.parametrize(
        "body",
        [
            {"fromChain": "base", "receiver": RECEIVER},
            {"amount": "-1", "fromChain": "base", "receiver": RECEIVER},
            {"amount": "abc", "fromChain": "base", "receiver": RECEIVER},
            {"amount": "1", "receiver": RECEIVER},
            {"amount": "1", "fromChain": "base", "receiver": RECEIVER, "slippage": 2},
            {"amount": "1", "fromChain": "base", "receiver": RECEIVER, "families": ["bogus"]},
        ],
    )
    def test_invalid_quote_returns_422(self, client, body):
        assert client.post("/quote", json=body).status_code == 422

    def test_negative_fee_amount_returns_422(self, client):
        assert client.post("/fee", json={"amount": "-10"}).status_code == 422

    def test_tier_requires_receiver(self, client):
        assert client.get("/tier").status_code == 422


class TestRequestSizeLimits:
    def test_oversized_request_returns_413(self, client):
        response = client.post(
            "/quote",
            json={"amount": "1", "fromChain": "base", "receiver": RECEIVER},
            headers={"Content-Length": str(20 * 1024 * 1024)},
        )
        assert response.status_code == 413
        assert response.json()["detail"] == "Request too large"


class TestHealthEndpoint:
    def test_health_returns_ok(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "version": __version__}
