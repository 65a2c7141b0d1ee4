"""Pytest configuration and fixtures."""

import json
from collections.abc import Callable

import httpx
import pytest

from payrouter.config import RouterConfig
from payrouter.fees import DefaultFeeCalculator, InMemoryParticipantRegistry, VolumeTracker
from payrouter.preferences import InMemoryPreferenceStore
from payrouter.routing import ProviderRegistry, ResultCache, RouteAggregator
from payrouter.service import PaymentRouter
from tests.helpers import FakeProvider, make_route

# =============================================================================
# HTTP mocking
# =============================================================================

Handler = Callable[[httpx.Request], httpx.Response]


def mock_http_client(handler: Handler) -> httpx.AsyncClient:
    """An AsyncClient whose requests are answered by `handler`.

    Usage:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"routes": []})

        client = mock_http_client(handler)
    """
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class RecordingHandler:
    """MockTransport handler that replays canned responses and records requests.

    Usage:
        handler = RecordingHandler({"/advanced/routes": httpx.Response(200, json=...)})
        client = mock_http_client(handler)
        ...
        assert handler.requests[0].url.path == "/v1/advanced/routes"
    """

    def __init__(self, responses: dict[str, httpx.Response] | None = None) -> None:
        self.responses = responses or {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for suffix, response in self.responses.items():
            if request.url.path.endswith(suffix):
                return response
        return httpx.Response(404, json={"message": "not mocked"})

    def json_body(self, index: int = 0) -> dict:
        return json.loads(self.requests[index].content)


# =============================================================================
# Routing fixtures
# =============================================================================


@pytest.fixture
def fast_config() -> RouterConfig:
    """Config with a short provider timeout for timeout tests."""
    return RouterConfig(provider_timeout_seconds=0.05, cache_ttl_seconds=30)


@pytest.fixture
def cheap_provider() -> FakeProvider:
    return FakeProvider("cheap", routes=[make_route("cheap-0", fee="$0.10", provider="Cheap")])


@pytest.fixture
def pricey_provider() -> FakeProvider:
    return FakeProvider("pricey", routes=[make_route("pricey-0", fee="$2.50", provider="Pricey")])


@pytest.fixture
def registry(cheap_provider: FakeProvider, pricey_provider: FakeProvider) -> ProviderRegistry:
    """Registry with two fake providers that always answer."""
    registry = ProviderRegistry()
    registry.register(pricey_provider)
    registry.register(cheap_provider)
    return registry


@pytest.fixture
def aggregator(registry: ProviderRegistry, fast_config: RouterConfig) -> RouteAggregator:
    return RouteAggregator(registry, cache=ResultCache(30), config=fast_config)


# =============================================================================
# Service fixtures
# =============================================================================


@pytest.fixture
def participants() -> InMemoryParticipantRegistry:
    return InMemoryParticipantRegistry()


@pytest.fixture
def fee_calculator(participants: InMemoryParticipantRegistry) -> DefaultFeeCalculator:
    return DefaultFeeCalculator(participants=participants)


@pytest.fixture
def payment_router(
    aggregator: RouteAggregator, fee_calculator: DefaultFeeCalculator
) -> PaymentRouter:
    """A router over fake providers with fresh in-memory stores."""
    return PaymentRouter(
        aggregator,
        fee_calculator=fee_calculator,
        preferences=InMemoryPreferenceStore(),
        volume=VolumeTracker(fee_calculator),
    )
