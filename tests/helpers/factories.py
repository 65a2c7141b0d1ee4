"""Factory functions and fakes for creating test objects.

Usage:
    from tests.helpers import make_route_request, FakeProvider

    request = make_route_request(from_chain="base", to_chain="arbitrum")
    provider = FakeProvider(routes=[make_route("fake-0", fee="$1.00")])
"""

import asyncio
import json
from decimal import Decimal

import httpx

from payrouter.models.payment import PROOF_HEADER, REQUIREMENTS_HEADER
from payrouter.models.quote import QuoteRequest
from payrouter.models.route import RouteOption, RouteRequest, RouteType
from payrouter.routing.providers.base import ProviderError, RoutingFamily
from tests.helpers.constants import PAYER, PAYMENT, RECEIVER


def make_route_request(
    from_chain: str = "base",
    to_chain: str = "arbitrum",
    amount: str | int | Decimal = "100",
    from_token: str = "USDC",
    to_token: str = "USDC",
    from_address: str | None = PAYER,
    to_address: str | None = RECEIVER,
    destination: str | None = None,
    **kwargs,
) -> RouteRequest:
    """Create a routing request with sensible defaults.

    Defaults to 100 USDC from Base to Arbitrum.
    """
    return RouteRequest(
        from_chain=from_chain,
        to_chain=to_chain,
        amount=amount,
        from_token=from_token,
        to_token=to_token,
        from_address=from_address,
        to_address=to_address,
        destination=destination,
        **kwargs,
    )


def make_quote_request(
    amount: str | int = "100",
    from_chain: str = "base",
    to_chain: str | None = "arbitrum",
    receiver: str = RECEIVER,
    **kwargs,
) -> QuoteRequest:
    """Create a quote request; extra fields are passed through by name."""
    return QuoteRequest(
        amount=amount,
        from_chain=from_chain,
        to_chain=to_chain,
        receiver=receiver,
        from_address=kwargs.pop("from_address", PAYER),
        **kwargs,
    )


def make_route(
    route_id: str = "route-0",
    fee: str = "$1.00",
    provider: str = "Fake",
    path: str = "USDC -> USDC",
    estimated_time: str = "1 min",
) -> RouteOption:
    """Create a route option with a given display fee and provider label."""
    return RouteOption(
        id=route_id,
        path=path,
        fee=fee,
        estimated_time=estimated_time,
        provider=provider,
        route_type=RouteType.STANDARD,
    )


class FakeProvider:
    """Route provider with scripted behavior and a call counter.

    Usage:
        # Always return the same routes
        provider = FakeProvider(routes=[make_route()])

        # Always fail upstream
        provider = FakeProvider(error="HTTP 500")

        # Never answer within the aggregator timeout
        provider = FakeProvider(delay=10)
    """

    def __init__(
        self,
        namespace: str = "fake",
        routes: list[RouteOption] | None = None,
        family: RoutingFamily = RoutingFamily.AGGREGATOR,
        error: str | None = None,
        exception: Exception | None = None,
        delay: float = 0,
        name: str | None = None,
    ) -> None:
        self.namespace = namespace
        self.name = name or namespace.title()
        self.family = family
        self.routes = routes or []
        self.error = error
        self.exception = exception
        self.delay = delay
        self.calls: list[RouteRequest] = []  # Track calls for assertions

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def find_routes(self, request: RouteRequest) -> list[RouteOption]:
        self.calls.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exception is not None:
            raise self.exception
        if self.error is not None:
            raise ProviderError(self.name, self.error)
        return list(self.routes)


class FakeSigner:
    """Payment signer that records payments and returns a fixed reference.

    Usage:
        signer = FakeSigner(reference="0xabc")
        signer = FakeSigner(exception=RuntimeError("insufficient funds"))
    """

    def __init__(
        self,
        reference: str = "0x" + "ab" * 32,
        exception: BaseException | None = None,
    ) -> None:
        self.reference = reference
        self.exception = exception
        self.payments: list[tuple[str, Decimal, str, str]] = []

    async def send_payment(self, recipient: str, amount: Decimal, token: str, chain: str) -> str:
        self.payments.append((recipient, amount, token, chain))
        if self.exception is not None:
            raise self.exception
        return self.reference


class GatedResource:
    """MockTransport handler for a resource that wants PAYMENT before serving.

    /status is always free; any other path answers 402 until a proof
    header is presented.

    Usage:
        handler = GatedResource(requirements_in="header")
        client = PaymentRequiredClient(httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    """

    def __init__(self, accept_proof: bool = True, requirements_in: str = "body") -> None:
        self.accept_proof = accept_proof
        self.requirements_in = requirements_in
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/status":
            return httpx.Response(200, json={"ok": True})
        if PROOF_HEADER in request.headers:
            if self.accept_proof:
                return httpx.Response(200, json={"report": "contents"})
            return httpx.Response(403, json={"error": "proof rejected"})
        if self.requirements_in == "header":
            return httpx.Response(402, headers={REQUIREMENTS_HEADER: json.dumps(PAYMENT)}, text="pay up")
        if self.requirements_in == "none":
            return httpx.Response(402, json={"error": "Payment required"})
        return httpx.Response(402, json={"error": "Payment required", "payment": PAYMENT})
