"""Direct transfer provider: same token on the same chain needs no conversion."""

from __future__ import annotations

from payrouter.models.route import RouteOption, RouteRequest, RouteType
from payrouter.routing.providers.base import BaseProvider, RoutingFamily


class DirectTransferProvider(BaseProvider):
    """Offers a plain transfer when source and destination already match.

    Legs headed for a vault or restaking destination still need a
    deposit step, so only liquid (or unspecified) destinations qualify.
    """

    name = "Direct Transfer"
    namespace = "direct"
    family = RoutingFamily.DIRECT

    async def find_routes(self, request: RouteRequest) -> list[RouteOption]:
        if request.is_cross_chain or not request.is_same_token:
            return []
        if request.destination not in (None, "liquid"):
            return []

        token = request.from_token.upper()
        return [
            self._route(
                "direct-transfer",
                f"{token} -> {token}",
                "$0.00",
                "< 1 min",
                RouteType.STANDARD,
            )
        ]


__all__ = ["DirectTransferProvider"]
