"""Payment quoting: allocate, route each leg, compute the fee.

Flow for one inbound payment:

1. Resolve the receiver's strategy allocation (explicit records first,
   then the preference store)
2. Split the amount into one leg per destination
3. Route every leg concurrently through the aggregator
4. Compute the protocol fee from sender/receiver identity and volume
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache

import httpx
import structlog

from payrouter.config import RouterConfig
from payrouter.constants import get_token_decimals
from payrouter.fees import (
    DefaultFeeCalculator,
    FeeCalculator,
    FeeQuote,
    InMemoryParticipantRegistry,
    ReferralBook,
    ReferralReward,
    VolumeRecord,
    VolumeTracker,
)
from payrouter.models.quote import QuoteRequest
from payrouter.models.route import RouteOption, RouteRequest
from payrouter.models.types import is_valid_address
from payrouter.preferences import InMemoryPreferenceStore, PreferenceStore, load_allocation
from payrouter.routing.aggregator import RouteAggregator
from payrouter.routing.registry import build_default_registry
from payrouter.strategies import (
    AllocatedAmount,
    StrategyAllocation,
    StrategyId,
    get_strategy,
    parse_allocation,
    split_amount,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class RouteLeg:
    """One destination's share of a payment and the routes found for it."""

    allocation: StrategyAllocation
    amount: Decimal
    request: RouteRequest
    routes: list[RouteOption]

    @property
    def destination_id(self) -> StrategyId:
        return self.allocation.destination_id


@dataclass(frozen=True)
class PaymentQuote:
    amount: Decimal
    allocations: list[StrategyAllocation]
    legs: list[RouteLeg]
    fee: FeeQuote

    @property
    def has_routes(self) -> bool:
        return any(leg.routes for leg in self.legs)


@dataclass(frozen=True)
class Settlement:
    """Bookkeeping for one settled payment."""

    fee: FeeQuote
    volume: VolumeRecord
    referral: ReferralReward


class PaymentRouter:
    """Facade over the allocator, aggregator and fee engine.

    Args:
        aggregator: Route aggregator used for every leg
        fee_calculator: Fee engine (default schedule if not provided)
        preferences: Receiver preference records
        volume: Volume tracker used when a request carries no monthly volume
        referrals: Referral book credited when payments settle
    """

    def __init__(
        self,
        aggregator: RouteAggregator,
        fee_calculator: FeeCalculator | None = None,
        preferences: PreferenceStore | None = None,
        volume: VolumeTracker | None = None,
        referrals: ReferralBook | None = None,
    ) -> None:
        self.aggregator = aggregator
        self.fee_calculator = fee_calculator or DefaultFeeCalculator()
        self.preferences = preferences if preferences is not None else InMemoryPreferenceStore()
        self.volume = volume if volume is not None else VolumeTracker(self.fee_calculator)
        self.referrals = referrals if referrals is not None else ReferralBook()

    def register_participant(self, identifier: str) -> str:
        """Join the zero-fee network. Registering twice is a no-op.

        Returns:
            The stored (normalized) identifier

        Raises:
            ValueError: If identifier is empty
        """
        participants = self.fee_calculator.participants
        participants.add(identifier)
        stored = participants.get(identifier)
        logger.info("participant_registered", participant=stored, total=participants.count())
        return stored or identifier

    def settle_payment(
        self,
        receiver: str,
        amount: Decimal,
        sender: str | None = None,
        has_funded_gas_allowance: bool = False,
    ) -> Settlement:
        """Book a settled payment: charge the fee, add volume, pay the referrer.

        The fee uses the receiver's volume before this payment is added.
        """
        fee = self.fee_calculator.compute_fee(
            amount,
            self.volume.get_record(receiver).monthly_volume,
            sender,
            receiver,
            has_funded_gas_allowance,
        )
        record = self.volume.record_payment(receiver, amount)
        reward = self.referrals.calculate_reward(receiver, fee.fee_amount)
        if reward.referrer is not None:
            self.referrals.record_earning(receiver, reward.reward)

        logger.info(
            "payment_settled",
            receiver=record.receiver,
            amount=str(amount),
            fee_amount=str(fee.fee_amount),
            tier=record.tier,
            referrer=reward.referrer,
        )
        return Settlement(fee, record, reward)

    async def resolve_allocation(self, request: QuoteRequest) -> list[StrategyAllocation]:
        if request.strategies or request.strategy:
            return parse_allocation(request.strategies, request.strategy)
        return await load_allocation(self.preferences, request.receiver)

    def _leg_request(self, request: QuoteRequest, leg: AllocatedAmount) -> RouteRequest:
        strategy = get_strategy(leg.destination_id)
        to_token = request.to_token or request.from_token
        if strategy.dest_chain is not None:
            to_chain = strategy.dest_chain
            to_token = strategy.dest_token
        else:
            to_chain = request.to_chain or request.from_chain

        to_address = request.receiver_address or request.receiver
        return RouteRequest(
            from_chain=request.from_chain,
            to_chain=to_chain,
            amount=leg.amount,
            from_token=request.from_token,
            to_token=to_token,
            from_address=request.from_address,
            to_address=to_address if is_valid_address(to_address) else None,
            destination=leg.destination_id.value,
            slippage=request.slippage,
            deny_exchanges=tuple(request.deny_exchanges),
        )

    async def _route_leg(
        self,
        request: QuoteRequest,
        allocation: StrategyAllocation,
        leg: AllocatedAmount,
    ) -> RouteLeg:
        leg_request = self._leg_request(request, leg)
        if leg.amount <= 0:
            return RouteLeg(allocation, leg.amount, leg_request, [])
        routes = await self.aggregator.find_routes(
            leg_request, families=request.families, max_fee_usd=request.max_fee_usd
        )
        return RouteLeg(allocation, leg.amount, leg_request, routes)

    def compute_fee(self, request: QuoteRequest) -> FeeQuote:
        monthly_volume = request.monthly_volume
        if monthly_volume is None:
            monthly_volume = self.volume.get_record(request.receiver).monthly_volume
        return self.fee_calculator.compute_fee(
            request.amount,
            monthly_volume,
            request.sender or request.from_address,
            request.receiver,
            request.has_funded_gas_allowance,
        )

    async def quote_payment(self, request: QuoteRequest) -> PaymentQuote:
        """Allocate, route and price one inbound payment.

        Legs whose providers found nothing come back with an empty route
        list; that is a valid quote, not an error.
        """
        allocations = await self.resolve_allocation(request)
        decimals = get_token_decimals(request.from_token, default=6)
        legs = split_amount(request.amount, allocations, decimals)

        routed = await asyncio.gather(
            *(self._route_leg(request, a, leg) for a, leg in zip(allocations, legs))
        )
        fee = self.compute_fee(request)

        logger.info(
            "payment_quoted",
            receiver=request.receiver,
            amount=str(request.amount),
            legs=len(routed),
            routes=sum(len(leg.routes) for leg in routed),
            fee_rate_bps=str(fee.fee_rate_bps),
        )
        return PaymentQuote(request.amount, allocations, list(routed), fee)


@lru_cache(maxsize=1)
def get_default_router() -> PaymentRouter:
    """Process-wide router built from environment configuration.

    Providers share one HTTP client whose timeout matches the provider
    timeout. PAYROUTER_PARTICIPANTS (comma-separated addresses or names)
    seeds the zero-fee network.
    """
    config = RouterConfig.from_env()
    http_client = httpx.AsyncClient(timeout=config.provider_timeout_seconds)
    registry = build_default_registry(http_client, config)
    participants = InMemoryParticipantRegistry(
        p for p in os.environ.get("PAYROUTER_PARTICIPANTS", "").split(",") if p.strip()
    )
    logger.info(
        "router_created",
        providers=registry.namespaces,
        live_cctp_quotes=config.circle_api_key is not None,
        participants=participants.count(),
    )
    return PaymentRouter(
        RouteAggregator(registry, config=config),
        fee_calculator=DefaultFeeCalculator(participants=participants),
    )
