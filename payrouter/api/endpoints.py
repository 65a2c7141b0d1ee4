"""API endpoints for the payment relay."""

from functools import lru_cache

import httpx
import structlog
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from payrouter.fees import (
    FeeCalculator,
    FeeQuote,
    FeeTier,
    ReferralBook,
    ReferralError,
    VolumeTracker,
    participant_pairs,
)
from payrouter.models.quote import (
    AccessRequest,
    FeeRequest,
    FeeResponse,
    LegResponse,
    ParticipantRequest,
    PaymentRequiredResponse,
    QuoteRequest,
    QuoteResponse,
    ReferralRequest,
    SettlementRequest,
    StrategyPreferenceRequest,
)
from payrouter.preferences import STRATEGY_KEY, PreferenceStore, save_allocation
from payrouter.service import PaymentRouter, get_default_router
from payrouter.strategies import (
    StrategyAllocation,
    format_allocation,
    resolve_strategy_id,
    validate_allocation_record,
)
from payrouter.x402 import (
    AmbiguousPaymentRequired,
    PaymentFailed,
    PaymentRequiredClient,
    ResourceAccessError,
)

logger = structlog.get_logger()

router = APIRouter()


def get_router() -> PaymentRouter:
    """Dependency provider for the payment router.

    Override this in tests to inject a router with fake providers:
        app.dependency_overrides[get_router] = lambda: test_router
    """
    return get_default_router()


def get_fee_calculator(payment_router: PaymentRouter = Depends(get_router)) -> FeeCalculator:
    return payment_router.fee_calculator


def get_volume_tracker(payment_router: PaymentRouter = Depends(get_router)) -> VolumeTracker:
    return payment_router.volume


def get_preference_store(payment_router: PaymentRouter = Depends(get_router)) -> PreferenceStore:
    return payment_router.preferences


def get_referral_book(payment_router: PaymentRouter = Depends(get_router)) -> ReferralBook:
    return payment_router.referrals


@lru_cache(maxsize=1)
def _default_payment_client() -> PaymentRequiredClient:
    # The relay holds no wallet, so paid access fails with the requirements echoed
    return PaymentRequiredClient(httpx.AsyncClient(timeout=20.0))


def get_payment_client() -> PaymentRequiredClient:
    """Dependency provider for the 402 client. Override to inject a signer."""
    return _default_payment_client()


def _fee_response(quote: FeeQuote) -> FeeResponse:
    return FeeResponse(
        tier=quote.tier.name,
        fee_rate_bps=f"{quote.fee_rate_bps.normalize():f}",
        fee_percent=quote.fee_percent,
        fee_amount=f"{quote.fee_amount:f}",
        discount_reason=quote.discount_reason.value if quote.discount_reason else None,
        network_discount=f"{quote.network_discount.normalize():f}",
    )


def _tier_summary(tier: FeeTier) -> dict[str, object]:
    return {
        "name": tier.name,
        "minVolume": f"{tier.min_volume:f}",
        "maxVolume": f"{tier.max_volume:f}" if tier.max_volume is not None else None,
        "feeRateBps": f"{tier.fee_rate_bps.normalize():f}",
        "feePercent": tier.fee_percent,
    }


@router.post("/quote", response_model_exclude_none=True)
async def quote(
    request: QuoteRequest,
    payment_router: PaymentRouter = Depends(get_router),
) -> QuoteResponse:
    """Routes and fee for an inbound payment.

    Error Handling:
        - Invalid request schema: 422 (pydantic)
        - No provider has a route: 200 with empty `routes` per leg
        - Anything else: 500 with a generic body
    """
    logger.info(
        "received_quote_request",
        receiver=request.receiver,
        amount=str(request.amount),
        from_chain=request.from_chain,
        to_chain=request.to_chain,
    )
    result = await payment_router.quote_payment(request)

    return QuoteResponse(
        amount=f"{result.amount:f}",
        allocation=format_allocation(result.allocations),
        legs=[
            LegResponse(
                destination=leg.destination_id.value,
                percentage=leg.allocation.percentage,
                amount=f"{leg.amount:f}",
                to_chain=leg.request.to_chain,
                to_token=leg.request.to_token,
                routes=leg.routes,
            )
            for leg in result.legs
        ],
        fee=_fee_response(result.fee),
    )


@router.post("/fee")
async def fee(
    request: FeeRequest,
    calculator: FeeCalculator = Depends(get_fee_calculator),
    volume: VolumeTracker = Depends(get_volume_tracker),
) -> FeeResponse:
    monthly_volume = request.monthly_volume
    if monthly_volume is None and request.receiver:
        monthly_volume = volume.get_record(request.receiver).monthly_volume
    fee_quote = calculator.compute_fee(
        request.amount,
        monthly_volume,
        request.sender,
        request.receiver,
        request.has_funded_gas_allowance,
    )
    return _fee_response(fee_quote)


@router.get("/tiers")
async def tiers(payment_router: PaymentRouter = Depends(get_router)) -> dict[str, object]:
    """The fee tier table and standing incentives."""
    calculator = payment_router.fee_calculator
    return {
        "tiers": [_tier_summary(t) for t in calculator.tiers],
        "yieldShareRate": f"{(calculator.yield_share_rate * 100).normalize():f}%",
        "gasAllowanceBonus": "Fee waived when the receiver funds a gas allowance",
    }


@router.get("/tier")
async def tier(
    receiver: str,
    calculator: FeeCalculator = Depends(get_fee_calculator),
    volume: VolumeTracker = Depends(get_volume_tracker),
) -> dict[str, object]:
    """A receiver's current tier, volume and progress to the next tier."""
    record = volume.get_record(receiver)
    progress = calculator.next_tier_progress(record.monthly_volume)
    return {
        "receiver": record.receiver,
        "tier": _tier_summary(progress.current_tier),
        "volume": {
            "monthly": f"{record.monthly_volume:f}",
            "total": f"{record.total_volume:f}",
            "paymentCount": record.payment_count,
        },
        "progress": {
            "nextTier": progress.next_tier.name if progress.next_tier else None,
            "volumeRemaining": f"{progress.volume_remaining:f}",
            "percentComplete": f"{progress.percent_complete:f}",
        },
    }


@router.get("/network")
async def network(calculator: FeeCalculator = Depends(get_fee_calculator)) -> dict[str, int]:
    """Registered participants and the zero-fee routes between them."""
    participants = calculator.participants
    return {
        "participants": participants.count(),
        "zeroFeePairs": participant_pairs(participants),
    }


@router.post("/participants")
async def register_participant(
    request: ParticipantRequest,
    payment_router: PaymentRouter = Depends(get_router),
) -> dict[str, object]:
    """Join the zero-fee network."""
    try:
        participant = payment_router.register_participant(request.identifier)
    except ValueError as err:
        raise HTTPException(status_code=400, detail=str(err)) from err
    participants = payment_router.fee_calculator.participants
    return {
        "participant": participant,
        "participants": participants.count(),
        "zeroFeePairs": participant_pairs(participants),
    }


@router.post("/payments/settled")
async def settle_payment(
    request: SettlementRequest,
    payment_router: PaymentRouter = Depends(get_router),
) -> dict[str, object]:
    """Book a settled payment against the receiver's volume and referrer."""
    settlement = payment_router.settle_payment(
        request.receiver,
        request.amount,
        request.sender,
        request.has_funded_gas_allowance,
    )
    record = settlement.volume
    reward = settlement.referral
    return {
        "receiver": record.receiver,
        "fee": _fee_response(settlement.fee).model_dump(by_alias=True, exclude_none=True),
        "volume": {
            "monthly": f"{record.monthly_volume:f}",
            "total": f"{record.total_volume:f}",
            "paymentCount": record.payment_count,
            "tier": record.tier,
        },
        "referral": {
            "referrer": reward.referrer,
            "reward": f"{reward.reward:f}",
            "netProtocolFee": f"{reward.net_protocol_fee:f}",
        },
    }


@router.get("/leaderboard")
async def leaderboard(
    limit: int = 10,
    volume: VolumeTracker = Depends(get_volume_tracker),
) -> dict[str, object]:
    """Receivers ranked by monthly volume."""
    return {
        "receivers": [
            {
                "receiver": record.receiver,
                "monthlyVolume": f"{record.monthly_volume:f}",
                "tier": record.tier,
            }
            for record in volume.leaderboard(limit)
        ]
    }


@router.post("/referrals")
async def register_referral(
    request: ReferralRequest,
    referrals: ReferralBook = Depends(get_referral_book),
) -> dict[str, str]:
    """Record who referred a receiver. Each receiver has one referrer."""
    try:
        referral = referrals.register(request.referrer, request.referred)
    except ReferralError as err:
        raise HTTPException(status_code=400, detail=str(err)) from err
    return {
        "referrer": referral.referrer,
        "referred": referral.referred,
        "expiresAt": referral.expires_at.isoformat(),
    }


@router.get("/referrals/{referrer}")
async def referral_stats(
    referrer: str,
    referrals: ReferralBook = Depends(get_referral_book),
) -> dict[str, object]:
    stats = referrals.stats(referrer)
    return {
        "referrer": stats.referrer,
        "totalReferrals": stats.total_referrals,
        "activeReferrals": stats.active_referrals,
        "totalEarned": f"{stats.total_earned:f}",
        "feeShare": f"{(referrals.fee_share * 100).normalize():f}%",
    }


@router.post("/access")
async def access(
    request: AccessRequest,
    client: PaymentRequiredClient = Depends(get_payment_client),
) -> JSONResponse:
    """Fetch a gated resource, paying for it if the server asks.

    Error Handling:
        - Payment required but unpayable: 402 with the requirements echoed
        - 402 without parsable requirements or unreachable resource: 502
    """
    try:
        result = await client.fetch(request.url, request.wallet_address)
    except PaymentFailed as err:
        body = PaymentRequiredResponse(error=err.reason, payment=err.details)
        return JSONResponse(status_code=402, content=body.model_dump())
    except AmbiguousPaymentRequired as err:
        logger.warning("access_ambiguous_payment_required", url=request.url)
        return JSONResponse(status_code=502, content={"detail": err.detail})
    except ResourceAccessError as err:
        logger.warning("access_resource_unreachable", url=request.url, detail=err.detail)
        return JSONResponse(status_code=502, content={"detail": err.detail})

    return JSONResponse(
        status_code=200,
        content={
            "state": result.state.value,
            "status": result.status_code,
            "data": result.data,
        },
    )


@router.post("/preferences/strategies")
async def set_strategies(
    request: StrategyPreferenceRequest,
    store: PreferenceStore = Depends(get_preference_store),
) -> dict[str, str]:
    """Store a receiver's strategy allocation.

    `strategies` must already be valid and sum to 100; nothing is rescaled
    on write. A lone `strategy` is stored as a 100% allocation.
    """
    if request.strategies:
        try:
            allocations = validate_allocation_record(request.strategies)
        except ValueError as err:
            raise HTTPException(status_code=400, detail=str(err)) from err
    elif request.strategy:
        destination_id = resolve_strategy_id(request.strategy)
        if destination_id is None:
            raise HTTPException(status_code=400, detail=f"Invalid strategy: {request.strategy}")
        allocations = [StrategyAllocation(destination_id, 100)]
        await store.set_record(request.receiver, STRATEGY_KEY, destination_id.value)
    else:
        raise HTTPException(status_code=400, detail="One of strategies or strategy is required")

    record = await save_allocation(store, request.receiver, allocations)
    return {"receiver": request.receiver, "strategies": record}
