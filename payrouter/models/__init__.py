"""Pydantic models for payrouter data structures."""

from payrouter.models.payment import PaymentDetails, PaymentProof, ProofV1, ProofV2
from payrouter.models.quote import (
    AccessRequest,
    FeeRequest,
    ParticipantRequest,
    QuoteRequest,
    QuoteResponse,
    ReferralRequest,
    SettlementRequest,
    StrategyPreferenceRequest,
)
from payrouter.models.route import RouteOption, RouteRequest, RouteType
from payrouter.models.types import Amount

__all__ = [
    # Types
    "Amount",
    # Routing
    "RouteOption",
    "RouteRequest",
    "RouteType",
    # Payment-required protocol
    "PaymentDetails",
    "PaymentProof",
    "ProofV1",
    "ProofV2",
    # API
    "QuoteRequest",
    "QuoteResponse",
    "FeeRequest",
    "AccessRequest",
    "StrategyPreferenceRequest",
    "ParticipantRequest",
    "SettlementRequest",
    "ReferralRequest",
]
