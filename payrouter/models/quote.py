"""Request and response models for payment quotes and paid access."""

from decimal import Decimal

from pydantic import BaseModel, Field

from payrouter.models.payment import PaymentDetails
from payrouter.models.route import RouteOption, RoutingFamily
from payrouter.models.types import Amount


class QuoteRequest(BaseModel):
    """A payment to quote: who pays whom, how much, from where.

    The receiver's strategy allocation comes from `strategies` / `strategy`
    when given, otherwise from the preference store.
    """

    amount: Amount
    from_chain: str = Field(alias="fromChain")
    to_chain: str | None = Field(default=None, alias="toChain")
    from_token: str = Field(default="USDC", alias="fromToken")
    to_token: str | None = Field(default=None, alias="toToken")
    from_address: str | None = Field(default=None, alias="fromAddress")
    receiver: str = Field(description="Receiver address or name")
    receiver_address: str | None = Field(
        default=None,
        alias="receiverAddress",
        description="Resolved receiver address, when `receiver` is a name",
    )
    sender: str | None = Field(default=None, description="Sender identity for fee discounts")
    strategies: str | None = Field(default=None, description='e.g. "yield:60,restaking:40"')
    strategy: str | None = None
    monthly_volume: Decimal | None = Field(default=None, alias="monthlyVolume")
    has_funded_gas_allowance: bool = Field(default=False, alias="hasFundedGasAllowance")
    slippage: float | None = Field(default=None, gt=0, lt=1)
    deny_exchanges: list[str] = Field(default_factory=list, alias="denyExchanges")
    families: list[RoutingFamily] | None = None
    max_fee_usd: Decimal | None = Field(default=None, alias="maxFeeUsd")

    model_config = {"populate_by_name": True}


class LegResponse(BaseModel):
    destination: str
    percentage: int
    amount: str
    to_chain: str = Field(alias="toChain")
    to_token: str = Field(alias="toToken")
    routes: list[RouteOption]

    model_config = {"populate_by_name": True}


class FeeResponse(BaseModel):
    tier: str
    fee_rate_bps: str = Field(alias="feeRateBps")
    fee_percent: str = Field(alias="feePercent")
    fee_amount: str = Field(alias="feeAmount")
    discount_reason: str | None = Field(default=None, alias="discountReason")
    network_discount: str = Field(alias="networkDiscount")

    model_config = {"populate_by_name": True}


class QuoteResponse(BaseModel):
    amount: str
    allocation: str
    legs: list[LegResponse]
    fee: FeeResponse


class FeeRequest(BaseModel):
    amount: Amount
    monthly_volume: Decimal | None = Field(default=None, alias="monthlyVolume")
    sender: str | None = None
    receiver: str | None = None
    has_funded_gas_allowance: bool = Field(default=False, alias="hasFundedGasAllowance")

    model_config = {"populate_by_name": True}


class AccessRequest(BaseModel):
    url: str
    wallet_address: str = Field(alias="walletAddress")

    model_config = {"populate_by_name": True}


class PaymentRequiredResponse(BaseModel):
    """Body of a 402 answer: the requirements could not be paid."""

    error: str
    payment: PaymentDetails


class StrategyPreferenceRequest(BaseModel):
    receiver: str
    strategies: str | None = None
    strategy: str | None = None


class ParticipantRequest(BaseModel):
    identifier: str = Field(min_length=1, description="Address or ENS-style name")


class SettlementRequest(BaseModel):
    """A payment that has settled on-chain, booked against the receiver."""

    receiver: str = Field(min_length=1)
    amount: Amount
    sender: str | None = None
    has_funded_gas_allowance: bool = Field(default=False, alias="hasFundedGasAllowance")

    model_config = {"populate_by_name": True}


class ReferralRequest(BaseModel):
    referrer: str = Field(min_length=1)
    referred: str = Field(min_length=1)
