"""HTTP 402 payment-required protocol client.

Usage:
    client = PaymentRequiredClient(http_client, signer=wallet)
    result = await client.fetch("https://api.example.com/report", wallet_address)
"""

from payrouter.x402.client import PaymentRequiredClient
from payrouter.x402.errors import (
    AmbiguousPaymentRequired,
    PaymentFailed,
    ResourceAccessError,
    X402Error,
)
from payrouter.x402.signer import PaymentSigner
from payrouter.x402.types import AccessResult, AccessState, PayOutcome, ProbeResult

__all__ = [
    "PaymentRequiredClient",
    "PaymentSigner",
    "AccessState",
    "ProbeResult",
    "PayOutcome",
    "AccessResult",
    "X402Error",
    "AmbiguousPaymentRequired",
    "ResourceAccessError",
    "PaymentFailed",
]
