"""Client side of the HTTP 402 pay-to-access handshake.

One access attempt runs probe -> pay -> access at most once; there are no
automatic retries. Callers may re-probe and re-pay at their discretion.

Double payment is guarded by an idempotency key per (resource, wallet):
a settled key reuses its settlement reference, and a key whose payment
was dispatched but never confirmed stays in `in_flight` until the caller
reconciles it with the signer.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from payrouter.models.payment import (
    REQUIREMENTS_HEADER,
    PaymentDetails,
    ProofV1,
    ProofV2,
)
from payrouter.x402.errors import AmbiguousPaymentRequired, PaymentFailed, ResourceAccessError
from payrouter.x402.signer import PaymentSigner
from payrouter.x402.types import AccessResult, AccessState, PayOutcome, ProbeResult

logger = structlog.get_logger()

PAYMENT_REQUIRED = 402

IdempotencyKey = tuple[str, str]


def _payload(response: httpx.Response) -> Any:
    """Parsed JSON body, or the raw text if it is not JSON."""
    try:
        return response.json()
    except ValueError:
        return response.text


def _details_from_body(response: httpx.Response) -> PaymentDetails | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict) or "payment" not in body:
        return None
    try:
        return PaymentDetails.model_validate(body["payment"])
    except ValidationError:
        return None


def _details_from_header(response: httpx.Response) -> PaymentDetails | None:
    raw = response.headers.get(REQUIREMENTS_HEADER)
    if not raw:
        return None
    try:
        return PaymentDetails.model_validate_json(raw)
    except ValidationError:
        return None


class PaymentRequiredClient:
    """Drives the probe/pay/access handshake against gated resources.

    Args:
        http_client: Shared async HTTP client
        signer: Wallet collaborator that settles payments. Without one,
            every pay step fails (with the requirements preserved).
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        signer: PaymentSigner | None = None,
    ) -> None:
        self._http = http_client
        self.signer = signer
        self._settled: dict[IdempotencyKey, str] = {}
        self.in_flight: set[IdempotencyKey] = set()

    async def probe(self, url: str) -> ProbeResult:
        """Request a resource and report whether it demands payment.

        Raises:
            ResourceAccessError: The resource could not be reached
            AmbiguousPaymentRequired: 402 without parsable requirements
        """
        try:
            response = await self._http.get(url)
        except httpx.HTTPError as err:
            raise ResourceAccessError(url, f"probe failed: {err.__class__.__name__}") from err

        if response.status_code != PAYMENT_REQUIRED:
            logger.debug("resource_free", url=url, status=response.status_code)
            return ProbeResult(AccessState.FREE, url, response.status_code, payload=_payload(response))

        details = _details_from_body(response) or _details_from_header(response)
        if details is None:
            logger.warning("payment_required_ambiguous", url=url)
            raise AmbiguousPaymentRequired(url, "402 response carried no payment details")

        logger.info(
            "payment_required",
            url=url,
            amount=details.amount,
            token=details.token,
            chain=details.chain,
        )
        return ProbeResult(
            AccessState.PAYMENT_REQUIRED, url, response.status_code, details=details
        )

    async def pay(
        self,
        details: PaymentDetails,
        wallet_address: str,
        resource: str | None = None,
    ) -> PayOutcome:
        """Settle asserted requirements through the signer.

        Signer failures become a PAY_FAILED outcome carrying `details`.
        Cancellation after dispatch is logged and re-raised; the key stays
        in `in_flight` so the payment can be reconciled.

        Args:
            details: Requirements from the probe
            wallet_address: Paying wallet
            resource: Resource being paid for. Enables the idempotency
                guard against paying twice for the same (resource, wallet).
        """
        if self.signer is None:
            return PayOutcome(AccessState.PAY_FAILED, details, error="no payment signer configured")

        try:
            amount = details.amount_decimal
        except ValueError as err:
            return PayOutcome(AccessState.PAY_FAILED, details, error=str(err))

        key = (resource, wallet_address.strip().lower()) if resource else None
        if key is not None:
            if key in self._settled:
                logger.info("payment_reused", resource=resource, wallet=key[1])
                return PayOutcome(
                    AccessState.PAID, details, reference=self._settled[key], reused=True
                )
            if key in self.in_flight:
                return PayOutcome(
                    AccessState.PAY_FAILED,
                    details,
                    error="a payment for this resource and wallet is already in flight",
                )
            self.in_flight.add(key)

        try:
            reference = await self.signer.send_payment(
                details.recipient, amount, details.token, details.chain
            )
        except asyncio.CancelledError:
            logger.warning(
                "payment_cancelled_after_dispatch",
                resource=resource,
                wallet=wallet_address,
                recipient=details.recipient,
                amount=details.amount,
            )
            raise
        except Exception as err:
            if key is not None:
                self.in_flight.discard(key)
            logger.warning(
                "payment_failed",
                resource=resource,
                error_type=err.__class__.__name__,
                error=str(err),
            )
            return PayOutcome(
                AccessState.PAY_FAILED, details, error=f"{err.__class__.__name__}: {err}"
            )

        if key is not None:
            self.in_flight.discard(key)
        if not reference:
            return PayOutcome(
                AccessState.PAY_FAILED, details, error="signer returned an empty settlement reference"
            )
        if key is not None:
            self._settled[key] = reference

        logger.info("payment_settled", resource=resource, reference=reference)
        return PayOutcome(AccessState.PAID, details, reference=reference)

    def reconcile(self, resource: str, wallet_address: str, reference: str | None) -> None:
        """Resolve an in-flight payment after checking the signer's own state.

        Args:
            resource: Resource the payment was for
            wallet_address: Paying wallet
            reference: Settlement reference if the payment went through,
                None if it did not
        """
        key = (resource, wallet_address.strip().lower())
        self.in_flight.discard(key)
        if reference:
            self._settled[key] = reference

    def create_proof(
        self, wallet_address: str, details: PaymentDetails, reference: str
    ) -> ProofV2:
        return ProofV2.create(wallet_address, details, proof=reference)

    async def access(self, url: str, proof: ProofV1 | ProofV2 | str) -> AccessResult:
        """Re-request a resource presenting a payment proof.

        A bare string is sent as a V1 opaque proof.

        Raises:
            ResourceAccessError: The resource could not be reached
        """
        if isinstance(proof, str):
            proof = ProofV1(proof=proof)

        try:
            response = await self._http.get(url, headers=proof.to_headers())
        except httpx.HTTPError as err:
            raise ResourceAccessError(url, f"access failed: {err.__class__.__name__}") from err

        if response.status_code >= 400:
            logger.warning(
                "paid_access_rejected", url=url, status=response.status_code, version=proof.version
            )
            state = AccessState.PAID
        else:
            state = AccessState.ACCESSED
        return AccessResult(state, url, response.status_code, _payload(response), proof)

    async def fetch(self, url: str, wallet_address: str) -> AccessResult:
        """Probe, pay if required, then access. One attempt, no retries.

        Raises:
            PaymentFailed: Payment was required but could not be made
            AmbiguousPaymentRequired: 402 without parsable requirements
            ResourceAccessError: The resource could not be reached
        """
        probe = await self.probe(url)
        if not probe.requires_payment or probe.details is None:
            return AccessResult(AccessState.FREE, url, probe.status_code, probe.payload)

        outcome = await self.pay(probe.details, wallet_address, resource=url)
        if not outcome.ok or outcome.reference is None:
            raise PaymentFailed(url, probe.details, outcome.error or "unknown error")

        proof = self.create_proof(wallet_address, probe.details, outcome.reference)
        return await self.access(url, proof)
