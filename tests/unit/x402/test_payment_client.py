"""Tests for the HTTP 402 probe/pay/access handshake."""

import asyncio
import json
from decimal import Decimal

import httpx
import pytest

from payrouter.models.payment import (
    PROOF_HEADER,
    VERSION_HEADER,
    WALLET_HEADER,
    PaymentDetails,
    ProofV2,
)
from payrouter.x402 import (
    AccessState,
    AmbiguousPaymentRequired,
    PaymentFailed,
    PaymentRequiredClient,
    ResourceAccessError,
)
from tests.conftest import mock_http_client
from tests.helpers import FREE_URL, PAID_URL, PAYER, PAYMENT, FakeSigner, GatedResource

DETAILS = PaymentDetails(**PAYMENT)


def make_client(handler=None, signer=None) -> PaymentRequiredClient:
    return PaymentRequiredClient(mock_http_client(handler or GatedResource()), signer=signer)


class TestProbe:
    def test_free_resource_passes_body_through(self):
        result = asyncio.run(make_client().probe(FREE_URL))

        assert result.state is AccessState.FREE
        assert result.status_code == 200
        assert result.payload == {"ok": True}
        assert not result.requires_payment

    def test_non_json_body_passed_as_text(self):
        client = make_client(lambda request: httpx.Response(200, text="plain body"))
        result = asyncio.run(client.probe(FREE_URL))
        assert result.payload == "plain body"

    def test_error_status_is_not_payment_required(self):
        client = make_client(lambda request: httpx.Response(404, json={"error": "missing"}))
        result = asyncio.run(client.probe(FREE_URL))

        assert result.state is AccessState.FREE
        assert result.status_code == 404

    def test_payment_details_from_body(self):
        result = asyncio.run(make_client().probe(PAID_URL))

        assert result.state is AccessState.PAYMENT_REQUIRED
        assert result.details == PaymentDetails(
            amount="10", token="USDC", chain="base", recipient="0xabc"
        )

    def test_payment_details_from_header(self):
        result = asyncio.run(make_client(GatedResource(requirements_in="header")).probe(PAID_URL))
        assert result.details == DETAILS

    def test_numeric_amount_kept_as_text(self):
        body = {"payment": {**PAYMENT, "amount": 10}}
        client = make_client(lambda request: httpx.Response(402, json=body))
        result = asyncio.run(client.probe(PAID_URL))
        assert result.details.amount == "10"

    def test_402_without_details_is_ambiguous(self):
        client = make_client(GatedResource(requirements_in="none"))

        with pytest.raises(AmbiguousPaymentRequired) as exc_info:
            asyncio.run(client.probe(PAID_URL))

        assert exc_info.value.url == PAID_URL

    def test_402_with_partial_details_is_ambiguous(self):
        body = {"payment": {"amount": "10"}}
        client = make_client(lambda request: httpx.Response(402, json=body))

        with pytest.raises(AmbiguousPaymentRequired):
            asyncio.run(client.probe(PAID_URL))

    def test_unreachable_resource(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(ResourceAccessError, match="ConnectTimeout"):
            asyncio.run(make_client(handler).probe(PAID_URL))


class TestPay:
    def test_pays_through_signer(self):
        signer = FakeSigner(reference="0xtx")
        outcome = asyncio.run(make_client(signer=signer).pay(DETAILS, PAYER))

        assert outcome.ok
        assert outcome.reference == "0xtx"
        assert signer.payments == [("0xabc", Decimal("10"), "USDC", "base")]

    def test_no_signer_fails_with_details(self):
        outcome = asyncio.run(make_client().pay(DETAILS, PAYER))

        assert outcome.state is AccessState.PAY_FAILED
        assert outcome.details == DETAILS
        assert "signer" in outcome.error

    def test_signer_exception_is_wrapped(self):
        signer = FakeSigner(exception=RuntimeError("insufficient funds"))
        outcome = asyncio.run(make_client(signer=signer).pay(DETAILS, PAYER, resource=PAID_URL))

        assert outcome.state is AccessState.PAY_FAILED
        assert outcome.details == DETAILS
        assert outcome.error == "RuntimeError: insufficient funds"

    def test_failed_payment_can_be_retried(self):
        signer = FakeSigner(exception=RuntimeError("nonce too low"))
        client = make_client(signer=signer)
        asyncio.run(client.pay(DETAILS, PAYER, resource=PAID_URL))

        signer.exception = None
        outcome = asyncio.run(client.pay(DETAILS, PAYER, resource=PAID_URL))

        assert outcome.ok
        assert len(signer.payments) == 2

    def test_unparseable_amount_fails_without_paying(self):
        signer = FakeSigner()
        details = PaymentDetails(amount="ten", token="USDC", chain="base", recipient="0xabc")

        outcome = asyncio.run(make_client(signer=signer).pay(details, PAYER))

        assert outcome.state is AccessState.PAY_FAILED
        assert signer.payments == []

    def test_empty_reference_is_a_failure(self):
        outcome = asyncio.run(make_client(signer=FakeSigner(reference="")).pay(DETAILS, PAYER))
        assert outcome.state is AccessState.PAY_FAILED


class TestIdempotency:
    def test_second_payment_for_same_resource_is_reused(self):
        signer = FakeSigner()
        client = make_client(signer=signer)

        first = asyncio.run(client.pay(DETAILS, PAYER, resource=PAID_URL))
        second = asyncio.run(client.pay(DETAILS, PAYER.upper(), resource=PAID_URL))

        assert second.ok
        assert second.reused
        assert second.reference == first.reference
        assert len(signer.payments) == 1

    def test_different_wallet_pays_separately(self):
        signer = FakeSigner()
        client = make_client(signer=signer)

        asyncio.run(client.pay(DETAILS, PAYER, resource=PAID_URL))
        asyncio.run(client.pay(DETAILS, "0x" + "99" * 20, resource=PAID_URL))

        assert len(signer.payments) == 2

    def test_cancellation_keeps_payment_in_flight(self):
        """A payment cancelled after dispatch is neither retried nor forgotten."""
        signer = FakeSigner(exception=asyncio.CancelledError())
        client = make_client(signer=signer)

        with pytest.raises(asyncio.CancelledError):
            asyncio.run(client.pay(DETAILS, PAYER, resource=PAID_URL))

        key = (PAID_URL, PAYER.lower())
        assert key in client.in_flight

        signer.exception = None
        outcome = asyncio.run(client.pay(DETAILS, PAYER, resource=PAID_URL))
        assert outcome.state is AccessState.PAY_FAILED
        assert "in flight" in outcome.error
        assert len(signer.payments) == 1

    def test_reconcile_settles_in_flight_payment(self):
        signer = FakeSigner(exception=asyncio.CancelledError())
        client = make_client(signer=signer)
        with pytest.raises(asyncio.CancelledError):
            asyncio.run(client.pay(DETAILS, PAYER, resource=PAID_URL))

        client.reconcile(PAID_URL, PAYER, "0xconfirmed")
        outcome = asyncio.run(client.pay(DETAILS, PAYER, resource=PAID_URL))

        assert client.in_flight == set()
        assert outcome.reused
        assert outcome.reference == "0xconfirmed"

    def test_reconcile_without_reference_allows_new_payment(self):
        signer = FakeSigner(exception=asyncio.CancelledError())
        client = make_client(signer=signer)
        with pytest.raises(asyncio.CancelledError):
            asyncio.run(client.pay(DETAILS, PAYER, resource=PAID_URL))

        client.reconcile(PAID_URL, PAYER, None)
        signer.exception = None
        outcome = asyncio.run(client.pay(DETAILS, PAYER, resource=PAID_URL))

        assert outcome.ok
        assert not outcome.reused


class TestAccess:
    def test_v1_string_proof(self):
        handler = GatedResource()
        result = asyncio.run(make_client(handler).access(PAID_URL, "0xtx"))

        assert result.state is AccessState.ACCESSED
        assert result.data == {"report": "contents"}
        assert handler.requests[0].headers[PROOF_HEADER] == "0xtx"
        assert WALLET_HEADER not in handler.requests[0].headers

    def test_v2_proof_headers(self):
        handler = GatedResource()
        proof = ProofV2.create(PAYER, DETAILS, proof="0xtx")

        asyncio.run(make_client(handler).access(PAID_URL, proof))

        headers = handler.requests[0].headers
        assert headers[WALLET_HEADER] == PAYER
        assert headers[VERSION_HEADER] == "2"
        sent = json.loads(headers[PROOF_HEADER])
        assert sent["proof"] == "0xtx"
        assert sent["walletAddress"] == PAYER
        assert sent["paymentDetails"] == PAYMENT

    def test_rejected_proof_stays_paid(self):
        result = asyncio.run(
            make_client(GatedResource(accept_proof=False)).access(PAID_URL, "0xtx")
        )

        assert result.state is AccessState.PAID
        assert result.status_code == 403
        assert not result.ok


class TestFetch:
    def test_free_resource(self):
        signer = FakeSigner()
        result = asyncio.run(make_client(signer=signer).fetch(FREE_URL, PAYER))

        assert result.state is AccessState.FREE
        assert result.data == {"ok": True}
        assert signer.payments == []

    def test_paid_resource(self):
        handler = GatedResource()
        signer = FakeSigner(reference="0xtx")

        result = asyncio.run(make_client(handler, signer).fetch(PAID_URL, PAYER))

        assert result.state is AccessState.ACCESSED
        assert result.data == {"report": "contents"}
        assert result.proof.version == 2
        assert result.proof.payment_details == DETAILS
        assert len(handler.requests) == 2

    def test_payment_failure_raises_with_details(self):
        signer = FakeSigner(exception=RuntimeError("insufficient funds"))

        with pytest.raises(PaymentFailed) as exc_info:
            asyncio.run(make_client(signer=signer).fetch(PAID_URL, PAYER))

        assert exc_info.value.details == DETAILS
        assert exc_info.value.reason == "RuntimeError: insufficient funds"

    def test_single_attempt_no_retry(self):
        handler = GatedResource(accept_proof=False)
        signer = FakeSigner()

        result = asyncio.run(make_client(handler, signer).fetch(PAID_URL, PAYER))

        assert result.state is AccessState.PAID
        assert len(handler.requests) == 2
        assert len(signer.payments) == 1
