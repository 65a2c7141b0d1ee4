"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Wallets, names, token addresses and resource URLs
- factories: Request factories plus fake providers and signers
"""

from tests.helpers.constants import (
    ALICE,
    BOB,
    CAROL,
    FREE_URL,
    MERCHANT,
    PAID_URL,
    PAYER,
    PAYMENT,
    RECEIVER,
    USDC_BASE,
    USDT_BASE,
)
from tests.helpers.factories import (
    FakeProvider,
    FakeSigner,
    GatedResource,
    make_quote_request,
    make_route,
    make_route_request,
)

__all__ = [
    # Constants
    "PAYER",
    "RECEIVER",
    "MERCHANT",
    "ALICE",
    "BOB",
    "CAROL",
    "USDC_BASE",
    "USDT_BASE",
    "PAID_URL",
    "FREE_URL",
    "PAYMENT",
    # Factories
    "make_route_request",
    "make_quote_request",
    "make_route",
    "FakeProvider",
    "FakeSigner",
    "GatedResource",
]
