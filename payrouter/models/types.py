"""Shared type definitions for payrouter models.

These types are used across route, payment and fee models.
"""

from decimal import Decimal, InvalidOperation
from typing import Annotated, Any

from pydantic import BeforeValidator, Field


def validate_amount(value: Any) -> Decimal:
    """Validate that a value is a non-negative decimal amount.

    Args:
        value: Value to validate (string, int, float or Decimal)

    Returns:
        The amount as a finite, non-negative Decimal

    Raises:
        ValueError: If value is not a valid non-negative number
    """
    if isinstance(value, bool):
        raise ValueError(f"Amount must be numeric, got {value!r}")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as err:
        raise ValueError(f"Amount must be a decimal number: '{value}'") from err

    if not amount.is_finite():
        raise ValueError(f"Amount must be finite: {value}")
    if amount < 0:
        raise ValueError(f"Amount cannot be negative: {value}")
    return amount


# Human-readable decimal token amount (e.g. "100.5" USDC), validated
Amount = Annotated[
    Decimal,
    BeforeValidator(validate_amount),
    Field(description="Non-negative decimal amount in whole token units"),
]


def to_decimal(value: Any) -> Decimal | None:
    """Convert a loosely-typed number into a finite Decimal.

    Returns None for anything that is not a finite number (None, NaN,
    infinities, garbage strings). Callers decide what a degenerate value
    degrades to.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def normalize_identifier(identifier: str) -> str:
    """Normalize a participant identifier (address or ENS-style name).

    Identifiers are compared case-insensitively, so both forms are
    stripped and lowercased.
    """
    return identifier.strip().lower()


def is_valid_address(address: str) -> bool:
    """Check if a string is a valid Ethereum address.

    Args:
        address: String to validate

    Returns:
        True if valid Ethereum address format
    """
    if not isinstance(address, str):
        return False
    if not address.startswith("0x"):
        return False
    if len(address) != 42:
        return False
    try:
        int(address, 16)
        return True
    except ValueError:
        return False
