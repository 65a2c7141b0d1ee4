"""Protocol fee engine.

This module provides:
- Volume tier classification and tier progress
- Per-payment fee calculation with gas-allowance and network-effect discounts
- Yield revenue share
- Participant registry, volume tracking and referral rewards

Usage:
    from payrouter.fees import DefaultFeeCalculator, InMemoryParticipantRegistry

    participants = InMemoryParticipantRegistry(["alice.eth"])
    calculator = DefaultFeeCalculator(participants=participants)
    quote = calculator.compute_fee(Decimal("250"), Decimal("4200"), "alice.eth", "bob.eth")
"""

from payrouter.fees.calculator import (
    DEFAULT_FEE_CALCULATOR,
    DefaultFeeCalculator,
    FeeCalculator,
)
from payrouter.fees.config import (
    DEFAULT_FEE_CONFIG,
    DEFAULT_FEE_TIERS,
    FeeConfig,
    FeeTier,
    validate_tiers,
)
from payrouter.fees.participants import (
    InMemoryParticipantRegistry,
    ParticipantRegistry,
    participant_pairs,
)
from payrouter.fees.referrals import (
    ReferralBook,
    ReferralError,
    ReferralReward,
    ReferrerStats,
)
from payrouter.fees.result import DiscountReason, FeeQuote, TierProgress, YieldShare
from payrouter.fees.volume import VolumeRecord, VolumeTracker

__all__ = [
    # Calculator
    "FeeCalculator",
    "DefaultFeeCalculator",
    "DEFAULT_FEE_CALCULATOR",
    # Config
    "FeeConfig",
    "FeeTier",
    "DEFAULT_FEE_CONFIG",
    "DEFAULT_FEE_TIERS",
    "validate_tiers",
    # Results
    "FeeQuote",
    "YieldShare",
    "TierProgress",
    "DiscountReason",
    # Participants
    "ParticipantRegistry",
    "InMemoryParticipantRegistry",
    "participant_pairs",
    # Volume
    "VolumeTracker",
    "VolumeRecord",
    # Referrals
    "ReferralBook",
    "ReferralError",
    "ReferralReward",
    "ReferrerStats",
]
