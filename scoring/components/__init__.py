"""Scoring components for subscriber churn risk."""

from .base import BaseScorer, FactorRule
from .tenure import TenureScorer
from .payment import PaymentScorer
from .pauses import PauseScorer
from .perks import PerkScorer
from .properties import PropertyScorer
from .rewards import RewardScorer
from .bookings import BookingScorer
from .tier import TierScorer

__all__ = [
    "BaseScorer",
    "FactorRule",
    "TenureScorer",
    "PaymentScorer",
    "PauseScorer",
    "PerkScorer",
    "PropertyScorer",
    "RewardScorer",
    "BookingScorer",
    "TierScorer",
]
