"""
Input and output types for single-subscriber scoring.

A SubscriberSnapshot is the read-only account state the scorer works on.
It flattens into one row of the scoring DataFrame so single and batch
scoring share the same vectorized components.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

import pandas as pd

MONTH = timedelta(days=30)
NO_SUBSCRIPTION_MESSAGE = "No active subscription"


class Tier(str, Enum):
    STARTER = "STARTER"
    HOMECARE = "HOMECARE"
    PRIORITY = "PRIORITY"


class PaymentFrequency(str, Enum):
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class RiskLevel(str, Enum):
    MINIMAL = "MINIMAL"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value) -> datetime:
    """Timezone-aware UTC datetime. Naive values are taken to be UTC."""
    ts = pd.Timestamp(value)
    ts = ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")
    return ts.to_pydatetime()


@dataclass(frozen=True)
class SubscriberSnapshot:
    """
    Account state needed to score one subscriber.

    Attributes:
        user_id: Owner of the subscription
        subscription_created_at: Subscription start; None means no subscription
        payment_frequency: MONTHLY or YEARLY
        pause_count: Number of historical pauses
        priority_booking_used, discount_used, free_service_used,
        emergency_service_used: Perk usage flags
        additional_property_count: Properties beyond the primary one
        total_reward_credits: Sum of every reward credit ever issued
        recent_booking_count: Bookings created in the trailing window
        tier: STARTER, HOMECARE or PRIORITY
    """

    user_id: str
    subscription_created_at: Optional[datetime]
    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    pause_count: int = 0
    priority_booking_used: bool = False
    discount_used: bool = False
    free_service_used: bool = False
    emergency_service_used: bool = False
    additional_property_count: int = 0
    total_reward_credits: float = 0.0
    recent_booking_count: int = 0
    tier: Tier = Tier.HOMECARE

    @property
    def has_subscription(self) -> bool:
        return self.subscription_created_at is not None

    @property
    def perk_usage_score(self) -> float:
        """Share of the four perks that have been used (0.0 - 1.0)."""
        used = sum([
            self.priority_booking_used,
            self.discount_used,
            self.free_service_used,
            self.emergency_service_used,
        ])
        return used / 4

    def subscription_age_months(self, now: Optional[datetime] = None) -> float:
        """Age in 30-day months. Zero when there is no subscription."""
        if self.subscription_created_at is None:
            return 0.0
        now = as_utc(now) if now is not None else utcnow()
        return (now - as_utc(self.subscription_created_at)) / MONTH

    def to_record(self, now: Optional[datetime] = None) -> dict:
        """Flatten to a scoring row (UPPERCASE columns)."""
        return {
            "USER_ID": self.user_id,
            "HAS_SUBSCRIPTION": self.has_subscription,
            "SUBSCRIPTION_AGE_MONTHS": self.subscription_age_months(now),
            "PAYMENT_FREQUENCY": PaymentFrequency(self.payment_frequency).value,
            "PAUSE_COUNT": int(self.pause_count),
            "PERK_USAGE_SCORE": self.perk_usage_score,
            "ADDITIONAL_PROPERTY_COUNT": int(self.additional_property_count),
            "TOTAL_REWARD_CREDITS": float(self.total_reward_credits),
            "RECENT_BOOKING_COUNT": int(self.recent_booking_count),
            "TIER": Tier(self.tier).value,
        }


def snapshots_to_frame(snapshots, now: Optional[datetime] = None) -> pd.DataFrame:
    """Build a scoring DataFrame from snapshots, all aged against one `now`."""
    now = now or utcnow()
    return pd.DataFrame([s.to_record(now) for s in snapshots])


@dataclass(frozen=True)
class RiskFactor:
    """A named condition and the points it moved the score by."""

    name: str
    impact: float
    description: str


@dataclass
class RiskAssessment:
    """Scoring output for one subscriber. Only risk_score is persisted."""

    user_id: Optional[str]
    risk_score: float
    risk_level: RiskLevel
    risk_factors: list[RiskFactor] = field(default_factory=list)
    protective_factors: list[RiskFactor] = field(default_factory=list)
    recommendation: str = ""

    @classmethod
    def no_subscription(cls, user_id: Optional[str] = None) -> "RiskAssessment":
        return cls(
            user_id=user_id,
            risk_score=0.0,
            risk_level=RiskLevel.MINIMAL,
            recommendation=NO_SUBSCRIPTION_MESSAGE,
        )

    @property
    def factor_names(self) -> list[str]:
        return [f.name for f in self.risk_factors + self.protective_factors]

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "risk_score": self.risk_score,
            "risk_level": self.risk_level.value,
            "risk_factors": [vars(f) for f in self.risk_factors],
            "protective_factors": [vars(f) for f in self.protective_factors],
            "recommendation": self.recommendation,
        }
