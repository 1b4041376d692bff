"""
Main RiskScorer class - orchestrates scoring components.

Usage:
    from scoring import RiskScorer, ScoringConfig

    # Batch scoring with default config
    scorer = RiskScorer()
    result = scorer.score(df)

    # Single subscriber
    assessment = scorer.compute_risk_score(snapshot)
    print(assessment.risk_score, assessment.risk_level, assessment.recommendation)

    # With custom config
    config = ScoringConfig(tier_deltas={"STARTER": 10, ...})
    scorer = RiskScorer(config)

    # Access results
    print(result.df[["USER_ID", "RISK_SCORE", "RISK_LEVEL"]])
    print(result.summary())
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import numpy as np
import pandas as pd

from .config import ScoringConfig, DEFAULT_CONFIG
from .components import (
    TenureScorer,
    PaymentScorer,
    PauseScorer,
    PerkScorer,
    PropertyScorer,
    RewardScorer,
    BookingScorer,
    TierScorer,
)
from .schemas import SNAPSHOT_SCHEMA
from .snapshot import RiskAssessment, RiskFactor, RiskLevel, SubscriberSnapshot

LOW_PERK_FACTOR = "Low perk utilization"
NO_BOOKINGS_FACTOR = "No recent bookings"

RECOMMENDATIONS = {
    "critical": "Immediate intervention required: schedule a personal call and offer an account credit",
    "high_perks": "Educate the customer on unused plan perks and help them book a service",
    "high_bookings": "Offer a complimentary service visit to re-engage the customer",
    "high": "Reach out proactively with a targeted discount",
    "medium_perks": "Send a perk reminder email highlighting unused benefits",
    "medium": "Monitor closely and send engagement content",
    "healthy": "Customer is healthy: continue standard engagement",
}


@dataclass
class ScoringResult:
    """
    Container for scoring results with component breakdown.

    Attributes:
        df: Validated input DataFrame with deltas and scores added
        component_columns: List of component delta column names
        level_order: Risk levels from lowest to highest
    """

    df: pd.DataFrame
    component_columns: list[str]
    level_order: list[str]

    def get_high_risk(self, min_level: str = "HIGH") -> pd.DataFrame:
        """
        Get subscribers at or above a risk level.

        Args:
            min_level: Minimum risk level ("MINIMAL" ... "CRITICAL")

        Returns:
            DataFrame filtered to subscribers at or above the level,
            highest scores first
        """
        min_idx = self.level_order.index(min_level)
        valid_levels = self.level_order[min_idx:]
        return (
            self.df[self.df["RISK_LEVEL"].isin(valid_levels)]
            .sort_values("RISK_SCORE", ascending=False)
        )

    def summary(self) -> pd.DataFrame:
        """
        Generate summary statistics by tier and risk level.

        Returns:
            DataFrame with counts and average scores
        """
        return (
            self.df.groupby(["TIER", "RISK_LEVEL"])
            .agg(
                count=("USER_ID", "count"),
                avg_score=("RISK_SCORE", "mean"),
            )
            .round(1)
        )

    def component_breakdown(self) -> pd.DataFrame:
        """
        Show average contribution of each component.

        Returns:
            DataFrame with component statistics
        """
        stats = {}
        for col in self.component_columns:
            component_name = col.replace("_delta", "")
            stats[component_name] = {
                "mean": self.df[col].mean(),
                "max": self.df[col].max(),
                "min": self.df[col].min(),
            }
        return pd.DataFrame(stats).T.round(1)

    def risk_distribution(self) -> pd.Series:
        """Subscriber count per risk level, every level present."""
        return (
            self.df["RISK_LEVEL"]
            .value_counts()
            .reindex(self.level_order, fill_value=0)
            .astype(int)
        )


class RiskScorer:
    """
    Vectorized churn risk scoring engine.

    Each component contributes a signed point delta; the deltas are added
    to a neutral baseline of 50 and clamped to 0-100.

    Components:
    - Tenure: new subscription (+25) / loyal customer (-10)
    - Payment: annual payment (-15)
    - Pauses: multiple pauses (+20) / previous pause (+10)
    - Perks: low utilization (+15) / high utilization (-10)
    - Properties: multiple properties (-20)
    - Rewards: high reward engagement (-10)
    - Bookings: no recent bookings (+20) / active booking behavior (-5)
    - Tier: basic tier (+5) / premium tier (-10)
    """

    REQUIRED_COLUMNS = [
        "USER_ID",
        "SUBSCRIPTION_AGE_MONTHS",
        "PAYMENT_FREQUENCY",
        "PAUSE_COUNT",
        "PERK_USAGE_SCORE",
        "ADDITIONAL_PROPERTY_COUNT",
        "TOTAL_REWARD_CREDITS",
        "RECENT_BOOKING_COUNT",
        "TIER",
    ]

    def __init__(self, config: Optional[ScoringConfig] = None):
        """
        Initialize scorer with configuration.

        Args:
            config: ScoringConfig instance. Uses DEFAULT_CONFIG if None.
        """
        self.config = config or DEFAULT_CONFIG
        self._init_components()

    def _init_components(self) -> None:
        """Initialize all scoring components."""
        self.components = {
            "tenure": TenureScorer(self.config),
            "payment": PaymentScorer(self.config),
            "pauses": PauseScorer(self.config),
            "perks": PerkScorer(self.config),
            "properties": PropertyScorer(self.config),
            "rewards": RewardScorer(self.config),
            "bookings": BookingScorer(self.config),
            "tier": TierScorer(self.config),
        }

    def validate_input(self, df: pd.DataFrame) -> None:
        """
        Validate required columns exist.

        Args:
            df: Input DataFrame

        Raises:
            ValueError: If required columns are missing
        """
        missing = set(self.REQUIRED_COLUMNS) - set(df.columns)
        if missing:
            raise ValueError(f"Missing required columns: {missing}")

    def score(self, df: pd.DataFrame) -> ScoringResult:
        """
        Calculate churn risk scores for all subscribers.

        Args:
            df: DataFrame with required columns

        Returns:
            ScoringResult with scores and component breakdown

        Raises:
            ValueError: If required columns are missing
            pandera.errors.SchemaError: If values violate SNAPSHOT_SCHEMA

        Example:
            >>> scorer = RiskScorer()
            >>> result = scorer.score(snapshot_df)
            >>> high_risk = result.get_high_risk("HIGH")
        """
        self.validate_input(df)
        result = SNAPSHOT_SCHEMA.validate(df.copy())
        if "HAS_SUBSCRIPTION" not in result.columns:
            result["HAS_SUBSCRIPTION"] = True
        subscribed = result["HAS_SUBSCRIPTION"].astype(bool)

        # Calculate all component deltas (vectorized)
        component_cols = []
        for name, component in self.components.items():
            col_name = f"{name}_delta"
            result[col_name] = component.score(result).where(subscribed, 0)
            component_cols.append(col_name)

        # Neutral baseline plus deltas, clamped
        raw_score = (
            (self.config.base_score + result[component_cols].sum(axis=1))
            .clip(self.config.min_score, self.config.max_score)
            .round(2)
        )
        result["RISK_SCORE"] = raw_score.where(subscribed, 0.0).astype(float)

        result["RISK_LEVEL"] = np.where(
            subscribed,
            result["RISK_SCORE"].apply(self.config.get_risk_level),
            self.config.risk_level_default,
        )

        return ScoringResult(
            df=result,
            component_columns=component_cols,
            level_order=self.config.level_order,
        )

    def compute_risk_score(
        self,
        snapshot: Optional[SubscriberSnapshot],
        now: Optional[datetime] = None,
    ) -> RiskAssessment:
        """
        Score a single subscriber with factor explanations.

        A missing snapshot or one without a subscription short-circuits to
        a zero assessment.

        Args:
            snapshot: Account state, or None when the user does not exist
            now: Reference time for subscription age (defaults to UTC now)

        Returns:
            RiskAssessment with score, level, factors and recommendation
        """
        if snapshot is None or not snapshot.has_subscription:
            user_id = snapshot.user_id if snapshot is not None else None
            return RiskAssessment.no_subscription(user_id)

        result = self.score(pd.DataFrame([snapshot.to_record(now)]))
        row = result.df.iloc[0]

        risk_factors: list[RiskFactor] = []
        protective_factors: list[RiskFactor] = []
        for component in self.components.values():
            rule = component.fired(result.df).iloc[0]
            if rule is None or rule.delta == 0:
                continue
            factor = RiskFactor(rule.name, rule.delta, rule.description)
            if rule.is_risk:
                risk_factors.append(factor)
            else:
                protective_factors.append(factor)

        level = RiskLevel(row["RISK_LEVEL"])
        return RiskAssessment(
            user_id=snapshot.user_id,
            risk_score=float(row["RISK_SCORE"]),
            risk_level=level,
            risk_factors=risk_factors,
            protective_factors=protective_factors,
            recommendation=self.recommend(level, [f.name for f in risk_factors]),
        )

    @staticmethod
    def recommend(level: RiskLevel, risk_factor_names: list[str]) -> str:
        """Pick the recommendation for a risk level and its risk factors."""
        if level == RiskLevel.CRITICAL:
            return RECOMMENDATIONS["critical"]
        if level == RiskLevel.HIGH:
            if LOW_PERK_FACTOR in risk_factor_names:
                return RECOMMENDATIONS["high_perks"]
            if NO_BOOKINGS_FACTOR in risk_factor_names:
                return RECOMMENDATIONS["high_bookings"]
            return RECOMMENDATIONS["high"]
        if level == RiskLevel.MEDIUM:
            if LOW_PERK_FACTOR in risk_factor_names:
                return RECOMMENDATIONS["medium_perks"]
            return RECOMMENDATIONS["medium"]
        return RECOMMENDATIONS["healthy"]


def generate_sample_data(n_subscribers: int = 100, seed: int = 42) -> pd.DataFrame:
    """
    Generate realistic sample snapshot data for testing.

    Distributions:
    - Tier: STARTER 40%, HOMECARE 40%, PRIORITY 20%
    - ~30% pay yearly
    - Subscription age spread over the first two years
    - Most subscribers never pause
    """
    np.random.seed(seed)

    tiers = np.random.choice(
        ["STARTER", "HOMECARE", "PRIORITY"],
        size=n_subscribers,
        p=[0.40, 0.40, 0.20],
    )

    frequency = np.where(
        np.random.random(n_subscribers) < 0.30, "YEARLY", "MONTHLY"
    )

    age_months = np.random.uniform(0, 24, size=n_subscribers).round(2)

    pause_count = np.random.choice(
        [0, 1, 2, 3, 4], size=n_subscribers, p=[0.60, 0.20, 0.10, 0.06, 0.04]
    )

    perks_used = np.random.binomial(4, 0.4, size=n_subscribers)

    properties = np.random.choice(
        [0, 1, 2], size=n_subscribers, p=[0.75, 0.20, 0.05]
    )

    reward_credits = np.clip(
        np.random.exponential(scale=30, size=n_subscribers), 0, 300
    ).round(2)

    recent_bookings = np.random.poisson(lam=1.5, size=n_subscribers)

    return pd.DataFrame(
        {
            "USER_ID": [f"USER_{i:04d}" for i in range(n_subscribers)],
            "HAS_SUBSCRIPTION": True,
            "SUBSCRIPTION_AGE_MONTHS": age_months,
            "PAYMENT_FREQUENCY": frequency,
            "PAUSE_COUNT": pause_count,
            "PERK_USAGE_SCORE": perks_used / 4,
            "ADDITIONAL_PROPERTY_COUNT": properties,
            "TOTAL_REWARD_CREDITS": reward_credits,
            "RECENT_BOOKING_COUNT": recent_bookings,
            "TIER": tiers,
        }
    )
