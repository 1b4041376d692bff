"""
Scoring configuration for subscriber churn risk.

All factor deltas and thresholds are defined here for easy tuning.
The score starts from a neutral midpoint and each factor pushes it up
(risk) or down (protective) before clamping to the 0-100 range.
"""

from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Dict, List, Tuple

import yaml


@dataclass
class ScoringConfig:
    """
    Configuration for all scoring components.

    Score = clamp(base_score + sum(deltas), min_score, max_score)

    Risk factors (positive deltas):
    - New subscription: +25
    - Multiple pauses: +20 / Previous pause: +10
    - Low perk utilization: +15
    - No recent bookings: +20
    - Basic tier: +5

    Protective factors (negative deltas):
    - Loyal customer: -10
    - Annual payment: -15
    - High perk utilization: -10
    - Multiple properties: -20
    - High reward engagement: -10
    - Active booking behavior: -5
    - Premium tier: -10
    """

    # === Baseline ===
    base_score: float = 50.0
    min_score: float = 0.0
    max_score: float = 100.0

    # === Tenure ===
    # Age is measured in 30-day "months", not calendar months
    new_subscription_months: float = 3.0
    new_subscription_delta: float = 25
    loyal_customer_months: float = 12.0
    loyal_customer_delta: float = -10

    # === Payment frequency ===
    annual_payment_delta: float = -15

    # === Pause history ===
    # pause_count == 2 intentionally falls between both branches
    multiple_pauses_threshold: int = 2
    multiple_pauses_delta: float = 20
    previous_pause_delta: float = 10

    # === Perk utilization (share of the 4 perks used) ===
    low_perk_usage: float = 0.3
    low_perk_usage_delta: float = 15
    high_perk_usage: float = 0.7
    high_perk_usage_delta: float = -10

    # === Additional properties ===
    multiple_properties_delta: float = -20

    # === Reward credits ===
    reward_credit_threshold: float = 50.0
    reward_engagement_delta: float = -10

    # === Booking recency ===
    no_recent_bookings_delta: float = 20
    active_booking_threshold: int = 3
    active_booking_delta: float = -5

    # === Tier ===
    tier_deltas: Dict[str, float] = field(default_factory=lambda: {
        "STARTER": 5,      # Basic tier
        "HOMECARE": 0,
        "PRIORITY": -10,   # Premium tier
    })

    # === Risk Level Categorization ===
    # Inclusive lower bounds, checked from the top down
    risk_levels: List[Tuple[float, str]] = field(default_factory=lambda: [
        (80.0, "CRITICAL"),
        (60.0, "HIGH"),
        (40.0, "MEDIUM"),
        (20.0, "LOW"),
    ])
    risk_level_default: str = "MINIMAL"

    # === Metadata ===
    version: str = "1.0.0"

    def get_risk_level(self, score: float) -> str:
        """Map numeric score to risk level."""
        for lower_bound, level in self.risk_levels:
            if score >= lower_bound:
                return level
        return self.risk_level_default

    @property
    def level_order(self) -> List[str]:
        """Risk levels from lowest to highest."""
        return [self.risk_level_default] + [
            level for _, level in reversed(self.risk_levels)
        ]

    @classmethod
    def from_yaml(cls, path: Path | str) -> "ScoringConfig":
        """Load configuration from YAML file."""
        path = Path(path)
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if "risk_levels" in data:
            data["risk_levels"] = [tuple(pair) for pair in data["risk_levels"]]
        return cls(**data)

    def to_yaml(self, path: Path | str) -> None:
        """Save configuration to YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = asdict(self)
        data["risk_levels"] = [list(pair) for pair in self.risk_levels]
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)


# Default configuration instance
DEFAULT_CONFIG = ScoringConfig()
