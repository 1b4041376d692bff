"""
Retention automation configuration.

Thresholds are on the 0-100 churn risk scale.
"""

from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Dict, Optional

import yaml


@dataclass
class RetentionConfig:
    """
    Configuration for the retention orchestrator.

    Load from YAML:
        config = RetentionConfig.from_yaml("configs/retention.yaml")
    """

    # Scheduling
    rescore_interval_seconds: int = 6 * 60 * 60
    campaign_interval_seconds: int = 24 * 60 * 60

    # Campaign segmentation
    high_risk_threshold: float = 60.0
    critical_threshold: float = 80.0
    campaign_batch_limit: int = 50

    # HIGH band action selection
    discount_ltv_threshold: float = 500.0
    premium_tier: str = "PRIORITY"

    # Action amounts (dollars)
    discount_amount: float = 20.0
    credit_amount: float = 25.0

    # Snapshot assembly
    recent_booking_days: int = 60

    # Reporting (risk distribution uses its own bands)
    distribution_high: float = 70.0
    distribution_medium: float = 40.0
    tier_monthly_price: Dict[str, float] = field(default_factory=lambda: {
        "STARTER": 29.0,
        "HOMECARE": 79.0,
        "PRIORITY": 149.0,
    })
    revenue_loss_months: int = 12
    report_high_risk_limit: int = 10
    trend_window_days: int = 30

    # Audit trail; None keeps attempts in memory only
    audit_log_path: Optional[str] = None

    @classmethod
    def from_yaml(cls, path: Path | str) -> "RetentionConfig":
        """Load configuration from YAML file."""
        path = Path(path)
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, path: Path | str) -> None:
        """Save configuration to YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(asdict(self), f, default_flow_style=False, sort_keys=False)
