"""Tier-based risk scoring component."""

import pandas as pd

from .base import BaseScorer, FactorRule

TIER_FACTOR_NAMES = {
    "PRIORITY": ("Premium tier", "On the top-tier plan"),
    "STARTER": ("Basic tier", "On the entry-level plan"),
}


class TierScorer(BaseScorer):
    """
    Score based on subscription tier (STARTER/HOMECARE/PRIORITY).

    Points:
    - PRIORITY: -10 (premium tier)
    - HOMECARE: 0
    - STARTER: +5 (basic tier)
    """

    name = "tier"

    @property
    def required_columns(self) -> list[str]:
        return ["TIER"]

    def rules(self, df: pd.DataFrame) -> list[tuple[pd.Series, FactorRule]]:
        rules = []
        for tier, delta in self.config.tier_deltas.items():
            if delta == 0:
                continue
            name, description = TIER_FACTOR_NAMES.get(
                tier, (f"{tier.title()} tier", f"On the {tier.lower()} plan")
            )
            rules.append((df["TIER"] == tier, FactorRule(name, delta, description)))
        return rules
