"""Perk utilization scoring component."""

import pandas as pd

from .base import BaseScorer, FactorRule


class PerkScorer(BaseScorer):
    """
    Score based on PERK_USAGE_SCORE (share of the 4 perks used).

    Customers who never touch their perks do not see the value
    of the plan.

    Points:
    - < 0.3: +15 (low perk utilization)
    - 0.3-0.7: 0
    - > 0.7: -10 (high perk utilization)
    """

    name = "perks"

    @property
    def required_columns(self) -> list[str]:
        return ["PERK_USAGE_SCORE"]

    def rules(self, df: pd.DataFrame) -> list[tuple[pd.Series, FactorRule]]:
        usage = df["PERK_USAGE_SCORE"]
        return [
            (
                usage < self.config.low_perk_usage,
                FactorRule(
                    "Low perk utilization",
                    self.config.low_perk_usage_delta,
                    "Uses few of the included plan perks",
                ),
            ),
            (
                usage > self.config.high_perk_usage,
                FactorRule(
                    "High perk utilization",
                    self.config.high_perk_usage_delta,
                    "Uses most of the included plan perks",
                ),
            ),
        ]
