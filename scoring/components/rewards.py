"""Reward engagement scoring component."""

import pandas as pd

from .base import BaseScorer, FactorRule


class RewardScorer(BaseScorer):
    """
    Score based on TOTAL_REWARD_CREDITS (all credits ever issued).

    Points:
    - > 50: -10 (high reward engagement)
    - <= 50: 0
    """

    name = "rewards"

    @property
    def required_columns(self) -> list[str]:
        return ["TOTAL_REWARD_CREDITS"]

    def rules(self, df: pd.DataFrame) -> list[tuple[pd.Series, FactorRule]]:
        return [
            (
                df["TOTAL_REWARD_CREDITS"] > self.config.reward_credit_threshold,
                FactorRule(
                    "High reward engagement",
                    self.config.reward_engagement_delta,
                    f"Earned more than {self.config.reward_credit_threshold:g} in reward credits",
                ),
            ),
        ]
