"""Pause history scoring component."""

import pandas as pd

from .base import BaseScorer, FactorRule


class PauseScorer(BaseScorer):
    """
    Score based on PAUSE_COUNT.

    Pausing is often a step on the way to cancelling.

    Points:
    - > 2 pauses: +20 (multiple pauses)
    - exactly 1 pause: +10 (previous pause)
    - 0 or 2 pauses: 0
    """

    name = "pauses"

    @property
    def required_columns(self) -> list[str]:
        return ["PAUSE_COUNT"]

    def rules(self, df: pd.DataFrame) -> list[tuple[pd.Series, FactorRule]]:
        pauses = df["PAUSE_COUNT"]
        return [
            (
                pauses > self.config.multiple_pauses_threshold,
                FactorRule(
                    "Multiple pauses",
                    self.config.multiple_pauses_delta,
                    f"Paused the subscription more than {self.config.multiple_pauses_threshold} times",
                ),
            ),
            (
                pauses == 1,
                FactorRule(
                    "Previous pause",
                    self.config.previous_pause_delta,
                    "Paused the subscription once before",
                ),
            ),
        ]
