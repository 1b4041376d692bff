"""Subscription tenure scoring component."""

import pandas as pd

from .base import BaseScorer, FactorRule


class TenureScorer(BaseScorer):
    """
    Score based on SUBSCRIPTION_AGE_MONTHS (30-day months since signup).

    New subscribers have not formed a habit yet and cancel most often.
    Subscribers past their first year rarely leave.

    Points:
    - < 3 months: +25 (new subscription)
    - 3-12 months: 0
    - > 12 months: -10 (loyal customer)
    """

    name = "tenure"

    @property
    def required_columns(self) -> list[str]:
        return ["SUBSCRIPTION_AGE_MONTHS"]

    def rules(self, df: pd.DataFrame) -> list[tuple[pd.Series, FactorRule]]:
        age = df["SUBSCRIPTION_AGE_MONTHS"]
        return [
            (
                age < self.config.new_subscription_months,
                FactorRule(
                    "New subscription",
                    self.config.new_subscription_delta,
                    f"Subscribed less than {self.config.new_subscription_months:g} months ago",
                ),
            ),
            (
                age > self.config.loyal_customer_months,
                FactorRule(
                    "Loyal customer",
                    self.config.loyal_customer_delta,
                    f"Subscribed for more than {self.config.loyal_customer_months:g} months",
                ),
            ),
        ]
