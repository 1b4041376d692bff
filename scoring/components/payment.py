"""Payment frequency scoring component."""

import pandas as pd

from .base import BaseScorer, FactorRule


class PaymentScorer(BaseScorer):
    """
    Score based on PAYMENT_FREQUENCY.

    Annual payers have already committed for the year.

    Points:
    - YEARLY: -15 (annual payment)
    - MONTHLY: 0
    """

    name = "payment"

    @property
    def required_columns(self) -> list[str]:
        return ["PAYMENT_FREQUENCY"]

    def rules(self, df: pd.DataFrame) -> list[tuple[pd.Series, FactorRule]]:
        return [
            (
                df["PAYMENT_FREQUENCY"] == "YEARLY",
                FactorRule(
                    "Annual payment",
                    self.config.annual_payment_delta,
                    "Pays yearly in advance",
                ),
            ),
        ]
