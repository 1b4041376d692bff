"""Additional property scoring component."""

import pandas as pd

from .base import BaseScorer, FactorRule


class PropertyScorer(BaseScorer):
    """
    Score based on ADDITIONAL_PROPERTY_COUNT.

    Points:
    - > 0: -20 (multiple properties)
    - 0: 0
    """

    name = "properties"

    @property
    def required_columns(self) -> list[str]:
        return ["ADDITIONAL_PROPERTY_COUNT"]

    def rules(self, df: pd.DataFrame) -> list[tuple[pd.Series, FactorRule]]:
        return [
            (
                df["ADDITIONAL_PROPERTY_COUNT"] > 0,
                FactorRule(
                    "Multiple properties",
                    self.config.multiple_properties_delta,
                    "Covers more than one property",
                ),
            ),
        ]
