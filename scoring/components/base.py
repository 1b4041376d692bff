"""Base class for scoring components."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

if TYPE_CHECKING:
    from ..config import ScoringConfig


@dataclass(frozen=True)
class FactorRule:
    """A named branch of a component and the points it contributes."""

    name: str
    delta: float
    description: str

    @property
    def is_risk(self) -> bool:
        return self.delta > 0


class BaseScorer(ABC):
    """
    Abstract base class for scoring components.

    Each component evaluates one aspect of churn risk as a set of
    mutually exclusive branches. The first matching branch wins and
    rows matching no branch contribute 0 points.
    """

    name: str = "base"

    def __init__(self, config: "ScoringConfig"):
        """
        Initialize scorer with configuration.

        Args:
            config: ScoringConfig instance with thresholds and deltas
        """
        self.config = config

    @abstractmethod
    def rules(self, df: pd.DataFrame) -> list[tuple[pd.Series, FactorRule]]:
        """
        Build (condition, rule) pairs for all rows.

        Must be implemented by subclasses using vectorized comparisons.

        Args:
            df: DataFrame with required columns

        Returns:
            Boolean masks paired with the rule each one triggers
        """
        pass

    @property
    @abstractmethod
    def required_columns(self) -> list[str]:
        """List of columns required by this scorer."""
        pass

    def validate(self, df: pd.DataFrame) -> None:
        """Validate required columns exist."""
        missing = set(self.required_columns) - set(df.columns)
        if missing:
            raise ValueError(
                f"{self.__class__.__name__} requires columns: {missing}"
            )

    def score(self, df: pd.DataFrame) -> pd.Series:
        """Signed point delta per row."""
        self.validate(df)
        rules = self.rules(df)
        if not rules:
            return pd.Series(0.0, index=df.index, dtype=float)

        return pd.Series(
            np.select(
                [mask.to_numpy(dtype=bool) for mask, _ in rules],
                [rule.delta for _, rule in rules],
                default=0.0,
            ),
            index=df.index,
            dtype=float,
        )

    def fired(self, df: pd.DataFrame) -> pd.Series:
        """The FactorRule each row triggered, or None."""
        self.validate(df)
        rules = self.rules(df)
        if not rules:
            return pd.Series([None] * len(df), index=df.index, dtype=object)

        positions = np.select(
            [mask.to_numpy(dtype=bool) for mask, _ in rules],
            list(range(len(rules))),
            default=-1,
        )
        return pd.Series(
            [rules[i][1] if i >= 0 else None for i in positions],
            index=df.index,
            dtype=object,
        )
