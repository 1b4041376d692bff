"""
Subscriber Churn Scoring Package

A rule-based scoring system for subscriber churn risk.
"""

from .scorer import RiskScorer, ScoringResult, generate_sample_data
from .config import ScoringConfig
from .snapshot import (
    PaymentFrequency,
    RiskAssessment,
    RiskFactor,
    RiskLevel,
    SubscriberSnapshot,
    Tier,
)

__all__ = [
    "RiskScorer",
    "ScoringResult",
    "ScoringConfig",
    "SubscriberSnapshot",
    "RiskAssessment",
    "RiskFactor",
    "RiskLevel",
    "Tier",
    "PaymentFrequency",
    "generate_sample_data",
]
__version__ = "1.0.0"
