"""
Data schema definitions for subscriber churn scoring.

Uses Pandera for runtime validation of input DataFrames to ensure
data quality and catch pipeline errors before scoring.
"""

from pandera import Column, Check, DataFrameSchema

TIERS = ["STARTER", "HOMECARE", "PRIORITY"]
PAYMENT_FREQUENCIES = ["MONTHLY", "YEARLY"]
RISK_LEVELS = ["MINIMAL", "LOW", "MEDIUM", "HIGH", "CRITICAL"]


# Schema for scoring input data
SNAPSHOT_SCHEMA = DataFrameSchema(
    {
        "USER_ID": Column(
            str,
            nullable=False,
            unique=True,
            description="Unique subscriber identifier"
        ),
        "HAS_SUBSCRIPTION": Column(
            bool,
            nullable=False,
            required=False,  # Batch files only carry subscribers
            description="False when the account has no subscription"
        ),
        "SUBSCRIPTION_AGE_MONTHS": Column(
            float,
            nullable=False,
            checks=Check.less_than_or_equal_to(600),  # 50 years
            description="Subscription age in 30-day months"
        ),
        "PAYMENT_FREQUENCY": Column(
            str,
            nullable=False,
            checks=Check.isin(PAYMENT_FREQUENCIES),
            description="MONTHLY or YEARLY billing"
        ),
        "PAUSE_COUNT": Column(
            int,
            nullable=False,
            checks=Check.greater_than_or_equal_to(0),
            description="Number of historical pauses"
        ),
        "PERK_USAGE_SCORE": Column(
            float,
            nullable=False,
            checks=Check.in_range(0.0, 1.0),
            description="Share of the four perks used"
        ),
        "ADDITIONAL_PROPERTY_COUNT": Column(
            int,
            nullable=False,
            checks=Check.greater_than_or_equal_to(0),
            description="Properties beyond the primary one"
        ),
        "TOTAL_REWARD_CREDITS": Column(
            float,
            nullable=False,
            checks=Check.greater_than_or_equal_to(0),
            description="Sum of all reward credits ever issued"
        ),
        "RECENT_BOOKING_COUNT": Column(
            int,
            nullable=False,
            checks=Check.greater_than_or_equal_to(0),
            description="Bookings created in the trailing window"
        ),
        "TIER": Column(
            str,
            nullable=False,
            checks=Check.isin(TIERS),
            description="Subscription tier"
        ),
    },
    strict=False,  # Allow extra columns (e.g. IS_CHURNED for evaluation)
    coerce=True,   # Try to coerce types automatically
    description="Schema for churn risk scoring input data"
)


# Schema for scoring output data
SCORES_SCHEMA = DataFrameSchema(
    {
        "USER_ID": Column(str, nullable=False),
        "RISK_SCORE": Column(
            float,
            nullable=False,
            checks=Check.in_range(0.0, 100.0),
        ),
        "RISK_LEVEL": Column(
            str,
            nullable=False,
            checks=Check.isin(RISK_LEVELS)
        ),
    },
    strict=False,  # Allow component columns
    description="Schema for churn risk scoring output data"
)
