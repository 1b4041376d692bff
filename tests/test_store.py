"""
Tests for the in-memory churn store and snapshot assembly.
"""

from datetime import timedelta

import pandas as pd
import pytest

from scoring.snapshot import PaymentFrequency, Tier
from retention.errors import EntityNotFoundError, StaleWriteError
from retention.store import (
    InMemoryChurnStore,
    SubscriptionRecord,
    SubscriptionStatus,
    UserRecord,
)

from conftest import add_customer, months_ago


class TestBuildSnapshot:
    """Snapshot assembly from store records."""

    def test_unknown_user_returns_none(self, store, now):
        assert store.build_snapshot("nobody", now) is None

    def test_user_without_subscription(self, store, now):
        store.add_user(UserRecord(id="u1", email="u1@example.com"))
        snapshot = store.build_snapshot("u1", now)

        assert snapshot is not None
        assert not snapshot.has_subscription

    def test_collects_all_fields(self, store, now):
        subscription = add_customer(
            store, "u1",
            tier=Tier.PRIORITY,
            payment_frequency=PaymentFrequency.YEARLY,
            created_at=months_ago(4),
            priority_booking_used=True,
            free_service_used=True,
            emergency_service_used=True,
        )
        store.add_pauses(subscription.id, 3)
        store.add_properties("u1", 2)
        store.add_reward_credit("u1", 30.0)
        store.add_reward_credit("u1", 25.0)

        snapshot = store.build_snapshot("u1", now)

        assert snapshot.tier == Tier.PRIORITY
        assert snapshot.payment_frequency == PaymentFrequency.YEARLY
        assert snapshot.pause_count == 3
        assert snapshot.additional_property_count == 2
        assert snapshot.total_reward_credits == 55.0
        assert snapshot.perk_usage_score == 0.75
        assert snapshot.subscription_age_months(now) == pytest.approx(4.0)

    def test_recent_bookings_use_trailing_window(self, store, now):
        add_customer(store, "u1")
        store.add_booking("u1", now - timedelta(days=5))
        store.add_booking("u1", now - timedelta(days=59))
        store.add_booking("u1", now - timedelta(days=61))
        store.add_booking("u2", now - timedelta(days=1))

        assert store.build_snapshot("u1", now).recent_booking_count == 2
        assert store.build_snapshot("u1", now, booking_window_days=7).recent_booking_count == 1


class TestScoreWrites:
    """Optimistic concurrency on the churn score."""

    def test_update_bumps_version(self, store):
        subscription = add_customer(store, "u1")
        updated = store.update_churn_score(subscription.id, 72.5, expected_version=0)

        assert updated.churn_risk_score == 72.5
        assert updated.version == 1

    def test_stale_version_rejected(self, store):
        subscription = add_customer(store, "u1")
        store.update_churn_score(subscription.id, 40.0, expected_version=0)

        with pytest.raises(StaleWriteError):
            store.update_churn_score(subscription.id, 90.0, expected_version=0)
        assert store.subscriptions[subscription.id].churn_risk_score == 40.0

    def test_unknown_subscription(self, store):
        with pytest.raises(EntityNotFoundError):
            store.update_churn_score("missing", 10.0)

    def test_reads_are_copies(self, store):
        subscription = add_customer(store, "u1")
        copy = store.get_subscription_for_user("u1")
        copy.churn_risk_score = 99.0

        assert store.subscriptions[subscription.id].churn_risk_score == 0.0


class TestCredits:
    """Credit transactions and billing adjustments."""

    def test_add_credit_increments_available_credit(self, store):
        subscription = add_customer(store, "u1")
        store.add_credit("u1", 25.0, "Retention credit")
        store.add_credit("u1", 10.0, "Goodwill")

        assert store.subscriptions[subscription.id].available_credits == 35.0
        assert [t.amount for t in store.credit_transactions] == [25.0, 10.0]

    def test_add_credit_requires_subscription(self, store):
        store.add_user(UserRecord(id="u1", email="u1@example.com"))

        with pytest.raises(EntityNotFoundError):
            store.add_credit("u1", 25.0, "Retention credit")
        assert store.credit_transactions == []

    def test_billing_adjustment_needs_no_approval(self, store):
        adjustment = store.create_billing_adjustment("u1", 20.0, "DISCOUNT", "Retention discount")

        assert adjustment.requires_approval is False
        assert store.billing_adjustments == [adjustment]


class TestCurrentSubscription:
    """Users with more than one subscription row."""

    @pytest.fixture
    def returning_customer(self, store):
        store.add_user(UserRecord(id="u1", email="u1@example.com"))
        store.add_subscription(SubscriptionRecord(
            id="old", user_id="u1", tier=Tier.STARTER,
            status=SubscriptionStatus.CANCELLED, created_at=months_ago(20),
        ))
        store.add_subscription(SubscriptionRecord(
            id="current", user_id="u1", tier=Tier.PRIORITY,
            status=SubscriptionStatus.ACTIVE, created_at=months_ago(2),
        ))
        return store

    def test_active_subscription_preferred(self, returning_customer, now):
        assert returning_customer.get_subscription_for_user("u1").id == "current"
        assert returning_customer.build_snapshot("u1", now).tier == Tier.PRIORITY

    def test_credit_lands_on_active_subscription(self, returning_customer):
        returning_customer.add_credit("u1", 25.0, "Retention credit")

        assert returning_customer.subscriptions["current"].available_credits == 25.0
        assert returning_customer.subscriptions["old"].available_credits == 0.0

    def test_newest_wins_when_none_active(self, store):
        store.add_user(UserRecord(id="u1", email="u1@example.com"))
        for sub_id, months in [("first", 30), ("second", 8)]:
            store.add_subscription(SubscriptionRecord(
                id=sub_id, user_id="u1",
                status=SubscriptionStatus.CANCELLED, created_at=months_ago(months),
            ))

        assert store.get_subscription_for_user("u1").id == "second"


class TestFindSubscriptions:
    """Filtering and ordering."""

    def test_filters_and_orders(self, store):
        add_customer(store, "a", score=65.0)
        add_customer(store, "b", score=90.0)
        add_customer(store, "c", score=30.0)
        add_customer(store, "d", score=95.0, status=SubscriptionStatus.CANCELLED)

        rows = store.find_subscriptions(
            status=SubscriptionStatus.ACTIVE, min_score=60, order_by_score=True
        )
        assert [s.user_id for s in rows] == ["b", "a"]

        limited = store.find_subscriptions(
            status=SubscriptionStatus.ACTIVE, order_by_score=True, limit=1
        )
        assert [s.user_id for s in limited] == ["b"]


class TestFromFrame:
    """Seeding from an account export."""

    def test_loads_accounts(self, now):
        df = pd.DataFrame([
            {
                "USER_ID": "u1", "EMAIL": "u1@example.com", "NAME": "Ana",
                "SUBSCRIPTION_ID": "s1", "TIER": "STARTER", "CREATED_AT": "2025-05-01",
                "PAUSE_COUNT": 1, "RECENT_BOOKING_COUNT": 2, "LIFETIME_VALUE": 120.0,
            },
            {
                "USER_ID": "u2", "EMAIL": "u2@example.com", "NAME": "Ben",
                "SUBSCRIPTION_ID": None, "TIER": None, "CREATED_AT": None,
                "PAUSE_COUNT": None, "RECENT_BOOKING_COUNT": None, "LIFETIME_VALUE": None,
            },
        ])
        store = InMemoryChurnStore.from_frame(df, now=now)

        assert set(store.users) == {"u1", "u2"}
        assert store.get_subscription_for_user("u2") is None

        snapshot = store.build_snapshot("u1", now)
        assert snapshot.tier == Tier.STARTER
        assert snapshot.pause_count == 1
        assert snapshot.recent_booking_count == 2
        assert snapshot.subscription_created_at.tzinfo is not None

    def test_requires_identity_columns(self):
        with pytest.raises(ValueError, match="EMAIL"):
            InMemoryChurnStore.from_frame(pd.DataFrame({"USER_ID": ["u1"]}))
