"""
Persistence interface used by the retention services.

ChurnStore is the slice of the relational store the churn logic touches.
InMemoryChurnStore implements it with dictionaries guarded by a lock and
is used for tests and embedded runs.
"""

import itertools
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

import pandas as pd

from scoring.snapshot import PaymentFrequency, SubscriberSnapshot, Tier, as_utc, utcnow

from .errors import EntityNotFoundError, StaleWriteError

logger = logging.getLogger(__name__)


class SubscriptionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    CANCELLED = "CANCELLED"


# ACTIVE first, then PAUSED, then CANCELLED
STATUS_PREFERENCE = [
    SubscriptionStatus.ACTIVE,
    SubscriptionStatus.PAUSED,
    SubscriptionStatus.CANCELLED,
]


@dataclass
class UserRecord:
    id: str
    email: str
    name: str = ""
    phone: Optional[str] = None


@dataclass
class SubscriptionRecord:
    id: str
    user_id: str
    tier: Tier = Tier.HOMECARE
    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    created_at: datetime = field(default_factory=utcnow)
    churn_risk_score: float = 0.0
    available_credits: float = 0.0
    lifetime_value: float = 0.0
    priority_booking_used: bool = False
    discount_used: bool = False
    free_service_used: bool = False
    emergency_service_used: bool = False
    version: int = 0
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class BookingRecord:
    id: str
    user_id: str
    created_at: datetime


@dataclass
class BillingAdjustment:
    id: str
    user_id: str
    amount: float
    type: str
    reason: str
    requires_approval: bool = False
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class CreditTransaction:
    id: str
    user_id: str
    amount: float
    type: str
    description: str
    created_at: datetime = field(default_factory=utcnow)


class ChurnStore(ABC):
    """Reads and writes the churn logic needs from the relational store."""

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[UserRecord]:
        pass

    @abstractmethod
    def get_subscription_for_user(self, user_id: str) -> Optional[SubscriptionRecord]:
        """
        The user's current subscription: ACTIVE over PAUSED over CANCELLED,
        newest first within a status.
        """
        pass

    @abstractmethod
    def find_subscriptions(
        self,
        status: Optional[SubscriptionStatus] = None,
        min_score: Optional[float] = None,
        order_by_score: bool = False,
        limit: Optional[int] = None,
    ) -> list[SubscriptionRecord]:
        """Filter subscriptions; order_by_score sorts highest score first."""
        pass

    @abstractmethod
    def count_pauses(self, subscription_id: str) -> int:
        pass

    @abstractmethod
    def count_additional_properties(self, user_id: str) -> int:
        pass

    @abstractmethod
    def total_reward_credits(self, user_id: str) -> float:
        pass

    @abstractmethod
    def count_bookings_since(self, user_id: str, since: datetime) -> int:
        pass

    @abstractmethod
    def update_churn_score(
        self,
        subscription_id: str,
        score: float,
        expected_version: Optional[int] = None,
    ) -> SubscriptionRecord:
        """
        Overwrite the stored churn risk score.

        Raises:
            EntityNotFoundError: If the subscription does not exist
            StaleWriteError: If expected_version is given and no longer current
        """
        pass

    @abstractmethod
    def create_billing_adjustment(
        self,
        user_id: str,
        amount: float,
        type: str,
        reason: str,
        requires_approval: bool = False,
    ) -> BillingAdjustment:
        pass

    @abstractmethod
    def add_credit(self, user_id: str, amount: float, description: str) -> CreditTransaction:
        """
        Record a credit transaction and raise the subscription's available
        credit by the same amount, atomically.

        Raises:
            EntityNotFoundError: If the user has no subscription
        """
        pass

    def build_snapshot(
        self,
        user_id: str,
        now: Optional[datetime] = None,
        booking_window_days: int = 60,
    ) -> Optional[SubscriberSnapshot]:
        """
        Assemble the scoring snapshot for a user.

        Returns None for an unknown user, and a snapshot without a
        subscription date when the user has no subscription.
        """
        if self.get_user(user_id) is None:
            return None

        subscription = self.get_subscription_for_user(user_id)
        if subscription is None:
            return SubscriberSnapshot(user_id=user_id, subscription_created_at=None)

        now = now or utcnow()
        return SubscriberSnapshot(
            user_id=user_id,
            subscription_created_at=subscription.created_at,
            payment_frequency=subscription.payment_frequency,
            pause_count=self.count_pauses(subscription.id),
            priority_booking_used=subscription.priority_booking_used,
            discount_used=subscription.discount_used,
            free_service_used=subscription.free_service_used,
            emergency_service_used=subscription.emergency_service_used,
            additional_property_count=self.count_additional_properties(user_id),
            total_reward_credits=self.total_reward_credits(user_id),
            recent_booking_count=self.count_bookings_since(
                user_id, now - timedelta(days=booking_window_days)
            ),
            tier=subscription.tier,
        )


class InMemoryChurnStore(ChurnStore):
    """
    Dictionary-backed store.

    Reads return copies so callers hold a snapshot of the row, the same
    way an ORM query would.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._ids = itertools.count(1)
        self.users: dict[str, UserRecord] = {}
        self.subscriptions: dict[str, SubscriptionRecord] = {}
        self.pauses: dict[str, int] = {}
        self.additional_properties: dict[str, int] = {}
        self.reward_credits: dict[str, list[float]] = {}
        self.bookings: list[BookingRecord] = []
        self.billing_adjustments: list[BillingAdjustment] = []
        self.credit_transactions: list[CreditTransaction] = []

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}_{next(self._ids)}"

    # --- seeding -------------------------------------------------------

    def add_user(self, user: UserRecord) -> UserRecord:
        with self._lock:
            self.users[user.id] = user
        return user

    def add_subscription(self, subscription: SubscriptionRecord) -> SubscriptionRecord:
        with self._lock:
            self.subscriptions[subscription.id] = subscription
        return subscription

    def add_pauses(self, subscription_id: str, count: int = 1) -> None:
        with self._lock:
            self.pauses[subscription_id] = self.pauses.get(subscription_id, 0) + count

    def add_properties(self, user_id: str, count: int = 1) -> None:
        with self._lock:
            self.additional_properties[user_id] = (
                self.additional_properties.get(user_id, 0) + count
            )

    def add_reward_credit(self, user_id: str, amount: float) -> None:
        with self._lock:
            self.reward_credits.setdefault(user_id, []).append(amount)

    def add_booking(self, user_id: str, created_at: datetime) -> BookingRecord:
        booking = BookingRecord(self._next_id("booking"), user_id, created_at)
        with self._lock:
            self.bookings.append(booking)
        return booking

    # --- reads ---------------------------------------------------------

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        with self._lock:
            user = self.users.get(user_id)
            return replace(user) if user else None

    def _current_subscription(self, user_id: str) -> Optional[SubscriptionRecord]:
        # Caller holds the lock
        candidates = [s for s in self.subscriptions.values() if s.user_id == user_id]
        if not candidates:
            return None
        return min(
            candidates,
            key=lambda s: (STATUS_PREFERENCE.index(s.status), -as_utc(s.created_at).timestamp()),
        )

    def get_subscription_for_user(self, user_id: str) -> Optional[SubscriptionRecord]:
        with self._lock:
            subscription = self._current_subscription(user_id)
            return replace(subscription) if subscription else None

    def find_subscriptions(
        self,
        status: Optional[SubscriptionStatus] = None,
        min_score: Optional[float] = None,
        order_by_score: bool = False,
        limit: Optional[int] = None,
    ) -> list[SubscriptionRecord]:
        with self._lock:
            rows = [replace(s) for s in self.subscriptions.values()]

        if status is not None:
            rows = [s for s in rows if s.status == status]
        if min_score is not None:
            rows = [s for s in rows if s.churn_risk_score >= min_score]
        if order_by_score:
            rows.sort(key=lambda s: s.churn_risk_score, reverse=True)
        if limit is not None:
            rows = rows[:limit]
        return rows

    def count_pauses(self, subscription_id: str) -> int:
        with self._lock:
            return self.pauses.get(subscription_id, 0)

    def count_additional_properties(self, user_id: str) -> int:
        with self._lock:
            return self.additional_properties.get(user_id, 0)

    def total_reward_credits(self, user_id: str) -> float:
        with self._lock:
            return float(sum(self.reward_credits.get(user_id, [])))

    def count_bookings_since(self, user_id: str, since: datetime) -> int:
        with self._lock:
            return sum(
                1 for b in self.bookings
                if b.user_id == user_id and b.created_at >= since
            )

    # --- writes --------------------------------------------------------

    def update_churn_score(
        self,
        subscription_id: str,
        score: float,
        expected_version: Optional[int] = None,
    ) -> SubscriptionRecord:
        with self._lock:
            subscription = self.subscriptions.get(subscription_id)
            if subscription is None:
                raise EntityNotFoundError("Subscription", subscription_id)
            if expected_version is not None and subscription.version != expected_version:
                raise StaleWriteError(subscription_id, expected_version, subscription.version)

            subscription.churn_risk_score = score
            subscription.version += 1
            subscription.updated_at = utcnow()
            return replace(subscription)

    def create_billing_adjustment(
        self,
        user_id: str,
        amount: float,
        type: str,
        reason: str,
        requires_approval: bool = False,
    ) -> BillingAdjustment:
        adjustment = BillingAdjustment(
            id=self._next_id("adj"),
            user_id=user_id,
            amount=amount,
            type=type,
            reason=reason,
            requires_approval=requires_approval,
        )
        with self._lock:
            self.billing_adjustments.append(adjustment)
        return adjustment

    def add_credit(self, user_id: str, amount: float, description: str) -> CreditTransaction:
        with self._lock:
            subscription = self._current_subscription(user_id)
            if subscription is None:
                raise EntityNotFoundError("Subscription", user_id)

            transaction = CreditTransaction(
                id=self._next_id("credit"),
                user_id=user_id,
                amount=amount,
                type="EARNED",
                description=description,
            )
            self.credit_transactions.append(transaction)
            subscription.available_credits += amount
            subscription.version += 1
            subscription.updated_at = utcnow()

        logger.debug(f"Credited {amount} to user {user_id}")
        return transaction

    @classmethod
    def from_frame(cls, df: pd.DataFrame, now: Optional[datetime] = None) -> "InMemoryChurnStore":
        """
        Seed a store from an account export, one row per user.

        Required columns: USER_ID, EMAIL. Rows with a SUBSCRIPTION_ID also
        need TIER and CREATED_AT. RECENT_BOOKING_COUNT rows become bookings
        dated one day before `now`.
        """
        missing = {"USER_ID", "EMAIL"} - set(df.columns)
        if missing:
            raise ValueError(f"Missing required columns: {missing}")

        now = now or utcnow()
        store = cls()
        for row in df.to_dict("records"):
            row = {k: v for k, v in row.items() if not pd.isna(v)}
            user_id = str(row["USER_ID"])
            store.add_user(UserRecord(
                id=user_id,
                email=row["EMAIL"],
                name=row.get("NAME", ""),
                phone=str(row["PHONE"]) if "PHONE" in row else None,
            ))
            if "SUBSCRIPTION_ID" not in row:
                continue

            subscription_id = str(row["SUBSCRIPTION_ID"])
            store.add_subscription(SubscriptionRecord(
                id=subscription_id,
                user_id=user_id,
                tier=Tier(row["TIER"]),
                payment_frequency=PaymentFrequency(row.get("PAYMENT_FREQUENCY", "MONTHLY")),
                status=SubscriptionStatus(row.get("STATUS", "ACTIVE")),
                created_at=as_utc(row["CREATED_AT"]),
                churn_risk_score=float(row.get("CHURN_RISK_SCORE", 0.0)),
                lifetime_value=float(row.get("LIFETIME_VALUE", 0.0)),
                priority_booking_used=bool(row.get("PRIORITY_BOOKING_USED", False)),
                discount_used=bool(row.get("DISCOUNT_USED", False)),
                free_service_used=bool(row.get("FREE_SERVICE_USED", False)),
                emergency_service_used=bool(row.get("EMERGENCY_SERVICE_USED", False)),
            ))
            if row.get("PAUSE_COUNT"):
                store.add_pauses(subscription_id, int(row["PAUSE_COUNT"]))
            if row.get("ADDITIONAL_PROPERTY_COUNT"):
                store.add_properties(user_id, int(row["ADDITIONAL_PROPERTY_COUNT"]))
            if row.get("TOTAL_REWARD_CREDITS"):
                store.add_reward_credit(user_id, float(row["TOTAL_REWARD_CREDITS"]))
            for _ in range(int(row.get("RECENT_BOOKING_COUNT", 0))):
                store.add_booking(user_id, now - timedelta(days=1))
        return store
