"""
Retention orchestrator.

Re-scores active subscriptions on a schedule, runs retention campaigns for
the riskiest customers, and reports on the results.

Usage:
    from retention import RetentionOrchestrator, InMemoryChurnStore

    orchestrator = RetentionOrchestrator(store)
    orchestrator.update_all_risk_scores()
    orchestrator.run_automated_campaigns()

    # Background automation
    orchestrator.start_automation()
    ...
    orchestrator.stop_automation()
"""

import logging
import threading
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional

import pandas as pd

from scoring import RiskScorer
from scoring.evaluation import evaluate_predictions
from scoring.snapshot import as_utc, utcnow

from .actions import RetentionAction, RetentionActionExecutor
from .audit import RetentionAuditLog
from .config import RetentionConfig
from .notifications import LoggingNotifier, Notifier
from .outcomes import ItemOutcome, attempt, fold_outcomes
from .scheduler import PeriodicTask
from .store import ChurnStore, SubscriptionRecord, SubscriptionStatus

logger = logging.getLogger(__name__)

CRITICAL_SEQUENCE = [RetentionAction.CREDIT, RetentionAction.CALL, RetentionAction.EMAIL]


class AutomationState(str, Enum):
    IDLE = "IDLE"
    RUNNING = "RUNNING"


class RetentionOrchestrator:
    """
    Churn management workflows over a ChurnStore.

    Sweeps process subscribers one at a time. A failure for one subscriber
    is recorded and the sweep moves on; nothing is retried.
    """

    def __init__(
        self,
        store: ChurnStore,
        scorer: Optional[RiskScorer] = None,
        notifier: Optional[Notifier] = None,
        config: Optional[RetentionConfig] = None,
        audit_log: Optional[RetentionAuditLog] = None,
    ):
        self.store = store
        self.scorer = scorer or RiskScorer()
        self.config = config or RetentionConfig()
        self.audit_log = audit_log or RetentionAuditLog(self.config.audit_log_path)
        self.executor = RetentionActionExecutor(
            store, notifier or LoggingNotifier(), self.audit_log, self.config
        )
        self.state = AutomationState.IDLE
        self._state_lock = threading.Lock()
        self._tasks: Dict[str, PeriodicTask] = {}

    # === Automation lifecycle ===

    def start_automation(self) -> bool:
        """
        Schedule the re-scoring and campaign jobs.

        Returns:
            True if automation started, False if it was already running
        """
        with self._state_lock:
            if self.state == AutomationState.RUNNING:
                logger.info("Retention automation already running")
                return False

            self._tasks = {
                "rescore": PeriodicTask(
                    "rescore",
                    self.update_all_risk_scores,
                    self.config.rescore_interval_seconds,
                ),
                "campaigns": PeriodicTask(
                    "campaigns",
                    self.run_automated_campaigns,
                    self.config.campaign_interval_seconds,
                ),
            }
            for task in self._tasks.values():
                task.start()
            self.state = AutomationState.RUNNING

        logger.info("Retention automation started")
        return True

    def stop_automation(self) -> bool:
        """
        Cancel both scheduled jobs. A sweep already in progress runs to
        completion.

        Returns:
            True if automation was running, False if it was already idle
        """
        with self._state_lock:
            if self.state == AutomationState.IDLE:
                return False
            for task in self._tasks.values():
                task.cancel()
            self.state = AutomationState.IDLE

        logger.info("Retention automation stopped")
        return True

    @property
    def is_running(self) -> bool:
        return self.state == AutomationState.RUNNING

    def automation_status(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "tasks": {name: task.status() for name, task in self._tasks.items()},
        }

    # === Scoring sweep ===

    def update_all_risk_scores(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """
        Re-score every ACTIVE subscription and persist the new score.

        Each write is checked against the version read at the start of the
        sweep, so a concurrent writer causes a counted failure instead of a
        silently lost update.

        Returns:
            {"updated": n, "failed": n, "total": n}
        """
        now = now or utcnow()
        subscriptions = self.store.find_subscriptions(status=SubscriptionStatus.ACTIVE)
        logger.info(f"Re-scoring {len(subscriptions)} active subscriptions")

        outcomes = []
        for subscription in subscriptions:
            outcome = attempt(
                subscription.id, lambda: self._rescore(subscription, now)
            )
            if not outcome.ok:
                logger.error(
                    f"Failed to update churn score for subscription {subscription.id}: {outcome.error}"
                )
            outcomes.append(outcome)

        folded = fold_outcomes(outcomes)
        summary = {
            "updated": len(folded.succeeded),
            "failed": len(folded.failed),
            "total": folded.total,
        }
        logger.info(f"Churn score sweep complete: {summary}")
        return summary

    def _rescore(self, subscription: SubscriptionRecord, now: datetime) -> float:
        snapshot = self.store.build_snapshot(
            subscription.user_id, now, self.config.recent_booking_days
        )
        assessment = self.scorer.compute_risk_score(snapshot, now)
        self.store.update_churn_score(
            subscription.id,
            assessment.risk_score,
            expected_version=subscription.version,
        )
        return assessment.risk_score

    # === Campaigns ===

    def select_high_risk_action(self, subscription: SubscriptionRecord) -> RetentionAction:
        """Pick the single action for a HIGH band customer."""
        if subscription.lifetime_value > self.config.discount_ltv_threshold:
            return RetentionAction.DISCOUNT
        if subscription.tier == self.config.premium_tier:
            return RetentionAction.CREDIT
        return RetentionAction.EMAIL

    def run_automated_campaigns(self) -> Dict[str, Dict[str, int]]:
        """
        Run retention actions for the highest-risk active customers.

        CRITICAL customers get credit, call and email; HIGH customers get
        one action chosen by select_high_risk_action.

        Returns:
            {"critical": {"processed": n, "failed": n},
             "high": {"processed": n, "failed": n}}
        """
        candidates = self.store.find_subscriptions(
            status=SubscriptionStatus.ACTIVE,
            min_score=self.config.high_risk_threshold,
            order_by_score=True,
            limit=self.config.campaign_batch_limit,
        )
        critical = [
            s for s in candidates if s.churn_risk_score >= self.config.critical_threshold
        ]
        high = [
            s for s in candidates if s.churn_risk_score < self.config.critical_threshold
        ]
        logger.info(
            f"Running retention campaigns: {len(critical)} critical, {len(high)} high risk"
        )

        critical_outcomes = [self._run_critical_sequence(s) for s in critical]

        high_outcomes = []
        for subscription in high:
            action = self.select_high_risk_action(subscription)
            high_outcomes.append(attempt(
                subscription.user_id,
                lambda: self.executor.execute(
                    action,
                    subscription.user_id,
                    workflow_type="HIGH_RISK",
                    metadata={"churn_risk_score": subscription.churn_risk_score},
                ),
            ))

        results = {
            "critical": fold_outcomes(critical_outcomes).counts(),
            "high": fold_outcomes(high_outcomes).counts(),
        }
        logger.info(f"Retention campaigns complete: {results}")
        return results

    def _run_critical_sequence(self, subscription: SubscriptionRecord) -> ItemOutcome:
        """Execute every CRITICAL action; each one is caught on its own."""
        steps = []
        for action in CRITICAL_SEQUENCE:
            steps.append(attempt(
                action.value,
                lambda: self.executor.execute(
                    action,
                    subscription.user_id,
                    workflow_type="CRITICAL_RISK",
                    metadata={"churn_risk_score": subscription.churn_risk_score},
                ),
            ))

        failed = fold_outcomes(steps).failed
        if failed:
            message = "; ".join(f"{o.item_id}: {o.error}" for o in failed)
            return ItemOutcome(
                item_id=subscription.user_id, error=message, kind=failed[0].kind
            )
        return ItemOutcome.success(subscription.user_id, [o.value for o in steps])

    def run_retention_campaign(self, workflow_type, customer_ids: list[str]) -> Dict[str, Any]:
        """
        Run one action type for an explicit list of customers.

        Args:
            workflow_type: Action name ("EMAIL", "CALL", "DISCOUNT", "CREDIT")
            customer_ids: User ids to act on

        Returns:
            {"success": bool, "processed": n, "failed": n,
             "errors": [{"customer_id": ..., "error": ...}]}
        """
        outcomes = []
        for customer_id in customer_ids:
            outcomes.append(attempt(
                customer_id,
                lambda: self.executor.execute(
                    workflow_type, customer_id, workflow_type="MANUAL_CAMPAIGN"
                ),
            ))

        folded = fold_outcomes(outcomes)
        return {
            "success": not folded.failed,
            "processed": len(folded.succeeded),
            "failed": len(folded.failed),
            "errors": folded.errors("customer_id"),
        }

    def execute_retention_action(self, action, user_id: str,
                                 workflow_type: str = "MANUAL") -> dict:
        """Execute a single retention action. Errors propagate to the caller."""
        return self.executor.execute(action, user_id, workflow_type=workflow_type)

    # === Reporting ===

    def get_high_risk_customers(self, limit: Optional[int] = None) -> list[dict]:
        """Active customers at or above the high-risk threshold, riskiest first."""
        subscriptions = self.store.find_subscriptions(
            status=SubscriptionStatus.ACTIVE,
            min_score=self.config.high_risk_threshold,
            order_by_score=True,
            limit=limit,
        )
        return [
            {
                "user_id": s.user_id,
                "subscription_id": s.id,
                "churn_risk_score": s.churn_risk_score,
                "risk_level": self.scorer.config.get_risk_level(s.churn_risk_score),
                "tier": getattr(s.tier, "value", s.tier),
                "lifetime_value": s.lifetime_value,
            }
            for s in subscriptions
        ]

    def get_risk_distribution(self) -> Dict[str, int]:
        """Count active subscriptions in the high / medium / low reporting bands."""
        scores = pd.Series(
            [s.churn_risk_score for s in self.store.find_subscriptions(
                status=SubscriptionStatus.ACTIVE
            )],
            dtype=float,
        )
        high = scores >= self.config.distribution_high
        medium = (scores >= self.config.distribution_medium) & ~high
        return {
            "high": int(high.sum()),
            "medium": int(medium.sum()),
            "low": int((~high & ~medium).sum()),
        }

    def calculate_potential_revenue_loss(self) -> float:
        """Monthly price times revenue_loss_months for every high-band subscription."""
        at_risk = self.store.find_subscriptions(
            status=SubscriptionStatus.ACTIVE,
            min_score=self.config.distribution_high,
        )
        prices = self.config.tier_monthly_price
        return float(sum(
            prices.get(getattr(s.tier, "value", s.tier), 0.0) * self.config.revenue_loss_months
            for s in at_risk
        ))

    def get_total_at_risk(self) -> int:
        """Active subscriptions at medium risk or above."""
        return len(self.store.find_subscriptions(
            status=SubscriptionStatus.ACTIVE,
            min_score=self.config.distribution_medium,
        ))

    def get_average_risk_score(self) -> float:
        """Mean stored score over active subscriptions, 0 when there are none."""
        scores = pd.Series(
            [s.churn_risk_score for s in self.store.find_subscriptions(
                status=SubscriptionStatus.ACTIVE
            )],
            dtype=float,
        )
        return round(float(scores.mean()), 2) if not scores.empty else 0.0

    def get_churn_trends(self, now: Optional[datetime] = None,
                         window_days: Optional[int] = None) -> Dict[str, int]:
        """
        Count subscriptions updated within the trailing window.

        Any status is counted for the score bands, so a subscription that
        was scored high and then cancelled shows up in both new_high_risk
        and churned.

        Returns:
            {"new_high_risk": n, "improved": n, "churned": n}
        """
        now = as_utc(now) if now is not None else utcnow()
        window_days = self.config.trend_window_days if window_days is None else window_days
        start = now - timedelta(days=window_days)

        recent = [
            s for s in self.store.find_subscriptions()
            if start <= as_utc(s.updated_at) <= now
        ]
        return {
            "new_high_risk": sum(
                1 for s in recent if s.churn_risk_score >= self.config.distribution_high
            ),
            "improved": sum(
                1 for s in recent if s.churn_risk_score < self.config.distribution_medium
            ),
            "churned": sum(
                1 for s in recent if s.status == SubscriptionStatus.CANCELLED
            ),
        }

    def get_retention_stats(self, since: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Summarize recorded retention attempts.

        Returns:
            Totals, success rate, and per-action / per-workflow breakdowns
        """
        df = self.audit_log.get_summary_dataframe(since=since)
        if df.empty:
            return {
                "total_attempts": 0,
                "successful": 0,
                "failed": 0,
                "success_rate": 0.0,
                "by_action": {},
                "by_workflow": {},
            }

        successful = int(df["success"].sum())

        def breakdown(column: str) -> dict:
            grouped = df.groupby(column)["success"].agg(["count", "sum"])
            return {
                key: {"attempts": int(row["count"]), "successful": int(row["sum"])}
                for key, row in grouped.iterrows()
            }

        return {
            "total_attempts": int(len(df)),
            "successful": successful,
            "failed": int(len(df)) - successful,
            "success_rate": round(successful / len(df), 4),
            "by_action": breakdown("action"),
            "by_workflow": breakdown("workflow_type"),
        }

    def analyze_churn_accuracy(self, threshold: Optional[float] = None) -> dict:
        """
        Compare stored scores with what actually happened.

        Cancelled subscriptions count as churned, active ones as retained;
        paused subscriptions are left out.
        """
        threshold = self.config.high_risk_threshold if threshold is None else threshold
        rows = [
            {
                "USER_ID": s.user_id,
                "RISK_SCORE": s.churn_risk_score,
                "IS_CHURNED": int(s.status == SubscriptionStatus.CANCELLED),
            }
            for s in self.store.find_subscriptions()
            if s.status != SubscriptionStatus.PAUSED
        ]
        df = pd.DataFrame(rows, columns=["USER_ID", "RISK_SCORE", "IS_CHURNED"])
        return evaluate_predictions(df, threshold)

    def generate_churn_prevention_report(self) -> Dict[str, Any]:
        """
        Assemble the churn prevention report.

        Sub-calls are not caught individually: any failure aborts the report.
        """
        return {
            "generated_at": utcnow().isoformat(),
            "risk_distribution": self.get_risk_distribution(),
            "potential_revenue_loss": self.calculate_potential_revenue_loss(),
            "total_at_risk": self.get_total_at_risk(),
            "average_risk_score": self.get_average_risk_score(),
            "churn_trends": self.get_churn_trends(),
            "high_risk_customers": self.get_high_risk_customers(
                limit=self.config.report_high_risk_limit
            ),
            "retention_stats": self.get_retention_stats(),
            "accuracy": self.analyze_churn_accuracy(),
            "automation": self.automation_status(),
        }
