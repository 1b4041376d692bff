"""
Retention automation for subscriber churn.

Usage:
    from retention import RetentionOrchestrator, InMemoryChurnStore

    orchestrator = RetentionOrchestrator(store)
    summary = orchestrator.update_all_risk_scores()
    results = orchestrator.run_automated_campaigns()
"""

from .actions import RetentionAction, RetentionActionExecutor
from .audit import RetentionAttempt, RetentionAuditLog
from .config import RetentionConfig
from .errors import (
    EntityNotFoundError,
    RetentionError,
    StaleWriteError,
    UnknownRetentionActionError,
)
from .notifications import LoggingNotifier, Notifier
from .orchestrator import AutomationState, RetentionOrchestrator
from .store import (
    ChurnStore,
    InMemoryChurnStore,
    SubscriptionRecord,
    SubscriptionStatus,
    UserRecord,
)

__all__ = [
    "RetentionOrchestrator",
    "AutomationState",
    "RetentionAction",
    "RetentionActionExecutor",
    "RetentionAttempt",
    "RetentionAuditLog",
    "RetentionConfig",
    "ChurnStore",
    "InMemoryChurnStore",
    "SubscriptionRecord",
    "SubscriptionStatus",
    "UserRecord",
    "Notifier",
    "LoggingNotifier",
    "RetentionError",
    "EntityNotFoundError",
    "StaleWriteError",
    "UnknownRetentionActionError",
]
