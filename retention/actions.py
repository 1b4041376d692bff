"""
Retention actions.

The closed set of interventions the orchestrator can take for a customer.
Every execution is written to the audit log, whether it worked or not.
"""

import logging
from enum import Enum
from typing import Optional

from .audit import RetentionAttempt, RetentionAuditLog
from .config import RetentionConfig
from .errors import EntityNotFoundError, UnknownRetentionActionError
from .notifications import Notifier
from .store import ChurnStore, UserRecord

logger = logging.getLogger(__name__)


class RetentionAction(str, Enum):
    EMAIL = "EMAIL"
    CALL = "CALL"
    DISCOUNT = "DISCOUNT"
    CREDIT = "CREDIT"


ACTION_ALIASES = {"SMS": RetentionAction.CALL}

RETENTION_EMAIL_SUBJECT = "We'd love to keep taking care of your home"
RETENTION_EMAIL_BODY = (
    "Hi {name},\n\n"
    "We noticed you haven't been getting the most out of your plan. "
    "Reply to this email or book a visit from your dashboard and we'll "
    "make sure your home is looked after.\n"
)
RETENTION_SMS = "Hi {name}, your home care team will call you shortly to check in on your plan."


def parse_action(action) -> RetentionAction:
    """
    Resolve an action name or enum member.

    Raises:
        UnknownRetentionActionError: If the action is not in the closed set
    """
    if isinstance(action, RetentionAction):
        return action
    name = str(action).strip().upper()
    if name in ACTION_ALIASES:
        return ACTION_ALIASES[name]
    try:
        return RetentionAction(name)
    except ValueError:
        raise UnknownRetentionActionError(action) from None


class RetentionActionExecutor:
    """Executes retention actions against the store and notifier."""

    def __init__(
        self,
        store: ChurnStore,
        notifier: Notifier,
        audit_log: RetentionAuditLog,
        config: Optional[RetentionConfig] = None,
    ):
        self.store = store
        self.notifier = notifier
        self.audit_log = audit_log
        self.config = config or RetentionConfig()

    def execute(
        self,
        action,
        user_id: str,
        workflow_type: str = "MANUAL",
        metadata: Optional[dict] = None,
    ) -> dict:
        """
        Execute one action for one user.

        Args:
            action: RetentionAction or its name ("EMAIL", "CALL"/"SMS",
                "DISCOUNT", "CREDIT")
            user_id: Customer to act on
            workflow_type: Campaign or sweep that triggered the action
            metadata: Extra context stored with the audit entry

        Returns:
            Dictionary describing what was done

        Raises:
            UnknownRetentionActionError: For an action outside the closed set
            EntityNotFoundError: If the user (or, for CREDIT, the
                subscription) does not exist
        """
        metadata = dict(metadata or {})
        try:
            resolved = parse_action(action)
            handler = {
                RetentionAction.EMAIL: self._send_email,
                RetentionAction.CALL: self._schedule_call,
                RetentionAction.DISCOUNT: self._apply_discount,
                RetentionAction.CREDIT: self._apply_credit,
            }[resolved]
            detail = handler(self._require_user(user_id))
        except Exception as e:
            logger.warning(
                f"Retention action {action} failed for user {user_id} ({workflow_type}): {e}"
            )
            self.audit_log.record(RetentionAttempt(
                user_id=user_id,
                workflow_type=workflow_type,
                action=str(getattr(action, "value", action)),
                success=False,
                metadata=metadata,
                error=str(e),
            ))
            raise

        metadata.update(detail)
        self.audit_log.record(RetentionAttempt(
            user_id=user_id,
            workflow_type=workflow_type,
            action=resolved.value,
            success=True,
            metadata=metadata,
        ))
        logger.info(f"Retention action {resolved.value} executed for user {user_id} ({workflow_type})")
        return {"action": resolved.value, "user_id": user_id, **detail}

    def _require_user(self, user_id: str) -> UserRecord:
        user = self.store.get_user(user_id)
        if user is None:
            raise EntityNotFoundError("User", user_id)
        return user

    def _send_email(self, user: UserRecord) -> dict:
        self.notifier.send_email(
            user.email,
            RETENTION_EMAIL_SUBJECT,
            RETENTION_EMAIL_BODY.format(name=user.name or "there"),
        )
        return {"channel": "email", "to": user.email}

    def _schedule_call(self, user: UserRecord) -> dict:
        if user.phone:
            self.notifier.send_sms(user.phone, RETENTION_SMS.format(name=user.name or "there"))
        self.notifier.schedule_call(user.id, "Churn risk retention call")
        return {"channel": "call", "sms_sent": bool(user.phone)}

    def _apply_discount(self, user: UserRecord) -> dict:
        adjustment = self.store.create_billing_adjustment(
            user_id=user.id,
            amount=self.config.discount_amount,
            type="DISCOUNT",
            reason="Retention discount",
            requires_approval=False,
        )
        return {"adjustment_id": adjustment.id, "amount": adjustment.amount}

    def _apply_credit(self, user: UserRecord) -> dict:
        transaction = self.store.add_credit(
            user.id, self.config.credit_amount, "Retention credit"
        )
        return {"transaction_id": transaction.id, "amount": transaction.amount}
