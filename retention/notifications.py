"""
Outbound notification collaborators.

Delivery (email provider, SMS gateway, call scheduling) lives outside this
package; the orchestrator only needs these three calls.
"""

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Fire-and-forget channels used by retention actions."""

    @abstractmethod
    def send_email(self, to: str, subject: str, body: str) -> None:
        pass

    @abstractmethod
    def send_sms(self, to: str, message: str) -> None:
        pass

    @abstractmethod
    def schedule_call(self, user_id: str, reason: str) -> None:
        pass


class LoggingNotifier(Notifier):
    """Default notifier: records the intent in the log and sends nothing."""

    def send_email(self, to: str, subject: str, body: str) -> None:
        logger.info(f"Email to {to}: {subject}")

    def send_sms(self, to: str, message: str) -> None:
        logger.info(f"SMS to {to}: {message}")

    def schedule_call(self, user_id: str, reason: str) -> None:
        logger.info(f"Call scheduled for user {user_id}: {reason}")
