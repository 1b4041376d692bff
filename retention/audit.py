"""
Append-only audit trail of retention attempts.

Every executed action, successful or not, becomes one RetentionAttempt.
With a path the attempts are written as JSON lines so they survive
restarts; without one they are kept in memory.
"""

import json
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from scoring.snapshot import as_utc, utcnow


@dataclass
class RetentionAttempt:
    """One retention action taken (or tried) for one user."""

    user_id: str
    workflow_type: str
    action: str
    success: bool
    timestamp: datetime = field(default_factory=utcnow)
    metadata: dict = field(default_factory=dict)
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "workflow_type": self.workflow_type,
            "action": self.action,
            "success": self.success,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RetentionAttempt":
        return cls(
            user_id=data["user_id"],
            workflow_type=data["workflow_type"],
            action=data["action"],
            success=data["success"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            metadata=data.get("metadata") or {},
            error=data.get("error"),
        )


class RetentionAuditLog:
    """Structured, append-only log of retention attempts."""

    COLUMNS = ["user_id", "workflow_type", "action", "success", "timestamp", "error"]

    def __init__(self, path: Optional[Path | str] = None):
        """
        Initialize audit log.

        Args:
            path: JSON-lines file to append to. None keeps attempts in memory.
        """
        self.path = Path(path) if path else None
        self._lock = threading.Lock()
        self._attempts: list[RetentionAttempt] = []
        if self.path:
            self.path.parent.mkdir(parents=True, exist_ok=True)

    def record(self, attempt: RetentionAttempt) -> RetentionAttempt:
        with self._lock:
            if self.path:
                with open(self.path, "a") as f:
                    f.write(json.dumps(attempt.to_dict(), default=str) + "\n")
            else:
                self._attempts.append(attempt)
        return attempt

    def get_attempts(
        self,
        user_id: Optional[str] = None,
        since: Optional[datetime] = None,
    ) -> list[RetentionAttempt]:
        """
        Load attempts, oldest first.

        Args:
            user_id: Only attempts for this user
            since: Only attempts at or after this time (naive means UTC)
        """
        with self._lock:
            if self.path:
                attempts = self._read_file()
            else:
                attempts = list(self._attempts)

        if user_id is not None:
            attempts = [a for a in attempts if a.user_id == user_id]
        if since is not None:
            since = as_utc(since)
            attempts = [a for a in attempts if as_utc(a.timestamp) >= since]
        return sorted(attempts, key=lambda a: a.timestamp)

    def _read_file(self) -> list[RetentionAttempt]:
        if not self.path.exists():
            return []
        with open(self.path) as f:
            return [
                RetentionAttempt.from_dict(json.loads(line))
                for line in f
                if line.strip()
            ]

    def get_summary_dataframe(self, since: Optional[datetime] = None) -> pd.DataFrame:
        """
        Get all attempts as a DataFrame.

        Returns:
            DataFrame with one row per attempt, newest first
        """
        attempts = self.get_attempts(since=since)
        if not attempts:
            return pd.DataFrame(columns=self.COLUMNS)

        df = pd.DataFrame([a.to_dict() for a in attempts])[self.COLUMNS]
        return df.sort_values("timestamp", ascending=False)
