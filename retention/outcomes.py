"""
Per-item results for sweeps and campaigns.

Each subscriber processed in a loop yields one ItemOutcome. fold_outcomes
separates successes from failures so partial-failure behavior can be
checked without any I/O.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from .errors import EntityNotFoundError, StaleWriteError, UnknownRetentionActionError


class ErrorKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    UNKNOWN_ACTION = "UNKNOWN_ACTION"
    CONFLICT = "CONFLICT"
    FAILURE = "FAILURE"


def classify_error(error: Exception) -> ErrorKind:
    """Map an exception to its ErrorKind."""
    if isinstance(error, EntityNotFoundError):
        return ErrorKind.NOT_FOUND
    if isinstance(error, UnknownRetentionActionError):
        return ErrorKind.UNKNOWN_ACTION
    if isinstance(error, StaleWriteError):
        return ErrorKind.CONFLICT
    return ErrorKind.FAILURE


@dataclass
class ItemOutcome:
    """Success value or classified error for one item."""

    item_id: str
    value: Any = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, item_id: str, value: Any = None) -> "ItemOutcome":
        return cls(item_id=item_id, value=value)

    @classmethod
    def failure(cls, item_id: str, error: Exception) -> "ItemOutcome":
        return cls(item_id=item_id, error=str(error), kind=classify_error(error))


def attempt(item_id: str, func: Callable[[], Any]) -> ItemOutcome:
    """Run func, turning any exception into a failed outcome."""
    try:
        return ItemOutcome.success(item_id, func())
    except Exception as e:
        return ItemOutcome.failure(item_id, e)


@dataclass
class FoldedOutcomes:
    """Successes and failures of one loop, in processing order."""

    succeeded: list[ItemOutcome] = field(default_factory=list)
    failed: list[ItemOutcome] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    def errors(self, id_key: str = "customer_id") -> list[dict]:
        return [{id_key: o.item_id, "error": o.error} for o in self.failed]

    def counts(self) -> dict:
        return {"processed": len(self.succeeded), "failed": len(self.failed)}


def fold_outcomes(outcomes: Iterable[ItemOutcome]) -> FoldedOutcomes:
    folded = FoldedOutcomes()
    for outcome in outcomes:
        (folded.succeeded if outcome.ok else folded.failed).append(outcome)
    return folded
