"""
Transaction feed data models.

Wire-level transactions are pydantic models; feed and creation state are
frozen dataclasses so that every change produces a new object observers
can compare by identity.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Transaction(BaseModel):
    """A transaction as returned by the commission service."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    amount: float
    commission: float
    executed_at: datetime = Field(alias="executedAt")

    @field_validator("executed_at")
    @classmethod
    def _as_instant(cls, value: datetime) -> datetime:
        # The service emits local date-times without an offset
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the wire field names."""
        return self.model_dump(mode="json", by_alias=True)


Snapshot = Tuple[Transaction, ...]


def sort_snapshot(transactions: Iterable[Transaction]) -> Snapshot:
    """
    Order transactions newest first.

    The sort is stable, so transactions sharing an ``executedAt`` keep the
    order in which the server returned them.
    """
    return tuple(sorted(transactions, key=lambda tx: tx.executed_at, reverse=True))


@dataclass(frozen=True)
class FeedState:
    """Latest view of the transaction feed."""

    loading: bool = False
    error: Optional[str] = None
    last_updated: Optional[datetime] = None
    snapshot: Snapshot = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "loading": self.loading,
            "error": self.error,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
            "snapshot": [tx.to_dict() for tx in self.snapshot],
        }


@dataclass(frozen=True)
class CreationState:
    """Outcome of the latest creation attempt."""

    pending: bool = False
    message: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"pending": self.pending, "message": self.message, "error": self.error}
