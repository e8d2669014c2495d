"""Sweep Report: value types produced by the expiration sweep.

Invariants:
    - SweepResult counters are non-negative; errors == number of "error" details
    - to_dict() is JSON-serializable (datetimes as ISO strings)
"""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class ExpiredSanction:
    """A row flipped to inactive by the bulk deactivation step."""
    id: int
    user_id: int
    sanction_type: str


@dataclass
class SweepDetail:
    sanction_id: int | None
    user_id: int
    sanction_type: str
    action: str  # deactivated | user_updated | error
    error: str | None = None


@dataclass
class SweepResult:
    """Outcome of one expiration sweep tick."""
    started_at: datetime
    finished_at: datetime | None = None
    processed_sanctions: int = 0
    updated_users: int = 0
    errors: int = 0
    details: list[SweepDetail] = field(default_factory=list)

    @property
    def execution_time_ms(self) -> int:
        if self.finished_at is None:
            return 0
        return int((self.finished_at - self.started_at).total_seconds() * 1000)

    @property
    def is_noop(self) -> bool:
        return (
            self.processed_sanctions == 0
            and self.updated_users == 0
            and self.errors == 0
        )

    def error_details(self) -> list[SweepDetail]:
        return [d for d in self.details if d.action == "error"]

    def to_dict(self) -> dict:
        return {
            "processed_sanctions": self.processed_sanctions,
            "updated_users": self.updated_users,
            "errors": self.errors,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "execution_time_ms": self.execution_time_ms,
            "details": [
                {
                    "sanction_id": d.sanction_id,
                    "user_id": d.user_id,
                    "sanction_type": d.sanction_type,
                    "action": d.action,
                    "error": d.error,
                }
                for d in self.details
            ],
        }
