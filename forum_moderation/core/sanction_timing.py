"""Sanction Timing: pure expiry, permanence and duration computations.

Invariants:
    - expires_at is None iff the kind is permanent_ban or no duration was given
    - expires_at == starts_at + duration_hours exactly when a duration applies
    - All comparisons happen on timezone-aware UTC datetimes (naive input is read as UTC)
    - A sanction is expired from the instant now == expires_at, matching the store and sweep
    - No IO, no clock reads except utc_now()
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from forum_moderation.core.domain_types import SanctionKind
from forum_moderation.core.repository_protocols import SanctionLike


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on read)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def effective_duration(kind: SanctionKind, duration_hours: int | None) -> int | None:
    """Duration actually stored: permanent bans never carry one."""
    if kind == SanctionKind.PERMANENT_BAN:
        return None
    return duration_hours or None


def compute_expires_at(
    kind: SanctionKind, duration_hours: int | None, starts_at: datetime,
) -> datetime | None:
    duration = effective_duration(kind, duration_hours)
    if duration is None:
        return None
    return ensure_utc(starts_at) + timedelta(hours=duration)


def is_expired(sanction: SanctionLike, now: datetime) -> bool:
    expires_at = ensure_utc(sanction.expires_at)
    if expires_at is None:
        return False
    return ensure_utc(now) >= expires_at


def is_temporary(sanction: SanctionLike) -> bool:
    return sanction.expires_at is not None


def is_permanent(sanction: SanctionLike) -> bool:
    """No expiry and not a warning (warnings are counters, not states)."""
    return (
        sanction.expires_at is None
        and sanction.sanction_type != SanctionKind.WARNING.value
    )


def is_in_force(sanction: SanctionLike, now: datetime) -> bool:
    """Active flag set and not past its expiry."""
    return bool(sanction.is_active) and not is_expired(sanction, now)


@dataclass(frozen=True)
class RemainingTime:
    days: int
    hours: int
    minutes: int

    def to_dict(self) -> dict:
        return {"days": self.days, "hours": self.hours, "minutes": self.minutes}


def remaining_time(sanction: SanctionLike, now: datetime) -> RemainingTime | None:
    """Breakdown of time left for a temporary, unexpired sanction."""
    expires_at = ensure_utc(sanction.expires_at)
    if expires_at is None or is_expired(sanction, now):
        return None
    total_minutes = int((expires_at - ensure_utc(now)).total_seconds() // 60)
    days, rest = divmod(total_minutes, 60 * 24)
    hours, minutes = divmod(rest, 60)
    return RemainingTime(days=days, hours=hours, minutes=minutes)


def format_duration(sanction: SanctionLike) -> str:
    """Human-readable duration: 'Permanent', 'N hour(s)' or 'N day(s)'."""
    if is_permanent(sanction):
        return "Permanent"
    hours = sanction.duration_hours
    if not hours:
        return "Not specified"
    if hours < 24:
        return f"{hours} hour{'s' if hours > 1 else ''}"
    days = hours // 24
    return f"{days} day{'s' if days > 1 else ''}"
