"""Account Effects: projection of sanctions onto a user's account flags.

Invariants:
    - All functions are PURE: (flags, sanctions) -> new flags, inputs never mutated
    - reconcile_from_active_set is a full recomputation over the active set:
      releasing one of several overlapping sanctions never clears a flag
      another active sanction still justifies
    - Ban fields come from the most recently started active ban-kind sanction
    - silenced_until is the furthest-reaching active silence; None while silenced
      means indefinite
    - warnings_count / last_warning_at are permanent counters, never reconciled
    - restriction and ip_ban have no flag projection

Design Decisions:
    - AccountFlags as a frozen dataclass: commands and the sweep diff old vs new
      and persist only changed columns (flag_changes)
"""

from dataclasses import dataclass, fields, replace
from datetime import datetime
from typing import Iterable

from forum_moderation.core.domain_types import BAN_KINDS, SILENCE_KINDS, SanctionKind
from forum_moderation.core.repository_protocols import SanctionLike, UserLike
from forum_moderation.core.sanction_timing import ensure_utc


@dataclass(frozen=True)
class AccountFlags:
    is_banned: bool = False
    banned_at: datetime | None = None
    banned_by: int | None = None
    ban_reason: str | None = None
    is_silenced: bool = False
    silenced_until: datetime | None = None
    warnings_count: int = 0
    last_warning_at: datetime | None = None

    @classmethod
    def from_user(cls, user: UserLike) -> "AccountFlags":
        return cls(
            is_banned=bool(user.is_banned),
            banned_at=ensure_utc(user.banned_at),
            banned_by=user.banned_by,
            ban_reason=user.ban_reason,
            is_silenced=bool(user.is_silenced),
            silenced_until=ensure_utc(user.silenced_until),
            warnings_count=user.warnings_count or 0,
            last_warning_at=ensure_utc(user.last_warning_at),
        )


def _kind(sanction: SanctionLike) -> SanctionKind | None:
    try:
        return SanctionKind(sanction.sanction_type)
    except ValueError:
        return None


def _further_expiry(a: datetime | None, b: datetime | None) -> datetime | None:
    """Later of two expiries; None (indefinite) outlasts any date."""
    if a is None or b is None:
        return None
    return max(ensure_utc(a), ensure_utc(b))


def _ban_fields(sanction: SanctionLike) -> dict:
    return {
        "is_banned": True,
        "banned_at": ensure_utc(sanction.starts_at),
        "banned_by": sanction.moderator_id,
        "ban_reason": sanction.reason,
    }


def _cleared_ban() -> dict:
    return {"is_banned": False, "banned_at": None, "banned_by": None, "ban_reason": None}


def apply_effects(
    flags: AccountFlags, sanction: SanctionLike, now: datetime,
) -> AccountFlags:
    """Flags after a single newly issued sanction takes effect."""
    kind = _kind(sanction)
    if kind == SanctionKind.WARNING:
        return replace(
            flags,
            warnings_count=flags.warnings_count + 1,
            last_warning_at=ensure_utc(now),
        )
    if kind in SILENCE_KINDS:
        until = ensure_utc(sanction.expires_at)
        if flags.is_silenced:
            until = _further_expiry(flags.silenced_until, until)
        return replace(flags, is_silenced=True, silenced_until=until)
    if kind in BAN_KINDS:
        return replace(flags, **_ban_fields(sanction))
    return flags


def reconcile_from_active_set(
    flags: AccountFlags, active: Iterable[SanctionLike],
) -> AccountFlags:
    """Re-derive ban and silence flags from every sanction still in force."""
    active = list(active)
    bans = [s for s in active if _kind(s) in BAN_KINDS]
    silences = [s for s in active if _kind(s) in SILENCE_KINDS]

    if bans:
        latest = max(bans, key=lambda s: (ensure_utc(s.starts_at), s.id or 0))
        ban = _ban_fields(latest)
    else:
        ban = _cleared_ban()

    if silences:
        until = ensure_utc(silences[0].expires_at)
        for s in silences[1:]:
            until = _further_expiry(until, s.expires_at)
        silence = {"is_silenced": True, "silenced_until": until}
    else:
        silence = {"is_silenced": False, "silenced_until": None}

    return replace(flags, **ban, **silence)


def flag_changes(before: AccountFlags, after: AccountFlags) -> dict:
    """Column updates needed to move a user from `before` to `after`."""
    changes = {}
    for f in fields(AccountFlags):
        old, new = getattr(before, f.name), getattr(after, f.name)
        if old != new:
            changes[f.name] = new
    return changes
