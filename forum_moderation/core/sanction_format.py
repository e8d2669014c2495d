"""Sanction Formatting: pure presentation of sanction records and user summaries.

Invariants:
    - Output is a flat JSON-serializable dict (datetimes as ISO strings)
    - remaining_time present only for temporary, unexpired sanctions
    - Never reads relationships: callers pass related users explicitly
"""

from datetime import datetime

from forum_moderation.core.repository_protocols import SanctionLike, UserLike
from forum_moderation.core.sanction_timing import (
    ensure_utc, format_duration, is_expired, is_permanent, remaining_time,
)


def _iso(value: datetime | None) -> str | None:
    value = ensure_utc(value)
    return value.isoformat() if value else None


def summarize_user(user: UserLike | None) -> dict | None:
    """Display data for an actor or target."""
    if user is None:
        return None
    return {"id": user.id, "username": user.username, "role": user.role_name}


def format_sanction(sanction: SanctionLike, now: datetime) -> dict:
    remaining = remaining_time(sanction, now)
    return {
        "id": sanction.id,
        "user_id": sanction.user_id,
        "moderator_id": sanction.moderator_id,
        "sanction_type": str(getattr(sanction.sanction_type, "value", sanction.sanction_type)),
        "reason": sanction.reason,
        "severity": str(getattr(sanction.severity, "value", sanction.severity)),
        "duration": format_duration(sanction),
        "duration_hours": sanction.duration_hours,
        "is_active": bool(sanction.is_active),
        "is_expired": is_expired(sanction, now),
        "is_permanent": is_permanent(sanction),
        "is_automatic": bool(sanction.is_automatic),
        "evidence": sanction.evidence,
        "starts_at": _iso(sanction.starts_at),
        "expires_at": _iso(sanction.expires_at),
        "created_at": _iso(sanction.created_at),
        "updated_at": _iso(sanction.updated_at),
        "revoked_at": _iso(sanction.revoked_at),
        "revoked_by": sanction.revoked_by,
        "revoke_reason": sanction.revoke_reason,
        "remaining_time": remaining.to_dict() if remaining else None,
    }


def user_flags_summary(user: UserLike) -> dict:
    """Target display data plus the account flags moderators care about."""
    return {
        **summarize_user(user),
        "is_banned": bool(user.is_banned),
        "is_silenced": bool(user.is_silenced),
        "silenced_until": _iso(user.silenced_until),
        "warnings_count": user.warnings_count or 0,
    }


def banned_user_summary(user: UserLike, banner: UserLike | None) -> dict:
    """Banned-users row: who is banned, since when, why and by whom."""
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "banned_at": _iso(user.banned_at),
        "ban_reason": user.ban_reason,
        "banned_by": {
            "id": user.banned_by,
            "username": banner.username if banner else "Unknown",
        },
    }
