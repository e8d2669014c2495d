"""Sanction Timing: expiry computation, permanence and duration strings.

Tests:
    - expires_at == starts_at + duration exactly
    - permanent_ban ignores any duration
    - expired / in-force checks, naive datetimes read as UTC
    - remaining time breakdown and formatted durations
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from forum_moderation.core.domain_types import SanctionKind
from forum_moderation.core.sanction_timing import (
    compute_expires_at, effective_duration, ensure_utc, format_duration,
    is_expired, is_in_force, is_permanent, remaining_time,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _sanction(kind="silence", hours=None, active=True, expires_at=None):
    if hours and expires_at is None:
        expires_at = NOW + timedelta(hours=hours)
    return SimpleNamespace(
        sanction_type=kind, duration_hours=hours,
        expires_at=expires_at, is_active=active,
    )


def test_expires_at_is_start_plus_duration():
    assert compute_expires_at(SanctionKind.SILENCE, 24, NOW) == NOW + timedelta(hours=24)


def test_no_duration_means_no_expiry():
    assert compute_expires_at(SanctionKind.TEMP_SUSPEND, None, NOW) is None


def test_permanent_ban_ignores_duration():
    assert compute_expires_at(SanctionKind.PERMANENT_BAN, 48, NOW) is None
    assert effective_duration(SanctionKind.PERMANENT_BAN, 48) is None


def test_permanent_vs_temporary():
    assert is_permanent(_sanction("permanent_ban"))
    assert not is_permanent(_sanction("silence", hours=2))
    assert not is_permanent(_sanction("warning"))


def test_is_expired_and_in_force():
    past = _sanction(expires_at=NOW - timedelta(minutes=1))
    assert is_expired(past, NOW)
    assert not is_in_force(past, NOW)
    future = _sanction(hours=1)
    assert not is_expired(future, NOW)
    assert is_in_force(future, NOW)
    assert not is_in_force(_sanction(hours=1, active=False), NOW)


def test_naive_datetimes_are_utc():
    naive = datetime(2026, 3, 1, 11, 0)
    assert ensure_utc(naive) == datetime(2026, 3, 1, 11, 0, tzinfo=timezone.utc)
    assert is_expired(_sanction(expires_at=naive), NOW)


def test_remaining_time_breakdown():
    s = _sanction(expires_at=NOW + timedelta(days=1, hours=2, minutes=30))
    assert remaining_time(s, NOW).to_dict() == {"days": 1, "hours": 2, "minutes": 30}


def test_remaining_time_absent_for_permanent_or_expired():
    assert remaining_time(_sanction("permanent_ban"), NOW) is None
    assert remaining_time(_sanction(expires_at=NOW - timedelta(hours=1)), NOW) is None


@pytest.mark.parametrize("kind,hours,expected", [
    ("permanent_ban", None, "Permanent"),
    ("warning", None, "Not specified"),
    ("silence", 1, "1 hour"),
    ("silence", 5, "5 hours"),
    ("temp_suspend", 24, "1 day"),
    ("temp_suspend", 72, "3 days"),
])
def test_format_duration(kind, hours, expected):
    assert format_duration(_sanction(kind, hours=hours)) == expected


def test_expired_at_the_exact_expiry_instant():
    s = _sanction(expires_at=NOW)
    assert is_expired(s, NOW)
    assert not is_in_force(s, NOW)
    assert remaining_time(s, NOW) is None
