"""Expiration Sweep: verifies deactivation, per-user reconciliation and isolation.

Invariants:
    - Nothing expired -> zero result, no audit entry
    - Expired warning is deactivated without touching the counter
    - A remaining silence keeps the user silenced until the furthest remaining expiry
    - An expired suspension hands the ban fields to a ban still in force
    - One user's failure does not block the others
"""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from forum_moderation.core.sanction_timing import ensure_utc
from forum_moderation.models import ActivityLog, Sanction, User
from forum_moderation.services.apply_sanction import ApplySanction
from forum_moderation.services.expire_sanctions import ExpirationSweep

from tests.services.conftest import ADMIN_ID, MODERATOR_ID, OTHER_USER_ID, USER_ID


def _apply(test_db, stores, clock):
    return ApplySanction(
        test_db, stores.users, stores.sanctions, stores.activity_log, clock=clock,
    )


def _sweep(test_db, stores, clock, users=None):
    return ExpirationSweep(
        test_db, users or stores.users, stores.sanctions, stores.activity_log,
        clock=clock,
    )


async def _issue(test_db, stores, clock, kind, hours=None, user_id=USER_ID, reason="spam"):
    result = await _apply(test_db, stores, clock).execute(
        target_user_id=user_id, moderator_id=MODERATOR_ID,
        sanction_type=kind, reason=reason, duration_hours=hours,
    )
    return result["sanction"]["id"]


async def _cleanup_entries(test_db):
    return await test_db.scalar(
        select(func.count()).select_from(ActivityLog)
        .where(ActivityLog.action == "sanctions_cleanup"),
    )


async def test_nothing_expired_is_noop(test_db, seed_users, stores, clock):
    await _issue(test_db, stores, clock, "silence", 24)
    result = await _sweep(test_db, stores, clock).execute()
    assert result.is_noop
    assert result.details == []
    assert await _cleanup_entries(test_db) == 0


async def test_expired_silence_is_released(test_db, seed_users, stores, clock):
    sanction_id = await _issue(test_db, stores, clock, "silence", 2)
    clock.advance(hours=3)

    result = await _sweep(test_db, stores, clock).execute()

    assert result.processed_sanctions == 1
    assert result.updated_users == 1
    assert result.errors == 0
    sanction = await test_db.get(Sanction, sanction_id, populate_existing=True)
    assert not sanction.is_active
    user = await test_db.get(User, USER_ID, populate_existing=True)
    assert not user.is_silenced

    entry = (await test_db.execute(
        select(ActivityLog).where(ActivityLog.action == "sanctions_cleanup"),
    )).scalar_one()
    assert entry.user_id == ADMIN_ID
    assert entry.ip_address == "127.0.0.1"
    assert entry.user_agent == "System-Cleanup-Task"
    assert entry.details["processed_sanctions"] == 1


async def test_expired_warning_leaves_counter(test_db, seed_users, stores, clock):
    await _apply(test_db, stores, clock).execute(
        target_user_id=USER_ID, moderator_id=MODERATOR_ID,
        sanction_type="warning", reason="tone", duration_hours=1,
    )
    clock.advance(hours=2)

    result = await _sweep(test_db, stores, clock).execute()

    assert result.processed_sanctions == 1
    assert result.updated_users == 0
    user = await test_db.get(User, USER_ID, populate_existing=True)
    assert user.warnings_count == 1


async def test_remaining_silence_keeps_user_silenced(test_db, seed_users, stores, clock):
    await _issue(test_db, stores, clock, "silence", 2)
    await _issue(test_db, stores, clock, "silence", 10)
    clock.advance(hours=3)

    result = await _sweep(test_db, stores, clock).execute()

    assert result.processed_sanctions == 1
    user = await test_db.get(User, USER_ID, populate_existing=True)
    assert user.is_silenced
    assert ensure_utc(user.silenced_until) == clock.now - timedelta(hours=3) + timedelta(hours=10)


async def test_expired_suspension_lifts_ban(test_db, seed_users, stores, clock):
    await _issue(test_db, stores, clock, "temp_suspend", 24)
    clock.advance(days=2)
    result = await _sweep(test_db, stores, clock).execute()
    assert result.updated_users == 1
    user = await test_db.get(User, USER_ID, populate_existing=True)
    assert not user.is_banned


async def test_sanction_expiring_exactly_now_is_swept(test_db, seed_users, stores, clock):
    await _issue(test_db, stores, clock, "silence", 1)
    clock.advance(hours=1)
    result = await _sweep(test_db, stores, clock).execute()
    assert result.processed_sanctions == 1


class FlakyUsers:
    """User store that fails for one user id."""

    def __init__(self, inner, failing_id):
        self.inner = inner
        self.failing_id = failing_id

    async def find_by_id(self, user_id):
        if user_id == self.failing_id:
            raise RuntimeError("row locked")
        return await self.inner.find_by_id(user_id)

    async def find_by_role(self, role_name):
        return await self.inner.find_by_role(role_name)

    async def update_by_id(self, user_id, changes):
        return await self.inner.update_by_id(user_id, changes)


async def test_user_failure_is_isolated(test_db, seed_users, stores, clock):
    await _issue(test_db, stores, clock, "silence", 1, user_id=USER_ID)
    await _issue(test_db, stores, clock, "silence", 1, user_id=OTHER_USER_ID)
    clock.advance(hours=2)

    result = await _sweep(
        test_db, stores, clock, users=FlakyUsers(stores.users, USER_ID),
    ).execute()

    assert result.processed_sanctions == 2
    assert result.errors == 1
    assert result.updated_users == 1
    failed = result.error_details()
    assert [d.user_id for d in failed] == [USER_ID]
    assert "row locked" in failed[0].error
    other = await test_db.get(User, OTHER_USER_ID, populate_existing=True)
    assert not other.is_silenced


async def test_no_admin_skips_summary(test_db, seed_users, stores, clock):
    await _issue(test_db, stores, clock, "silence", 1)
    clock.advance(hours=2)
    admin = await test_db.get(User, ADMIN_ID)
    await test_db.delete(admin)
    await test_db.commit()

    result = await _sweep(test_db, stores, clock).execute()

    assert result.processed_sanctions == 1
    assert await _cleanup_entries(test_db) == 0


async def test_deactivation_failure_propagates(test_db, seed_users, stores, clock):
    class BrokenSanctions:
        async def deactivate_expired(self, now):
            raise RuntimeError("db down")

    sweep = ExpirationSweep(
        test_db, stores.users, BrokenSanctions(), stores.activity_log, clock=clock,
    )
    with pytest.raises(RuntimeError):
        await sweep.execute()


async def test_remaining_silences_use_furthest_expiry(test_db, seed_users, stores, clock):
    start = clock.now
    await _issue(test_db, stores, clock, "silence", 10)
    clock.advance(minutes=1)
    await _issue(test_db, stores, clock, "silence", 2)
    clock.advance(minutes=1)
    await _issue(test_db, stores, clock, "silence", 6)
    clock.advance(hours=3)

    result = await _sweep(test_db, stores, clock).execute()

    assert result.processed_sanctions == 1
    assert result.updated_users == 0
    user = await test_db.get(User, USER_ID, populate_existing=True)
    assert user.is_silenced
    assert ensure_utc(user.silenced_until) == start + timedelta(hours=10)


async def test_expired_suspension_falls_back_to_permanent_ban(
    test_db, seed_users, stores, clock,
):
    banned_at = clock.now
    await _issue(test_db, stores, clock, "permanent_ban", reason="fraud")
    clock.advance(minutes=1)
    await _issue(test_db, stores, clock, "temp_suspend", 2, reason="spam")
    user = await test_db.get(User, USER_ID, populate_existing=True)
    assert user.ban_reason == "spam"
    clock.advance(hours=3)

    result = await _sweep(test_db, stores, clock).execute()

    assert result.processed_sanctions == 1
    assert result.updated_users == 1
    user = await test_db.get(User, USER_ID, populate_existing=True)
    assert user.is_banned
    assert user.ban_reason == "fraud"
    assert ensure_utc(user.banned_at) == banned_at
    assert user.banned_by == MODERATOR_ID
