"""Revoke Sanction: verifies admin-only revocation and flag reconciliation.

Invariants:
    - Only admins revoke; inactive sanctions cannot be revoked again
    - Flags survive while another active sanction of the same kind remains
    - Warning counters are never decremented
"""

from types import SimpleNamespace

import pytest
from sqlalchemy import select

from forum_moderation.core.errors import (
    AlreadyInactiveError, AuditLogFailedError, InvalidInputError,
    RevokeNotAllowedError, SanctionNotFoundError,
)
from forum_moderation.infrastructure.audit_store import SqlAlchemyActivityLogStore
from forum_moderation.infrastructure.sanction_store import SqlAlchemySanctionStore
from forum_moderation.infrastructure.user_store import SqlAlchemyUserStore
from forum_moderation.models import ActivityLog, Sanction, User
from forum_moderation.services.apply_sanction import ApplySanction
from forum_moderation.services.revoke_sanction import RevokeSanction

from tests.services.conftest import ADMIN_ID, MODERATOR_ID, USER_ID


class FailingStore:
    async def create(self, **kwargs):
        raise RuntimeError("store unavailable")


def _apply(test_db, stores, clock):
    return ApplySanction(
        test_db, stores.users, stores.sanctions, stores.activity_log,
        stores.notifications, clock=clock,
    )


def _revoke(test_db, stores, clock, activity_log=None):
    return RevokeSanction(
        test_db, stores.users, stores.sanctions,
        activity_log or stores.activity_log, stores.notifications, clock=clock,
    )


async def _issue(test_db, stores, clock, kind, hours=None, reason="spam"):
    result = await _apply(test_db, stores, clock).execute(
        target_user_id=USER_ID, moderator_id=MODERATOR_ID,
        sanction_type=kind, reason=reason, duration_hours=hours,
    )
    return result["sanction"]["id"]


async def _reload_user(test_db):
    return await test_db.get(User, USER_ID, populate_existing=True)


async def test_revoke_silence_scenario(test_db, seed_users, stores, clock):
    """Admin revokes a 24h silence on appeal: inactive, revoker stamped, user unsilenced."""
    sanction_id = await _issue(test_db, stores, clock, "silence", 24)
    clock.advance(hours=1)

    result = await _revoke(test_db, stores, clock).execute(
        sanction_id=sanction_id, revoked_by=ADMIN_ID, revoke_reason="appeal granted",
    )

    assert result["sanction"]["is_active"] is False
    assert result["sanction"]["revoked_by"] == ADMIN_ID
    assert result["sanction"]["revoke_reason"] == "appeal granted"
    assert result["original_sanction"]["is_active"] is True
    assert result["revoked_by"]["id"] == ADMIN_ID
    assert result["message"] == "Sanction revoked successfully"

    user = await _reload_user(test_db)
    assert not user.is_silenced
    assert user.silenced_until is None


async def test_revoke_suspension_clears_ban(test_db, seed_users, stores, clock):
    sanction_id = await _issue(test_db, stores, clock, "temp_suspend", 48)
    await _revoke(test_db, stores, clock).execute(
        sanction_id=sanction_id, revoked_by=ADMIN_ID, revoke_reason="mistake",
    )
    user = await _reload_user(test_db)
    assert not user.is_banned
    assert user.ban_reason is None


async def test_overlapping_ban_keeps_user_banned(test_db, seed_users, stores, clock):
    first = await _issue(test_db, stores, clock, "temp_suspend", 48, reason="spam")
    clock.advance(minutes=5)
    await _issue(test_db, stores, clock, "permanent_ban", reason="fraud")

    await _revoke(test_db, stores, clock).execute(
        sanction_id=first, revoked_by=ADMIN_ID, revoke_reason="appeal",
    )
    user = await _reload_user(test_db)
    assert user.is_banned
    assert user.ban_reason == "fraud"


async def test_warning_count_not_decremented(test_db, seed_users, stores, clock):
    sanction_id = await _issue(test_db, stores, clock, "warning")
    await _revoke(test_db, stores, clock).execute(
        sanction_id=sanction_id, revoked_by=ADMIN_ID, revoke_reason="appeal",
    )
    user = await _reload_user(test_db)
    assert user.warnings_count == 1


async def test_moderator_cannot_revoke(test_db, seed_users, stores, clock):
    sanction_id = await _issue(test_db, stores, clock, "silence", 2)
    with pytest.raises(RevokeNotAllowedError) as exc:
        await _revoke(test_db, stores, clock).execute(
            sanction_id=sanction_id, revoked_by=MODERATOR_ID, revoke_reason="mine",
        )
    assert exc.value.message == "Only administrators can revoke sanctions"


async def test_revoking_twice_fails(test_db, seed_users, stores, clock):
    sanction_id = await _issue(test_db, stores, clock, "silence", 2)
    command = _revoke(test_db, stores, clock)
    await command.execute(
        sanction_id=sanction_id, revoked_by=ADMIN_ID, revoke_reason="appeal",
    )
    with pytest.raises(AlreadyInactiveError):
        await command.execute(
            sanction_id=sanction_id, revoked_by=ADMIN_ID, revoke_reason="again",
        )


async def test_unknown_sanction(test_db, seed_users, stores, clock):
    with pytest.raises(SanctionNotFoundError):
        await _revoke(test_db, stores, clock).execute(
            sanction_id=404, revoked_by=ADMIN_ID, revoke_reason="x",
        )


async def test_revoke_reason_required(test_db, seed_users, stores, clock):
    sanction_id = await _issue(test_db, stores, clock, "silence", 2)
    with pytest.raises(InvalidInputError):
        await _revoke(test_db, stores, clock).execute(
            sanction_id=sanction_id, revoked_by=ADMIN_ID, revoke_reason="  ",
        )


async def test_audit_entry_written(test_db, seed_users, stores, clock):
    sanction_id = await _issue(test_db, stores, clock, "silence", 2)
    await _revoke(test_db, stores, clock).execute(
        sanction_id=sanction_id, revoked_by=ADMIN_ID, revoke_reason="appeal",
        ip_address="10.0.0.9",
    )
    entry = (await test_db.execute(
        select(ActivityLog).where(ActivityLog.action == "sanction_revoked"),
    )).scalar_one()
    assert entry.user_id == ADMIN_ID
    assert entry.details["revoke_reason"] == "appeal"
    assert entry.ip_address == "10.0.0.9"


async def test_audit_failure_keeps_sanction_active(test_db, seed_users, stores, clock):
    sanction_id = await _issue(test_db, stores, clock, "silence", 2)
    with pytest.raises(AuditLogFailedError):
        await _revoke(test_db, stores, clock, activity_log=FailingStore()).execute(
            sanction_id=sanction_id, revoked_by=ADMIN_ID, revoke_reason="appeal",
        )
    sanction = await test_db.get(Sanction, sanction_id, populate_existing=True)
    assert sanction.is_active
    assert sanction.revoked_by is None
    user = await _reload_user(test_db)
    assert user.is_silenced


async def test_stale_read_cannot_revoke_twice(
    test_db, test_session_factory, seed_users, stores, clock,
):
    """A revoke committed by another session wins; the later one writes nothing."""
    sanction_id = await _issue(test_db, stores, clock, "silence", 24)
    stale = await stores.sanctions.find_by_id(sanction_id)
    assert stale.is_active

    async with test_session_factory() as other:
        other_stores = SimpleNamespace(
            users=SqlAlchemyUserStore(other),
            sanctions=SqlAlchemySanctionStore(other),
            activity_log=SqlAlchemyActivityLogStore(other),
            notifications=None,
        )
        await _revoke(other, other_stores, clock).execute(
            sanction_id=sanction_id, revoked_by=ADMIN_ID, revoke_reason="first",
        )

    with pytest.raises(AlreadyInactiveError):
        await _revoke(test_db, stores, clock).execute(
            sanction_id=sanction_id, revoked_by=ADMIN_ID, revoke_reason="second",
        )

    sanction = await test_db.get(Sanction, sanction_id, populate_existing=True)
    assert sanction.revoke_reason == "first"
    entries = (await test_db.execute(
        select(ActivityLog).where(ActivityLog.action == "sanction_revoked"),
    )).scalars().all()
    assert len(entries) == 1


async def test_store_revoke_rejects_inactive_row(test_db, seed_users, stores, clock):
    sanction_id = await _issue(test_db, stores, clock, "silence", 2)
    await stores.sanctions.revoke(sanction_id, ADMIN_ID, "first", clock())
    with pytest.raises(AlreadyInactiveError):
        await stores.sanctions.revoke(sanction_id, ADMIN_ID, "second", clock())
    with pytest.raises(SanctionNotFoundError):
        await stores.sanctions.revoke(404, ADMIN_ID, "missing", clock())
