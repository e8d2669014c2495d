"""Expiration Sweep: deactivates expired sanctions and releases the account flags they held.

Invariants:
    - Bulk deactivation commits before any per-user work; its failure fails the tick
    - Nothing expired -> zero result and no audit entry
    - Only users with an expired temp_suspend, silence or restriction are reconciled
    - Each user is reconciled in its own commit; one failure never blocks the others
    - updated_users counts users whose flags actually changed
    - Summary audit entry is attributed to the first admin; skipped (warning) without one

Design Decisions:
    - Reconciliation over the remaining active set (same as revoke): an expired
      silence never clears a silence another sanction still imposes
    - Summary audit failure is logged, not raised: the deactivations are already committed
"""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Callable

from forum_moderation.core.account_effects import (
    AccountFlags, flag_changes, reconcile_from_active_set,
)
from forum_moderation.core.domain_types import SWEEP_RECONCILED_KINDS, RoleName
from forum_moderation.core.errors import ResourceNotFoundError
from forum_moderation.core.repository_protocols import (
    ActivityLogRepository, SanctionRepository, UnitOfWork, UserRepository,
)
from forum_moderation.core.sanction_timing import utc_now
from forum_moderation.core.sweep_report import ExpiredSanction, SweepDetail, SweepResult

logger = logging.getLogger(__name__)

SYSTEM_IP_ADDRESS = "127.0.0.1"
SYSTEM_USER_AGENT = "System-Cleanup-Task"


class ExpirationSweep:
    """One sweep tick over a single unit of work."""

    def __init__(
        self,
        db: UnitOfWork,
        users: UserRepository,
        sanctions: SanctionRepository,
        activity_log: ActivityLogRepository,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.users = users
        self.sanctions = sanctions
        self.activity_log = activity_log
        self.clock = clock

    async def execute(self, now: datetime | None = None) -> SweepResult:
        now = now or self.clock()
        result = SweepResult(started_at=self.clock())

        try:
            expired = await self.sanctions.deactivate_expired(now)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        result.processed_sanctions = len(expired)
        if not expired:
            result.finished_at = self.clock()
            return result

        for e in expired:
            result.details.append(
                SweepDetail(e.id, e.user_id, e.sanction_type, "deactivated"),
            )

        for user_id, rows in _affected_users(expired).items():
            kinds = ",".join(sorted({r.sanction_type for r in rows}))
            try:
                changed = await self._reconcile_user(user_id, now)
                await self.db.commit()
            except Exception as e:
                await self.db.rollback()
                result.errors += 1
                result.details.append(
                    SweepDetail(None, user_id, kinds, "error", error=str(e)),
                )
                logger.error(
                    f"Failed to release flags for user {user_id}: {e}",
                    extra={"target_user_id": user_id, "error_code": "SWEEP_USER_FAILED"},
                )
                continue
            if changed:
                result.updated_users += 1
                result.details.append(SweepDetail(None, user_id, kinds, "user_updated"))

        result.finished_at = self.clock()
        await self._write_summary(result)

        logger.info(
            f"Expiration sweep deactivated {result.processed_sanctions} sanctions",
            extra={
                "processed": result.processed_sanctions,
                "updated_users": result.updated_users,
                "errors": result.errors,
                "execution_time_ms": result.execution_time_ms,
            },
        )
        return result

    async def _reconcile_user(self, user_id: int, now: datetime) -> bool:
        user = await self.users.find_by_id(user_id)
        if user is None:
            raise ResourceNotFoundError("User", user_id)
        before = AccountFlags.from_user(user)
        active = await self.sanctions.find_active_for_user(user_id, now)
        changes = flag_changes(before, reconcile_from_active_set(before, active))
        if changes:
            await self.users.update_by_id(user_id, changes)
        return bool(changes)

    async def _write_summary(self, result: SweepResult) -> None:
        try:
            admins = await self.users.find_by_role(RoleName.ADMIN)
            if not admins:
                logger.warning("No admin account found; skipping sweep audit entry")
                return
            await self.activity_log.create(
                user_id=admins[0].id,
                action="sanctions_cleanup",
                details={
                    "processed_sanctions": result.processed_sanctions,
                    "updated_users": result.updated_users,
                    "errors": result.errors,
                    "execution_time_ms": result.execution_time_ms,
                    "error_details": [
                        {"user_id": d.user_id, "error": d.error}
                        for d in result.error_details()
                    ],
                },
                ip_address=SYSTEM_IP_ADDRESS,
                user_agent=SYSTEM_USER_AGENT,
            )
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(
                f"Failed to write sweep audit entry: {e}",
                extra={"error_code": "AUDIT_LOG_FAILED"},
            )


def _affected_users(expired: list[ExpiredSanction]) -> dict[int, list[ExpiredSanction]]:
    """Expired rows whose kind carries a releasable flag, grouped by user."""
    by_user: dict[int, list[ExpiredSanction]] = defaultdict(list)
    for e in expired:
        if e.sanction_type in SWEEP_RECONCILED_KINDS:
            by_user[e.user_id].append(e)
    return dict(by_user)
