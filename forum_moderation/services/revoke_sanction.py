"""Revoke Sanction: lifts an active sanction and re-derives the target's account flags.

Invariants:
    - Only administrators revoke; a revoke reason is mandatory
    - Revoking an inactive sanction raises AlreadyInactiveError and writes nothing, including
      when another session deactivated it after this one read it
    - Flags are recomputed from the remaining active set, so an overlapping
      sanction of the same kind keeps its flag
    - Warning counters are never decremented
    - Revocation, flag reconciliation and audit entry commit together
"""

import logging
from datetime import datetime
from typing import Callable

from forum_moderation.core.account_effects import (
    AccountFlags, flag_changes, reconcile_from_active_set,
)
from forum_moderation.core.errors import (
    AlreadyInactiveError, AuditLogFailedError, ErrorContext,
    SanctionNotFoundError, TargetNotFoundError,
)
from forum_moderation.core.permissions import can_revoke
from forum_moderation.core.repository_protocols import (
    ActivityLogRepository, NotificationRepository, SanctionRepository,
    UnitOfWork, UserRepository,
)
from forum_moderation.core.sanction_format import format_sanction, summarize_user
from forum_moderation.core.sanction_input import require_reason
from forum_moderation.core.sanction_timing import utc_now
from forum_moderation.services.command_support import notify_best_effort, require_actor

logger = logging.getLogger(__name__)


class RevokeSanction:

    def __init__(
        self,
        db: UnitOfWork,
        users: UserRepository,
        sanctions: SanctionRepository,
        activity_log: ActivityLogRepository,
        notifications: NotificationRepository | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.users = users
        self.sanctions = sanctions
        self.activity_log = activity_log
        self.notifications = notifications
        self.clock = clock

    async def execute(
        self,
        *,
        sanction_id: int,
        revoked_by: int,
        revoke_reason: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> dict:
        revoke_reason = require_reason(revoke_reason, "revoke_reason")
        actor = await require_actor(self.users, revoked_by, can_revoke)

        ctx = ErrorContext(actor_id=revoked_by, sanction_id=sanction_id)
        sanction = await self.sanctions.find_by_id(sanction_id)
        if sanction is None:
            raise SanctionNotFoundError(sanction_id, ctx)
        if not sanction.is_active:
            raise AlreadyInactiveError(sanction_id, ctx)
        ctx.target_user_id = sanction.user_id

        target = await self.users.find_by_id(sanction.user_id)
        if target is None:
            raise TargetNotFoundError(sanction.user_id, ctx)

        now = self.clock()
        original = format_sanction(sanction, now)
        try:
            sanction = await self.sanctions.revoke(
                sanction_id, actor.id, revoke_reason, now,
            )

            before = AccountFlags.from_user(target)
            remaining = await self.sanctions.find_active_for_user(target.id, now)
            changes = flag_changes(before, reconcile_from_active_set(before, remaining))
            if changes:
                await self.users.update_by_id(target.id, changes)

            try:
                await self.activity_log.create(
                    user_id=actor.id,
                    action="sanction_revoked",
                    details={
                        "sanction_id": sanction.id,
                        "target_user_id": target.id,
                        "target_username": target.username,
                        "sanction_type": sanction.sanction_type,
                        "original_reason": sanction.reason,
                        "revoke_reason": revoke_reason,
                    },
                    ip_address=ip_address,
                    user_agent=user_agent,
                )
            except Exception as e:
                logger.error(
                    f"Audit log append failed: {e}",
                    extra={"actor_id": actor.id, "error_code": "AUDIT_LOG_FAILED"},
                )
                raise AuditLogFailedError("sanction_revoked", ctx) from e

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"Sanction {sanction_id} revoked",
            extra={
                "actor_id": actor.id, "target_user_id": target.id,
                "sanction_id": sanction_id,
            },
        )

        response = {
            "sanction": format_sanction(sanction, now),
            "user": summarize_user(target),
            "revoked_by": summarize_user(actor),
            "original_sanction": original,
            "revoke_reason": revoke_reason,
            "revoked_at": now.isoformat(),
            "message": "Sanction revoked successfully",
        }

        await notify_best_effort(
            self.db, self.notifications,
            user_id=response["user"]["id"],
            content=(
                f"Your {response['sanction']['sanction_type'].replace('_', ' ')} "
                f"has been lifted. Reason: {revoke_reason}"
            ),
            related_data={
                "sanction_id": sanction_id,
                "sanction_type": response["sanction"]["sanction_type"],
                "revoked": True,
            },
        )

        return response
