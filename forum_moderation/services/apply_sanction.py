"""Apply Sanction: issues a disciplinary action and projects it onto the target account.

Invariants:
    - Input, actor, target and hierarchy are all checked before the first write
    - Sanction row, account flags and audit entry commit together or not at all
    - Audit-log failure fails the command (AuditLogFailedError) and rolls back
    - Notification runs after commit, is skipped for warnings, and never fails the command
    - Issued sanctions are always active and never automatic

Design Decisions:
    - Flag mutation delegated to core.account_effects.apply_effects; the service only
      persists the diff
"""

import logging
from datetime import datetime
from typing import Any, Callable

from forum_moderation.core.account_effects import AccountFlags, apply_effects, flag_changes
from forum_moderation.core.domain_types import SanctionKind, default_severity, display_name
from forum_moderation.core.errors import (
    AuditLogFailedError, ErrorContext, TargetNotFoundError,
)
from forum_moderation.core.permissions import can_issue, can_moderate
from forum_moderation.core.repository_protocols import (
    ActivityLogRepository, NotificationRepository, SanctionRepository,
    UnitOfWork, UserRepository,
)
from forum_moderation.core.sanction_format import format_sanction, summarize_user
from forum_moderation.core.sanction_input import (
    parse_duration, parse_kind, parse_severity, require_reason,
)
from forum_moderation.core.sanction_timing import (
    compute_expires_at, effective_duration, format_duration, utc_now,
)
from forum_moderation.services.command_support import (
    notify_best_effort, raise_for_denial, require_actor,
)

logger = logging.getLogger(__name__)


def notification_content(
    kind: SanctionKind, reason: str, expires_at: datetime | None,
) -> str:
    until = f" until {expires_at:%Y-%m-%d %H:%M} UTC" if expires_at else ""
    return (
        f"You have received a {display_name(kind).lower()}{until}. "
        f"Reason: {reason}"
    )


class ApplySanction:
    """Apply-sanction command: one instance per unit of work."""

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
        target_user_id: int,
        moderator_id: int,
        sanction_type: str | SanctionKind,
        reason: str,
        duration_hours: int | None = None,
        severity: str | None = None,
        evidence: Any = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> dict:
        kind = parse_kind(sanction_type)
        reason = require_reason(reason)
        duration_hours = parse_duration(duration_hours)
        severity = parse_severity(severity) or default_severity(kind)

        actor = await require_actor(self.users, moderator_id, can_moderate)
        ctx = ErrorContext(actor_id=moderator_id, target_user_id=target_user_id)
        target = await self.users.find_by_id(target_user_id)
        if target is None:
            raise TargetNotFoundError(target_user_id, ctx)
        raise_for_denial(can_issue(actor.role_name, target.role_name), ctx)

        now = self.clock()
        try:
            sanction = await self.sanctions.create(
                user_id=target.id,
                moderator_id=actor.id,
                sanction_type=kind,
                reason=reason,
                duration_hours=effective_duration(kind, duration_hours),
                starts_at=now,
                expires_at=compute_expires_at(kind, duration_hours, now),
                severity=severity,
                is_automatic=False,
                evidence=evidence,
            )
            ctx.sanction_id = sanction.id

            before = AccountFlags.from_user(target)
            changes = flag_changes(before, apply_effects(before, sanction, now))
            if changes:
                await self.users.update_by_id(target.id, changes)

            await self._audit(actor.id, target, sanction, ip_address, user_agent, ctx)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"{display_name(kind)} applied to user {target.id}",
            extra={
                "actor_id": actor.id, "target_user_id": target.id,
                "sanction_id": sanction.id,
            },
        )

        # Built before notifying: a notification rollback expires loaded rows
        response = {
            "sanction": format_sanction(sanction, now),
            "user": summarize_user(target),
            "applied_by": summarize_user(actor),
            "message": f"{display_name(kind)} applied successfully",
        }

        if kind != SanctionKind.WARNING:
            await notify_best_effort(
                self.db, self.notifications,
                user_id=response["user"]["id"],
                content=notification_content(kind, reason, sanction.expires_at),
                related_data={
                    "sanction_id": response["sanction"]["id"],
                    "sanction_type": kind.value,
                    "reason": reason,
                },
            )

        return response

    async def _audit(self, actor_id, target, sanction, ip_address, user_agent, ctx):
        try:
            await self.activity_log.create(
                user_id=actor_id,
                action="sanction_applied",
                details={
                    "sanction_id": sanction.id,
                    "target_user_id": target.id,
                    "target_username": target.username,
                    "sanction_type": str(sanction.sanction_type),
                    "reason": sanction.reason,
                    "severity": str(sanction.severity),
                    "duration": format_duration(sanction),
                },
                ip_address=ip_address,
                user_agent=user_agent,
            )
        except Exception as e:
            logger.error(
                f"Audit log append failed: {e}",
                extra={"actor_id": actor_id, "error_code": "AUDIT_LOG_FAILED"},
            )
            raise AuditLogFailedError("sanction_applied", ctx) from e
