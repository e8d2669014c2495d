"""Sanction Queries: read-only history, per-user, statistics and banned-user views for moderators.

Invariants:
    - Requester must exist and be admin or moderator (checked before any listing read)
    - Listing limit clamped to sanctions_page_size_max; page floor 1 (history and banned users)
    - Queries never write and never commit
    - Related users (target, issuer, revoker) come from loaded relationships, never lazy loads
"""

from datetime import datetime
from typing import Callable

from forum_moderation.core.domain_types import SanctionKind
from forum_moderation.core.errors import ErrorContext, TargetNotFoundError
from forum_moderation.core.listing import SanctionFilters, clamp_page_request
from forum_moderation.core.permissions import can_moderate
from forum_moderation.core.repository_protocols import SanctionRepository, UserRepository
from forum_moderation.core.sanction_format import (
    banned_user_summary, format_sanction, summarize_user, user_flags_summary,
)
from forum_moderation.core.sanction_input import (
    parse_kind, parse_severity, parse_sort, parse_status,
)
from forum_moderation.core.sanction_timing import utc_now
from forum_moderation.services.command_support import require_actor


def _with_people(sanction, now: datetime) -> dict:
    """Formatted sanction plus display data of the users around it."""
    return {
        **format_sanction(sanction, now),
        "user": summarize_user(getattr(sanction, "user", None)),
        "applied_by": summarize_user(getattr(sanction, "moderator", None)),
        "revoked_by_user": summarize_user(getattr(sanction, "revoker", None)),
    }


class GetSanctionsHistory:
    """Filtered, sorted, paginated sanction listing with aggregate stats."""

    def __init__(
        self,
        users: UserRepository,
        sanctions: SanctionRepository,
        default_limit: int = 20,
        max_limit: int = 100,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.users = users
        self.sanctions = sanctions
        self.default_limit = default_limit
        self.max_limit = max_limit
        self.clock = clock

    async def execute(
        self,
        *,
        requester_id: int,
        page: int | None = None,
        limit: int | None = None,
        user_id: int | None = None,
        moderator_id: int | None = None,
        sanction_type: str | None = None,
        severity: str | None = None,
        status: str | None = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
    ) -> dict:
        status = parse_status(status)
        sort_field, order = parse_sort(sort_by, sort_order)
        filters = SanctionFilters.from_status(
            status,
            user_id=user_id,
            moderator_id=moderator_id,
            sanction_type=parse_kind(sanction_type) if sanction_type else None,
            severity=parse_severity(severity),
        )
        page_request = clamp_page_request(
            page, limit, self.max_limit, self.default_limit, sort_field, order,
        )

        await require_actor(self.users, requester_id, can_moderate)

        result = await self.sanctions.find_many(filters, page_request)
        stats = await self.sanctions.aggregate_stats()
        now = self.clock()
        return {
            "sanctions": [_with_people(s, now) for s in result.items],
            "pagination": result.pagination(),
            "filters": {
                "user_id": user_id,
                "moderator_id": moderator_id,
                "sanction_type": filters.sanction_type,
                "severity": filters.severity,
                "status": status.value,
                "sort_by": sort_field.value,
                "sort_order": order.value,
            },
            "stats": stats,
        }


class GetUserSanctions:

    def __init__(
        self,
        users: UserRepository,
        sanctions: SanctionRepository,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.users = users
        self.sanctions = sanctions
        self.clock = clock

    async def execute(
        self, *, requester_id: int, user_id: int, include_inactive: bool = True,
    ) -> dict:
        await require_actor(self.users, requester_id, can_moderate)
        target = await self.users.find_by_id(user_id)
        if target is None:
            raise TargetNotFoundError(
                user_id, ErrorContext(actor_id=requester_id, target_user_id=user_id),
            )

        sanctions = await self.sanctions.find_by_user(user_id, include_inactive)
        now = self.clock()

        def count(kind: SanctionKind) -> int:
            return sum(1 for s in sanctions if s.sanction_type == kind.value)

        return {
            "user": user_flags_summary(target),
            "sanctions": [_with_people(s, now) for s in sanctions],
            "summary": {
                "total": len(sanctions),
                "active": sum(1 for s in sanctions if s.is_active),
                "warnings": count(SanctionKind.WARNING),
                "suspensions": count(SanctionKind.TEMP_SUSPEND),
                "bans": count(SanctionKind.PERMANENT_BAN),
            },
        }


class GetSanctionStats:
    """Aggregate counts, optionally scoped to one issuing moderator."""

    def __init__(self, users: UserRepository, sanctions: SanctionRepository):
        self.users = users
        self.sanctions = sanctions

    async def execute(
        self, *, requester_id: int, moderator_id: int | None = None,
    ) -> dict:
        await require_actor(self.users, requester_id, can_moderate)
        stats = await self.sanctions.aggregate_stats(moderator_id)
        active_by_kind = {
            kind.value: await self.sanctions.count_active_by_kind(kind)
            for kind in SanctionKind
        }
        return {
            **stats,
            "moderator_id": moderator_id,
            "active_by_type": active_by_kind,
        }


class GetBannedUsers:
    """Accounts currently projected as banned, newest ban first."""

    def __init__(
        self,
        users: UserRepository,
        default_limit: int = 20,
        max_limit: int = 100,
    ):
        self.users = users
        self.default_limit = default_limit
        self.max_limit = max_limit

    async def execute(
        self, *, requester_id: int, page: int | None = None, limit: int | None = None,
    ) -> dict:
        page_request = clamp_page_request(
            page, limit, self.max_limit, self.default_limit,
        )
        await require_actor(self.users, requester_id, can_moderate)

        result = await self.users.find_banned(page_request)
        return {
            "users": [banned_user_summary(u, u.banner) for u in result.items],
            "pagination": result.pagination(),
        }
