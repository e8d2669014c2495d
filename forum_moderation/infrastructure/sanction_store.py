"""Sanction Store: SQLAlchemy implementation of SanctionRepository.

Invariants:
    - Store methods flush but never commit: the calling command owns the transaction
    - "Active" queries exclude rows whose expires_at has passed, even before the sweep
    - deactivate_expired touches only rows that are active AND past expiry
    - revoke updates only a row that is still active at write time
    - Listing limit clamping happens before the store (core/listing.py)

Design Decisions:
    - Select-then-update for the expiry sweep: the sweep needs the exact rows it flipped
    - Severity sorts by rank (low < medium < high < critical), not alphabetically
    - populate_existing on listings: sanctions already in the identity map get their
      relationships loaded instead of triggering async lazy loads
"""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import and_, case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from forum_moderation.core.domain_types import (
    SEVERITY_RANK, SanctionKind, SanctionSeverity, SortField, SortOrder,
)
from forum_moderation.core.errors import AlreadyInactiveError, SanctionNotFoundError
from forum_moderation.core.listing import PageRequest, SanctionFilters, SanctionPage
from forum_moderation.core.sweep_report import ExpiredSanction
from forum_moderation.models.sanction import Sanction

logger = logging.getLogger(__name__)

# Columns a caller may change after creation
_MUTABLE_FIELDS = frozenset({"is_active", "revoked_at", "revoked_by", "revoke_reason"})

_SEVERITY_ORDER = case(
    {s.value: rank for s, rank in SEVERITY_RANK.items()},
    value=Sanction.severity,
    else_=0,
)

_SORT_COLUMNS = {
    SortField.CREATED_AT: Sanction.created_at,
    SortField.UPDATED_AT: Sanction.updated_at,
    SortField.SANCTION_TYPE: Sanction.sanction_type,
    SortField.SEVERITY: _SEVERITY_ORDER,
}


def _in_force(now: datetime):
    return and_(
        Sanction.is_active.is_(True),
        or_(Sanction.expires_at.is_(None), Sanction.expires_at > now),
    )


def _filter_clauses(filters: SanctionFilters) -> list:
    clauses = []
    if filters.user_id is not None:
        clauses.append(Sanction.user_id == filters.user_id)
    if filters.moderator_id is not None:
        clauses.append(Sanction.moderator_id == filters.moderator_id)
    if filters.sanction_type is not None:
        clauses.append(Sanction.sanction_type == SanctionKind(filters.sanction_type).value)
    if filters.severity is not None:
        clauses.append(Sanction.severity == SanctionSeverity(filters.severity).value)
    if filters.is_active is not None:
        clauses.append(Sanction.is_active.is_(filters.is_active))
    return clauses


class SqlAlchemySanctionStore:
    """Sanction persistence over one AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        *,
        user_id: int,
        moderator_id: int,
        sanction_type: SanctionKind,
        reason: str,
        duration_hours: int | None,
        starts_at: datetime,
        expires_at: datetime | None,
        severity: SanctionSeverity,
        is_automatic: bool = False,
        evidence: Any = None,
    ) -> Sanction:
        sanction = Sanction(
            user_id=user_id,
            moderator_id=moderator_id,
            sanction_type=SanctionKind(sanction_type).value,
            reason=reason,
            duration_hours=duration_hours,
            starts_at=starts_at,
            expires_at=expires_at,
            is_active=True,
            severity=SanctionSeverity(severity).value,
            is_automatic=is_automatic,
            evidence=evidence,
            created_at=starts_at,
            updated_at=starts_at,
        )
        self.db.add(sanction)
        await self.db.flush()
        return sanction

    async def find_by_id(self, sanction_id: int) -> Sanction | None:
        return await self.db.get(Sanction, sanction_id)

    async def find_by_user(
        self, user_id: int, include_inactive: bool = True,
    ) -> list[Sanction]:
        query = select(Sanction).where(Sanction.user_id == user_id)
        if not include_inactive:
            query = query.where(Sanction.is_active.is_(True))
        query = query.order_by(Sanction.created_at.desc(), Sanction.id.desc())
        result = await self.db.execute(
            query.execution_options(populate_existing=True),
        )
        return list(result.scalars().all())

    async def find_active_for_user(
        self, user_id: int, now: datetime,
    ) -> list[Sanction]:
        result = await self.db.execute(
            select(Sanction)
            .where(Sanction.user_id == user_id, _in_force(now))
            .order_by(Sanction.created_at.desc(), Sanction.id.desc()),
        )
        return list(result.scalars().all())

    async def find_many(
        self, filters: SanctionFilters, page_request: PageRequest,
    ) -> SanctionPage:
        clauses = _filter_clauses(filters)
        sort_column = _SORT_COLUMNS[SortField(page_request.sort_by)]
        if SortOrder(page_request.sort_order) == SortOrder.ASC:
            ordering = (sort_column.asc(), Sanction.id.asc())
        else:
            ordering = (sort_column.desc(), Sanction.id.desc())

        query = (
            select(Sanction)
            .where(*clauses)
            .order_by(*ordering)
            .limit(page_request.limit)
            .offset(page_request.offset)
            .execution_options(populate_existing=True)
        )
        rows = (await self.db.execute(query)).scalars().all()
        total = await self.db.scalar(
            select(func.count(Sanction.id)).where(*clauses),
        )
        return SanctionPage(
            items=list(rows),
            page=page_request.page,
            limit=page_request.limit,
            total=total or 0,
        )

    async def _reload(self, sanction_id: int) -> Sanction:
        result = await self.db.execute(
            select(Sanction)
            .where(Sanction.id == sanction_id)
            .execution_options(populate_existing=True),
        )
        return result.scalar_one()

    async def _get_or_raise(self, sanction_id: int) -> Sanction:
        sanction = await self.db.get(Sanction, sanction_id)
        if sanction is None:
            raise SanctionNotFoundError(sanction_id)
        return sanction

    async def update_by_id(
        self, sanction_id: int, changes: dict[str, Any],
    ) -> Sanction:
        unknown = set(changes) - _MUTABLE_FIELDS - {"updated_at"}
        if unknown:
            raise ValueError(f"Immutable sanction fields: {sorted(unknown)}")
        sanction = await self._get_or_raise(sanction_id)
        for name, value in changes.items():
            setattr(sanction, name, value)
        await self.db.flush()
        return sanction

    async def revoke(
        self, sanction_id: int, revoked_by: int, reason: str, now: datetime,
    ) -> Sanction:
        """Flip an active sanction to revoked; raise AlreadyInactiveError otherwise.

        The is_active guard is part of the UPDATE: a row deactivated by another
        session after it was read matches nothing.
        """
        result = await self.db.execute(
            update(Sanction)
            .where(Sanction.id == sanction_id, Sanction.is_active.is_(True))
            .values(
                is_active=False,
                revoked_at=now,
                revoked_by=revoked_by,
                revoke_reason=reason,
                updated_at=now,
            )
            .execution_options(synchronize_session=False),
        )
        if result.rowcount == 0:
            await self._get_or_raise(sanction_id)
            raise AlreadyInactiveError(sanction_id)
        return await self._reload(sanction_id)

    async def deactivate_expired(self, now: datetime) -> list[ExpiredSanction]:
        """Flip every active, past-expiry sanction to inactive; return what changed."""
        result = await self.db.execute(
            select(Sanction.id, Sanction.user_id, Sanction.sanction_type).where(
                Sanction.is_active.is_(True),
                Sanction.expires_at.is_not(None),
                Sanction.expires_at <= now,
            ),
        )
        expired = [
            ExpiredSanction(id=row.id, user_id=row.user_id, sanction_type=row.sanction_type)
            for row in result
        ]
        if not expired:
            return []
        await self.db.execute(
            update(Sanction)
            .where(Sanction.id.in_([e.id for e in expired]), Sanction.is_active.is_(True))
            .values(is_active=False, updated_at=now),
        )
        await self.db.flush()
        logger.debug("Deactivated %d expired sanctions", len(expired))
        return expired

    async def count_active_by_kind(self, kind: SanctionKind) -> int:
        count = await self.db.scalar(
            select(func.count(Sanction.id)).where(
                Sanction.sanction_type == SanctionKind(kind).value,
                Sanction.is_active.is_(True),
            ),
        )
        return count or 0

    async def aggregate_stats(self, moderator_id: int | None = None) -> dict:
        """Totals overall, active, per kind and per severity."""
        scope = []
        if moderator_id is not None:
            scope.append(Sanction.moderator_id == moderator_id)

        total = await self.db.scalar(select(func.count(Sanction.id)).where(*scope))
        active = await self.db.scalar(
            select(func.count(Sanction.id)).where(
                *scope, Sanction.is_active.is_(True),
            ),
        )
        by_type = await self.db.execute(
            select(Sanction.sanction_type, func.count(Sanction.id))
            .where(*scope)
            .group_by(Sanction.sanction_type),
        )
        by_severity = await self.db.execute(
            select(Sanction.severity, func.count(Sanction.id))
            .where(*scope)
            .group_by(Sanction.severity),
        )
        return {
            "total_sanctions": total or 0,
            "active_sanctions": active or 0,
            "sanctions_by_type": {kind: count for kind, count in by_type},
            "sanctions_by_severity": {sev: count for sev, count in by_severity},
        }
