"""Boundary Protocols: contracts between core and shell.

Invariants:
    - Core NEVER imports from shell: dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: boundary methods are async because implementations do IO,
      but the core functions that consume their results are never async themselves
    - UnitOfWork is satisfied structurally by SQLAlchemy's AsyncSession
"""

from datetime import datetime
from typing import Any, Protocol

from forum_moderation.core.domain_types import (
    RoleName, SanctionId, SanctionKind, SanctionSeverity, UserId,
)
from forum_moderation.core.listing import PageRequest, SanctionFilters, SanctionPage
from forum_moderation.core.sweep_report import ExpiredSanction


class SanctionLike(Protocol):
    """Structural contract for Sanction records handed to core functions."""
    id: int
    user_id: int
    moderator_id: int
    sanction_type: str
    reason: str
    duration_hours: int | None
    starts_at: datetime
    expires_at: datetime | None
    is_active: bool
    severity: str
    is_automatic: bool
    evidence: Any
    created_at: datetime
    updated_at: datetime
    revoked_at: datetime | None
    revoked_by: int | None
    revoke_reason: str | None


class UserLike(Protocol):
    """Structural contract for User records: identity, role and account flags."""
    id: int
    username: str
    email: str
    is_banned: bool
    banned_at: datetime | None
    banned_by: int | None
    ban_reason: str | None
    is_silenced: bool
    silenced_until: datetime | None
    warnings_count: int
    last_warning_at: datetime | None

    @property
    def role_name(self) -> str: ...


class UnitOfWork(Protocol):
    """Transaction boundary shared by the repositories of one command."""
    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...


class SanctionRepository(Protocol):
    """Contract for sanction persistence: implemented by shell."""
    async def create(
        self,
        *,
        user_id: UserId,
        moderator_id: UserId,
        sanction_type: SanctionKind,
        reason: str,
        duration_hours: int | None,
        starts_at: datetime,
        expires_at: datetime | None,
        severity: SanctionSeverity,
        is_automatic: bool = False,
        evidence: Any = None,
    ) -> SanctionLike: ...
    async def find_by_id(self, sanction_id: SanctionId) -> SanctionLike | None: ...
    async def find_by_user(
        self, user_id: UserId, include_inactive: bool = True,
    ) -> list[SanctionLike]: ...
    async def find_active_for_user(
        self, user_id: UserId, now: datetime,
    ) -> list[SanctionLike]: ...
    async def find_many(
        self, filters: SanctionFilters, page_request: PageRequest,
    ) -> SanctionPage: ...
    async def update_by_id(
        self, sanction_id: SanctionId, changes: dict[str, Any],
    ) -> SanctionLike: ...
    async def revoke(
        self, sanction_id: SanctionId, revoked_by: UserId, reason: str, now: datetime,
    ) -> SanctionLike: ...
    async def deactivate_expired(self, now: datetime) -> list[ExpiredSanction]: ...
    async def count_active_by_kind(self, kind: SanctionKind) -> int: ...
    async def aggregate_stats(self, moderator_id: UserId | None = None) -> dict: ...


class UserRepository(Protocol):
    """Contract for user lookup and account-flag updates."""
    async def find_by_id(self, user_id: UserId) -> UserLike | None: ...
    async def find_by_role(self, role_name: RoleName) -> list[UserLike]: ...
    async def find_banned(self, page_request: PageRequest) -> SanctionPage: ...
    async def update_by_id(
        self, user_id: UserId, changes: dict[str, Any],
    ) -> UserLike: ...


class ActivityLogRepository(Protocol):
    """Contract for the audit trail: append only."""
    async def create(
        self,
        *,
        user_id: UserId | None,
        action: str,
        details: dict,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> Any: ...


class NotificationRepository(Protocol):
    """Contract for best-effort user notifications."""
    async def create(
        self,
        *,
        user_id: UserId,
        type: str,
        content: str,
        related_data: dict | None = None,
    ) -> Any: ...
