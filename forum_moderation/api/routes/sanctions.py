"""Moderation Routes: sanction commands, queries and the manual sweep trigger.

Invariants:
    - Acting user id arrives in the X-Actor-Id header (set by the upstream auth layer)
    - Routes never contain business logic: each one builds a use case and awaits it
    - Domain errors propagate to the global ForumError handler (api/error_handlers.py)
"""

import logging

from fastapi import APIRouter, Depends, Header, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from forum_moderation.core.permissions import can_administer
from forum_moderation.infrastructure.database import get_db
from forum_moderation.infrastructure.sweep_scheduler import (
    SanctionsSweepTask, get_sweep_task,
)
from forum_moderation.infrastructure.user_store import SqlAlchemyUserStore
from forum_moderation.schemas.sanction import SanctionCreate, SanctionRevoke
from forum_moderation.services.command_support import require_actor
from forum_moderation.services.factories import (
    build_apply_sanction, build_banned_users, build_revoke_sanction,
    build_sanction_stats, build_sanctions_history, build_user_sanctions,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/moderation", tags=["moderation"])


def _client_info(request: Request) -> dict:
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }


@router.post("/sanctions", status_code=status.HTTP_201_CREATED)
async def apply_sanction(
    body: SanctionCreate,
    request: Request,
    x_actor_id: int = Header(),
    db: AsyncSession = Depends(get_db),
):
    return await build_apply_sanction(db).execute(
        target_user_id=body.user_id,
        moderator_id=x_actor_id,
        sanction_type=body.sanction_type,
        reason=body.reason,
        duration_hours=body.duration_hours,
        severity=body.severity,
        evidence=body.evidence,
        **_client_info(request),
    )


@router.post("/sanctions/{sanction_id}/revoke")
async def revoke_sanction(
    sanction_id: int,
    body: SanctionRevoke,
    request: Request,
    x_actor_id: int = Header(),
    db: AsyncSession = Depends(get_db),
):
    return await build_revoke_sanction(db).execute(
        sanction_id=sanction_id,
        revoked_by=x_actor_id,
        revoke_reason=body.revoke_reason,
        **_client_info(request),
    )


@router.get("/sanctions")
async def list_sanctions(
    x_actor_id: int = Header(),
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1),
    user_id: int | None = None,
    moderator_id: int | None = None,
    sanction_type: str | None = None,
    severity: str | None = None,
    status_filter: str | None = Query(None, alias="status"),
    sort_by: str | None = None,
    sort_order: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    """Sanction history; limit above the configured maximum is clamped, not rejected."""
    return await build_sanctions_history(db).execute(
        requester_id=x_actor_id,
        page=page,
        limit=limit,
        user_id=user_id,
        moderator_id=moderator_id,
        sanction_type=sanction_type,
        severity=severity,
        status=status_filter,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get("/sanctions/stats")
async def sanction_stats(
    x_actor_id: int = Header(),
    moderator_id: int | None = None,
    db: AsyncSession = Depends(get_db),
):
    return await build_sanction_stats(db).execute(
        requester_id=x_actor_id, moderator_id=moderator_id,
    )


@router.get("/users/{user_id}/sanctions")
async def user_sanctions(
    user_id: int,
    x_actor_id: int = Header(),
    include_inactive: bool = True,
    db: AsyncSession = Depends(get_db),
):
    return await build_user_sanctions(db).execute(
        requester_id=x_actor_id,
        user_id=user_id,
        include_inactive=include_inactive,
    )


@router.get("/banned-users")
async def banned_users(
    x_actor_id: int = Header(),
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
):
    return await build_banned_users(db).execute(
        requester_id=x_actor_id, page=page, limit=limit,
    )


@router.post("/sweep")
async def run_sweep(
    x_actor_id: int = Header(),
    db: AsyncSession = Depends(get_db),
    task: SanctionsSweepTask = Depends(get_sweep_task),
):
    """Run the expiration sweep now; skipped if a tick is already in progress."""
    await require_actor(SqlAlchemyUserStore(db), x_actor_id, can_administer)
    result = await task.run_once()
    logger.info(
        "Manual expiration sweep requested",
        extra={"actor_id": x_actor_id},
    )
    return {
        "ran": result is not None,
        "result": result.to_dict() if result else None,
        "status": task.get_status(),
    }


@router.get("/sweep/status")
async def sweep_status(
    x_actor_id: int = Header(),
    db: AsyncSession = Depends(get_db),
    task: SanctionsSweepTask = Depends(get_sweep_task),
):
    await require_actor(SqlAlchemyUserStore(db), x_actor_id, can_administer)
    return task.get_status()
