"""Command Support: actor resolution, denial mapping and best-effort notification.

Invariants:
    - require_actor raises ActorNotFoundError before any permission check
    - raise_for_denial maps every arbiter denial code to one InsufficientPermission subtype
    - notify_best_effort never raises on collaborator failure (advisory channel)
"""

import logging
from typing import Callable

from forum_moderation.core.errors import (
    ActorNotFoundError,
    CannotSanctionAdminError,
    CannotSanctionModeratorError,
    ErrorContext,
    InsufficientPermissionError,
    RevokeNotAllowedError,
)
from forum_moderation.core.permissions import PermissionDecision
from forum_moderation.core.repository_protocols import (
    NotificationRepository, UnitOfWork, UserLike, UserRepository,
)

logger = logging.getLogger(__name__)

_DENIALS: dict[str, Callable[[ErrorContext | None], InsufficientPermissionError]] = {
    "CANNOT_SANCTION_ADMIN": CannotSanctionAdminError,
    "CANNOT_SANCTION_MODERATOR": CannotSanctionModeratorError,
    "REVOKE_NOT_ALLOWED": RevokeNotAllowedError,
}


def raise_for_denial(
    decision: PermissionDecision, context: ErrorContext | None = None,
) -> None:
    if decision.allowed:
        return
    factory = _DENIALS.get(decision.code or "")
    if factory:
        raise factory(context)
    raise InsufficientPermissionError(
        decision.reason or "Insufficient permissions for this action", context,
    )


async def require_actor(
    users: UserRepository,
    actor_id: int,
    check: Callable[[str], PermissionDecision],
) -> UserLike:
    """Load the acting user and apply a role check."""
    ctx = ErrorContext(actor_id=actor_id)
    actor = await users.find_by_id(actor_id)
    if actor is None:
        raise ActorNotFoundError(actor_id, ctx)
    raise_for_denial(check(actor.role_name), ctx)
    return actor


async def notify_best_effort(
    db: UnitOfWork,
    notifications: NotificationRepository | None,
    *,
    user_id: int,
    content: str,
    related_data: dict,
) -> bool:
    """Queue a moderation notification in its own commit; swallow failures."""
    if notifications is None:
        return False
    try:
        await notifications.create(
            user_id=user_id, type="moderation",
            content=content, related_data=related_data,
        )
        await db.commit()
        return True
    except Exception as e:
        await db.rollback()
        logger.warning(
            f"Failed to notify user {user_id}: {e}",
            extra={"target_user_id": user_id},
        )
        return False
