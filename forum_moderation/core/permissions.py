"""Permission Arbiter: who may sanction whom, and who may undo it.

Invariants:
    - All functions are PURE: no IO, no side effects
    - Administrators can never be sanctioned, by anyone
    - Only administrators may sanction moderators
    - Only administrators may revoke, regardless of issuer or target
    - Unknown role strings are treated as plain users

Design Decisions:
    - Return PermissionDecision (not exceptions): callers map denial codes to their
      own error types, keeping the arbiter free of the error hierarchy
"""

from dataclasses import dataclass

from forum_moderation.core.domain_types import MODERATING_ROLES, RoleName


@dataclass(frozen=True)
class PermissionDecision:
    allowed: bool
    reason: str | None = None
    code: str | None = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOWED = PermissionDecision(allowed=True)

DENY_NOT_MODERATOR = PermissionDecision(
    False, "Insufficient permissions for this action", "INSUFFICIENT_PERMISSION",
)
DENY_TARGET_ADMIN = PermissionDecision(
    False, "Administrators cannot be sanctioned", "CANNOT_SANCTION_ADMIN",
)
DENY_TARGET_MODERATOR = PermissionDecision(
    False, "Only administrators can sanction moderators", "CANNOT_SANCTION_MODERATOR",
)
DENY_REVOKE = PermissionDecision(
    False, "Only administrators can revoke sanctions", "REVOKE_NOT_ALLOWED",
)
DENY_NOT_ADMIN = PermissionDecision(
    False, "Only administrators can perform this action", "INSUFFICIENT_PERMISSION",
)


def parse_role(role: str | RoleName | None) -> RoleName:
    try:
        return RoleName(role)
    except ValueError:
        return RoleName.USER


def can_moderate(role: str | RoleName | None) -> PermissionDecision:
    """Admins and moderators may issue sanctions and read moderation data."""
    if parse_role(role) in MODERATING_ROLES:
        return ALLOWED
    return DENY_NOT_MODERATOR


def can_issue(
    actor_role: str | RoleName | None, target_role: str | RoleName | None,
) -> PermissionDecision:
    """Decide whether actor may sanction target."""
    actor, target = parse_role(actor_role), parse_role(target_role)
    if target == RoleName.ADMIN:
        return DENY_TARGET_ADMIN
    if target == RoleName.MODERATOR and actor != RoleName.ADMIN:
        return DENY_TARGET_MODERATOR
    if actor not in MODERATING_ROLES:
        return DENY_NOT_MODERATOR
    return ALLOWED


def can_revoke(actor_role: str | RoleName | None) -> PermissionDecision:
    if parse_role(actor_role) == RoleName.ADMIN:
        return ALLOWED
    return DENY_REVOKE


def can_administer(role: str | RoleName | None) -> PermissionDecision:
    """Admin-only operations (manual expiration sweep)."""
    if parse_role(role) == RoleName.ADMIN:
        return ALLOWED
    return DENY_NOT_ADMIN
