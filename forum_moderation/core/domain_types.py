"""Domain Types: closed enums and identity types for the sanctions domain.

Invariants:
    - SanctionKind, SanctionSeverity and RoleName are the only accepted values
    - DEFAULT_SEVERITY maps every SanctionKind (no fallback branch)
    - BAN_KINDS and SILENCE_KINDS are the only kinds with account-flag projections

Design Decisions:
    - str Enums: serialize to JSON and compare equal to DB column values
    - NewType ids over wrappers: zero runtime cost
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", int)
SanctionId = NewType("SanctionId", int)


# ─── Enums ───────────────────────────────────────────────────────

class SanctionKind(str, Enum):
    """Category of a disciplinary action: maps to `sanction_type` column."""
    WARNING = "warning"
    TEMP_SUSPEND = "temp_suspend"
    PERMANENT_BAN = "permanent_ban"
    SILENCE = "silence"
    RESTRICTION = "restriction"
    IP_BAN = "ip_ban"


class SanctionSeverity(str, Enum):
    """Coarse impact rating attached to each sanction."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RoleName(str, Enum):
    """Forum role hierarchy: admin > moderator > user."""
    ADMIN = "admin"
    MODERATOR = "moderator"
    USER = "user"


class SortField(str, Enum):
    """Sortable columns for sanction listings."""
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    SANCTION_TYPE = "sanction_type"
    SEVERITY = "severity"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SanctionStatus(str, Enum):
    """Status filter for history queries."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    ALL = "all"


# ─── Kind Tables ─────────────────────────────────────────────────

DEFAULT_SEVERITY: dict[SanctionKind, SanctionSeverity] = {
    SanctionKind.WARNING: SanctionSeverity.LOW,
    SanctionKind.SILENCE: SanctionSeverity.MEDIUM,
    SanctionKind.RESTRICTION: SanctionSeverity.MEDIUM,
    SanctionKind.TEMP_SUSPEND: SanctionSeverity.HIGH,
    SanctionKind.PERMANENT_BAN: SanctionSeverity.CRITICAL,
    SanctionKind.IP_BAN: SanctionSeverity.CRITICAL,
}

DISPLAY_NAMES: dict[SanctionKind, str] = {
    SanctionKind.WARNING: "Warning",
    SanctionKind.SILENCE: "Silence",
    SanctionKind.RESTRICTION: "Restriction",
    SanctionKind.TEMP_SUSPEND: "Temporary suspension",
    SanctionKind.PERMANENT_BAN: "Permanent ban",
    SanctionKind.IP_BAN: "IP ban",
}

SEVERITY_RANK: dict[SanctionSeverity, int] = {
    SanctionSeverity.LOW: 1,
    SanctionSeverity.MEDIUM: 2,
    SanctionSeverity.HIGH: 3,
    SanctionSeverity.CRITICAL: 4,
}

BAN_KINDS: frozenset[SanctionKind] = frozenset({
    SanctionKind.TEMP_SUSPEND, SanctionKind.PERMANENT_BAN,
})
SILENCE_KINDS: frozenset[SanctionKind] = frozenset({SanctionKind.SILENCE})

# Kinds whose expiry can change a user's flags; the sweep reconciles only these
SWEEP_RECONCILED_KINDS: frozenset[SanctionKind] = frozenset({
    SanctionKind.TEMP_SUSPEND, SanctionKind.SILENCE, SanctionKind.RESTRICTION,
})

MODERATING_ROLES: frozenset[RoleName] = frozenset({
    RoleName.ADMIN, RoleName.MODERATOR,
})


def default_severity(kind: SanctionKind) -> SanctionSeverity:
    """Per-kind severity used when no explicit override is given."""
    return DEFAULT_SEVERITY[kind]


def display_name(kind: SanctionKind) -> str:
    return DISPLAY_NAMES[kind]
