"""Command Input Validation: normalizes raw command arguments or raises InvalidInputError.

Invariants:
    - Pure: no IO; runs before any repository read or write
    - Reasons are stripped and must be non-empty
    - Durations are positive whole hours (None means "no duration")
"""

from forum_moderation.core.domain_types import (
    SanctionKind, SanctionSeverity, SanctionStatus, SortField, SortOrder,
)
from forum_moderation.core.errors import InvalidInputError

MAX_REASON_LENGTH = 2000


def require_reason(reason: str | None, field: str = "reason") -> str:
    reason = (reason or "").strip()
    if not reason:
        raise InvalidInputError(f"{field} is required", field)
    if len(reason) > MAX_REASON_LENGTH:
        raise InvalidInputError(
            f"{field} must not exceed {MAX_REASON_LENGTH} characters", field,
        )
    return reason


def parse_kind(value: str | SanctionKind) -> SanctionKind:
    try:
        return SanctionKind(value)
    except ValueError:
        allowed = ", ".join(k.value for k in SanctionKind)
        raise InvalidInputError(
            f"Invalid sanction type '{value}'. Allowed: {allowed}", "sanction_type",
        )


def parse_severity(value: str | SanctionSeverity | None) -> SanctionSeverity | None:
    if value is None:
        return None
    try:
        return SanctionSeverity(value)
    except ValueError:
        allowed = ", ".join(s.value for s in SanctionSeverity)
        raise InvalidInputError(
            f"Invalid severity '{value}'. Allowed: {allowed}", "severity",
        )


def parse_duration(value: int | None) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidInputError(
            "duration_hours must be a positive whole number of hours", "duration_hours",
        )
    return value


def parse_status(value: str | SanctionStatus | None) -> SanctionStatus:
    try:
        return SanctionStatus(value or SanctionStatus.ALL)
    except ValueError:
        raise InvalidInputError(f"Invalid status '{value}'", "status")


def parse_sort(
    sort_by: str | SortField | None, sort_order: str | SortOrder | None,
) -> tuple[SortField, SortOrder]:
    try:
        field = SortField(sort_by or SortField.CREATED_AT)
    except ValueError:
        raise InvalidInputError(f"Invalid sort field '{sort_by}'", "sort_by")
    try:
        order = SortOrder(sort_order or SortOrder.DESC)
    except ValueError:
        raise InvalidInputError(f"Invalid sort order '{sort_order}'", "sort_order")
    return field, order
