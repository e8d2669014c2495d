"""Sanction Schemas: Pydantic request models for the moderation endpoints.

Invariants:
    - reason / revoke_reason: 1-2000 chars after strip
    - duration_hours, when present, is a positive whole number of hours
    - sanction_type and severity restricted to SanctionKind / SanctionSeverity values

Design Decisions:
    - Enum fields reuse core domain types so the API and core share one closed set
    - field_validator for side-effect-free transforms (strip): keeps models pure
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from forum_moderation.core.domain_types import SanctionKind, SanctionSeverity


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("cannot be empty or whitespace")
    return v


class SanctionCreate(BaseModel):
    """Apply-sanction request body."""
    user_id: int = Field(gt=0)
    sanction_type: SanctionKind
    reason: str = Field(min_length=1, max_length=2000)
    duration_hours: int | None = Field(None, gt=0)
    severity: SanctionSeverity | None = None
    evidence: dict[str, Any] | None = None

    @field_validator("reason")
    @classmethod
    def strip_reason(cls, v: str) -> str:
        return _strip_required(v)


class SanctionRevoke(BaseModel):
    revoke_reason: str = Field(min_length=1, max_length=2000)

    @field_validator("revoke_reason")
    @classmethod
    def strip_revoke_reason(cls, v: str) -> str:
        return _strip_required(v)
