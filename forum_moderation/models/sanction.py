"""Sanction ORM: one disciplinary action issued against a user.

Invariants:
    - user_id (target) and moderator_id (issuer) always set
    - expires_at is NULL iff the sanction is permanent by design
    - is_active flips to False exactly once (sweep expiry or revocation)
    - revoked_at / revoked_by / revoke_reason are written together or not at all
    - Rows are never deleted: inactive sanctions are the audit history

Design Decisions:
    - sanction_type / severity as String columns holding SanctionKind / SanctionSeverity
      values: closed sets enforced in core, not by DB enum types
    - JSON evidence: opaque payload supplied by moderators
    - updated_at written explicitly by the store (no server onupdate) so async
      sessions never need to re-fetch expired attributes
"""

from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, Boolean, DateTime, JSON, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from forum_moderation.db.base import Base


class Sanction(Base):
    """Disciplinary record: warning, silence, suspension, ban, restriction, ip ban."""
    __tablename__ = "user_sanctions"
    __table_args__ = (
        Index("ix_user_sanctions_user_active", "user_id", "is_active"),
        Index("ix_user_sanctions_active_expires", "is_active", "expires_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False,
    )
    moderator_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False,
    )
    sanction_type: Mapped[str] = mapped_column(String(20), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    duration_hours: Mapped[int | None] = mapped_column(Integer, nullable=True)
    starts_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    severity: Mapped[str] = mapped_column(
        String(10), nullable=False, default="medium",
    )
    is_automatic: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    evidence: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    # Revocation
    revoked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    revoked_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True,
    )
    revoke_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    user: Mapped["User"] = relationship(
        "User", foreign_keys=[user_id], lazy="selectin",
    )
    moderator: Mapped["User"] = relationship(
        "User", foreign_keys=[moderator_id], lazy="selectin",
    )
    revoker: Mapped["User"] = relationship(
        "User", foreign_keys=[revoked_by], lazy="selectin",
    )
