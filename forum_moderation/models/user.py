"""User & Role ORM: forum accounts with the sanction-derived account flags.

Invariants:
    - Every user references one Role (admin | moderator | user)
    - Ban/silence flags are a projection of the user's active sanctions
      (see core/account_effects.py); warnings_count only ever increases
    - role_name falls back to "user" when no role row is attached

Design Decisions:
    - Role as its own table: role names are data, not an enum column
    - role relationship loaded with selectin: role_name is read on every command
    - banner (the user named by banned_by) is raise-on-lazy-load: only the
      banned-users listing reads it, through an explicit selectinload
"""

from datetime import datetime, timezone

from sqlalchemy import String, Integer, Boolean, Text, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from forum_moderation.db.base import Base


class Role(Base):
    """Named role in the forum hierarchy."""
    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class User(Base):
    """Forum account: identity, role and moderation flags."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    role_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("roles.id"), nullable=False,
    )

    # Sanction projection
    is_banned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    banned_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    banned_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True,
    )
    ban_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_silenced: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    silenced_until: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    warnings_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_warning_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    role: Mapped["Role"] = relationship("Role", lazy="selectin")
    banner: Mapped["User"] = relationship(
        "User", foreign_keys=[banned_by], remote_side=[id], lazy="raise",
    )

    @property
    def role_name(self) -> str:
        return self.role.name if self.role else "user"
