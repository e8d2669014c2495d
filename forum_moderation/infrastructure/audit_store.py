"""Audit & Notification Stores: append-only SQLAlchemy writers.

Invariants:
    - Both stores only insert; rows are flushed, committed by the caller
    - ActivityLog details must be JSON-serializable
"""

from sqlalchemy.ext.asyncio import AsyncSession

from forum_moderation.models.activity_log import ActivityLog
from forum_moderation.models.notification import Notification


class SqlAlchemyActivityLogStore:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        *,
        user_id: int | None,
        action: str,
        details: dict,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> ActivityLog:
        entry = ActivityLog(
            user_id=user_id,
            action=action,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.db.add(entry)
        await self.db.flush()
        return entry


class SqlAlchemyNotificationStore:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        *,
        user_id: int,
        type: str,
        content: str,
        related_data: dict | None = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id, type=type, content=content, related_data=related_data,
        )
        self.db.add(notification)
        await self.db.flush()
        return notification
