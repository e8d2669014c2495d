"""User Store: SQLAlchemy implementation of UserRepository.

Invariants:
    - update_by_id only touches account-flag columns
    - find_by_role returns users ordered by id (first admin = system actor)
    - find_banned pages over is_banned users, newest ban first, with banner loaded
"""

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from forum_moderation.core.account_effects import AccountFlags
from forum_moderation.core.domain_types import RoleName
from forum_moderation.core.errors import ResourceNotFoundError
from forum_moderation.core.listing import PageRequest, SanctionPage
from forum_moderation.models.user import Role, User

_FLAG_COLUMNS = frozenset(AccountFlags.__dataclass_fields__)


class SqlAlchemyUserStore:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, user_id: int) -> User | None:
        return await self.db.get(User, user_id)

    async def find_by_role(self, role_name: RoleName | str) -> list[User]:
        result = await self.db.execute(
            select(User)
            .join(Role, User.role_id == Role.id)
            .where(Role.name == RoleName(role_name).value)
            .order_by(User.id),
        )
        return list(result.scalars().all())

    async def find_banned(self, page_request: PageRequest) -> SanctionPage:
        query = (
            select(User)
            .where(User.is_banned.is_(True))
            .options(selectinload(User.banner))
            .order_by(User.banned_at.desc(), User.id.desc())
            .limit(page_request.limit)
            .offset(page_request.offset)
            .execution_options(populate_existing=True)
        )
        rows = (await self.db.execute(query)).scalars().all()
        total = await self.db.scalar(
            select(func.count(User.id)).where(User.is_banned.is_(True)),
        )
        return SanctionPage(
            items=list(rows),
            page=page_request.page,
            limit=page_request.limit,
            total=total or 0,
        )

    async def update_by_id(self, user_id: int, changes: dict[str, Any]) -> User:
        unknown = set(changes) - _FLAG_COLUMNS
        if unknown:
            raise ValueError(f"Not an account flag: {sorted(unknown)}")
        user = await self.db.get(User, user_id)
        if user is None:
            raise ResourceNotFoundError("User", user_id)
        for name, value in changes.items():
            setattr(user, name, value)
        await self.db.flush()
        return user
