"""Use-Case Factories: wire commands and queries to the SQLAlchemy stores.

Invariants:
    - Every use case built here shares one AsyncSession (its unit of work)
    - Only this module and the routes know concrete store classes
"""

from sqlalchemy.ext.asyncio import AsyncSession

from forum_moderation.config import get_settings
from forum_moderation.infrastructure.audit_store import (
    SqlAlchemyActivityLogStore, SqlAlchemyNotificationStore,
)
from forum_moderation.infrastructure.sanction_store import SqlAlchemySanctionStore
from forum_moderation.infrastructure.user_store import SqlAlchemyUserStore
from forum_moderation.services.apply_sanction import ApplySanction
from forum_moderation.services.expire_sanctions import ExpirationSweep
from forum_moderation.services.revoke_sanction import RevokeSanction
from forum_moderation.services.sanction_queries import (
    GetBannedUsers, GetSanctionStats, GetSanctionsHistory, GetUserSanctions,
)


def build_apply_sanction(db: AsyncSession) -> ApplySanction:
    return ApplySanction(
        db,
        SqlAlchemyUserStore(db),
        SqlAlchemySanctionStore(db),
        SqlAlchemyActivityLogStore(db),
        SqlAlchemyNotificationStore(db),
    )


def build_revoke_sanction(db: AsyncSession) -> RevokeSanction:
    return RevokeSanction(
        db,
        SqlAlchemyUserStore(db),
        SqlAlchemySanctionStore(db),
        SqlAlchemyActivityLogStore(db),
        SqlAlchemyNotificationStore(db),
    )


def build_expiration_sweep(db: AsyncSession) -> ExpirationSweep:
    return ExpirationSweep(
        db,
        SqlAlchemyUserStore(db),
        SqlAlchemySanctionStore(db),
        SqlAlchemyActivityLogStore(db),
    )


def build_sanctions_history(db: AsyncSession) -> GetSanctionsHistory:
    settings = get_settings()
    return GetSanctionsHistory(
        SqlAlchemyUserStore(db),
        SqlAlchemySanctionStore(db),
        default_limit=settings.sanctions_page_size_default,
        max_limit=settings.sanctions_page_size_max,
    )


def build_user_sanctions(db: AsyncSession) -> GetUserSanctions:
    return GetUserSanctions(SqlAlchemyUserStore(db), SqlAlchemySanctionStore(db))


def build_sanction_stats(db: AsyncSession) -> GetSanctionStats:
    return GetSanctionStats(SqlAlchemyUserStore(db), SqlAlchemySanctionStore(db))


def build_banned_users(db: AsyncSession) -> GetBannedUsers:
    settings = get_settings()
    return GetBannedUsers(
        SqlAlchemyUserStore(db),
        default_limit=settings.sanctions_page_size_default,
        max_limit=settings.sanctions_page_size_max,
    )
