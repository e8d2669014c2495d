"""ORM Models: SQLAlchemy declarative models for users, sanctions and their audit trail.

Invariants:
    - All models inherit from Base (db/base.py)
    - Sanction rows reference users three times (target, issuer, revoker)

Design Decisions:
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from forum_moderation.models.user import Role, User  # noqa: F401
from forum_moderation.models.sanction import Sanction  # noqa: F401
from forum_moderation.models.activity_log import ActivityLog  # noqa: F401
from forum_moderation.models.notification import Notification  # noqa: F401
