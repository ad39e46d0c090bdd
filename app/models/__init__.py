"""
SQLModel table models.

Importing this package registers every table with SQLModel.metadata,
which ``app.core.database.init_db`` uses to create the schema.
"""

from app.models.subscription import Subscriptions
from app.models.user import UserBase, Users

__all__ = [
    "Subscriptions",
    "UserBase",
    "Users",
]
