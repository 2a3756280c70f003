"""
StackLite Backend — ORM Models
================================

Importing this package registers every table with Base.metadata, which is
what Alembic's autogenerate and the test suite's create_all rely on.
"""

from stacklite.models.question import Question
from stacklite.models.user import User

__all__ = ["Question", "User"]
