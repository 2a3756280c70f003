"""
StackLite Backend — User SQLAlchemy Model
===========================================

What:  ORM model representing the `users` table.
Why:   Identity records for signup/login and for ownership checks on questions.
Who:   Used by UserService (signup, login) and the auth dependency.

Table Design Rationale:
    - UUID primary key: non-sequential ids are also what tokens carry
    - user_name / email: unique; email is always stored lowercased
    - password: bcrypt hash only, never the plaintext
    - confirmed / is_admin: flags; admins may delete any question
    - created_at / updated_at: UTC, timezone aware
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, String, Uuid, false
from sqlalchemy.orm import Mapped, mapped_column

from stacklite.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    A registered user.

    Lifecycle:
        Created at signup; never deleted by any endpoint.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    first_name: Mapped[str] = mapped_column(String(20), nullable=False)
    last_name: Mapped[str] = mapped_column(String(20), nullable=False)
    user_name: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)

    # Lowercased before insert and before every lookup
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)

    avatar: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # bcrypt hash (60 chars); the column name matches the token claim source
    password: Mapped[str] = mapped_column(String(255), nullable=False)

    confirmed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    is_admin: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, user_name='{self.user_name}')>"
