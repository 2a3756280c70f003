"""
StackLite Backend — Question SQLAlchemy Model
===============================================

What:  ORM model representing the `questions` table.
Why:   A question is the aggregate root of its thread. Answers, comments and
       votes are not independent rows: they are embedded in the `answers`
       JSON document column and always read and written together.
How:   `answers` holds the list produced by QuestionThread.dump_answers().
       `version` is SQLAlchemy's version_id_col, so every UPDATE carries
       `WHERE version = :loaded_version` and bumps it. Two requests that
       loaded the same version can't both win: the second flush raises
       StaleDataError, which the service reports as a 409 Conflict.

Query Patterns:
    - List/most-answered: ORDER BY created_at, id (natural insertion order;
                          created_at is strictly increasing per process)
    - Own questions:      WHERE user_id = :caller
    - Duplicate check:    WHERE question = :text (unique index)
"""

import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, List

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from stacklite.database import Base
from stacklite.domain.thread import QuestionThread


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


_creation_lock = threading.Lock()
_last_creation = datetime.min.replace(tzinfo=timezone.utc)


def creation_time() -> datetime:
    """
    UTC now, strictly later than any creation time issued before in this process.

    `created_at` is the insertion order used for listings and the
    most-answered tie rule, so two inserts in the same microsecond must
    still compare unequal.
    """
    global _last_creation
    with _creation_lock:
        now = _utcnow()
        if now <= _last_creation:
            now = _last_creation + timedelta(microseconds=1)
        _last_creation = now
        return now


class Question(Base):
    __tablename__ = "questions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )

    # Unique so that two concurrent creates with the same text can't both land
    question: Mapped[str] = mapped_column(Text, nullable=False, unique=True)

    # JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
    answers: Mapped[List[Any]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=list,
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=creation_time
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("idx_questions_created_at", "created_at"),
    )

    def to_thread(self) -> QuestionThread:
        """Build the domain aggregate from this row."""
        return QuestionThread.model_validate(
            {
                "_id": self.id,
                "user": self.user_id,
                "question": self.question,
                "answers": self.answers or [],
            }
        )

    def __repr__(self) -> str:
        return f"<Question(id={self.id}, answers={len(self.answers or [])}, version={self.version})>"
