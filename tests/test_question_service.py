"""
StackLite Backend — Question Service Unit Tests
=================================================

What:  QuestionService against a mocked AsyncSession, plus the version
       column race against SQLite.
Why:   Storage failure paths (lost version race, driver errors) are hard to
       provoke through the API but must map to the right application error.
"""

from datetime import datetime, timedelta, timezone
from typing import Tuple
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from stacklite.database import async_session_factory
from stacklite.dependencies import CurrentUser
from stacklite.domain.thread import Answer
from stacklite.exceptions import ConflictError, DatabaseError, ForbiddenError, NotFoundError
from stacklite.models import question as question_model
from stacklite.models.question import Question
from stacklite.models.user import User
from stacklite.services.question_service import QuestionService


def _user(is_admin: bool = False) -> CurrentUser:
    return CurrentUser(id=uuid4(), email="dev@gmail.com", user_name="dev", is_admin=is_admin)


def _row(owner: CurrentUser, with_answer: bool = False) -> Question:
    row = Question(
        id=uuid4(),
        user_id=owner.id,
        question="How do I sort a dict?",
        answers=[],
        version=1,
    )
    if with_answer:
        answer = Answer(user=uuid4(), question=row.id, answer="Use sorted() on items()")
        row.answers = [answer.model_dump(mode="json", by_alias=True)]
    return row


def _returns_row(session, row, user_name="dev"):
    result = MagicMock()
    result.one_or_none.return_value = (row, user_name) if row is not None else None
    session.execute.return_value = result


class TestLoading:

    def setup_method(self):
        self.service = QuestionService()

    @pytest.mark.asyncio
    async def test_malformed_id_is_not_found_without_query(self, mock_db_session):
        with pytest.raises(NotFoundError) as exc_info:
            await self.service.get_question(mock_db_session, "not-a-uuid")
        assert exc_info.value.errors == {"notFound": "Question by that id not found"}
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_row(self, mock_db_session):
        _returns_row(mock_db_session, None)
        with pytest.raises(NotFoundError):
            await self.service.get_question(mock_db_session, str(uuid4()))

    @pytest.mark.asyncio
    async def test_driver_error_becomes_database_error(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))
        with pytest.raises(DatabaseError) as exc_info:
            await self.service.get_question(mock_db_session, str(uuid4()))
        assert exc_info.value.status_code == 500
        assert "down" not in str(exc_info.value.errors)

    @pytest.mark.asyncio
    async def test_found(self, mock_db_session):
        owner = _user()
        row = _row(owner, with_answer=True)
        _returns_row(mock_db_session, row, "owner")

        response = await self.service.get_question(mock_db_session, str(row.id))

        assert response.question_found.id == row.id
        assert response.question_found.user.user_name == "owner"
        assert len(response.question_found.answers) == 1


class TestConcurrentModification:

    def setup_method(self):
        self.service = QuestionService()

    @pytest.mark.asyncio
    async def test_stale_version_on_vote_is_conflict(self, mock_db_session):
        owner = _user()
        row = _row(owner, with_answer=True)
        _returns_row(mock_db_session, row)
        mock_db_session.flush = AsyncMock(
            side_effect=StaleDataError("UPDATE statement on table 'questions' expected 1 row")
        )
        answer_id = row.answers[0]["_id"]

        with pytest.raises(ConflictError) as exc_info:
            await self.service.upvote(mock_db_session, _user(), str(row.id), answer_id)

        assert exc_info.value.errors == {
            "global": "The question was modified concurrently, please retry"
        }
        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_successful_transition_flushes_new_document(self, mock_db_session):
        owner = _user()
        row = _row(owner, with_answer=True)
        _returns_row(mock_db_session, row)
        answer_id = row.answers[0]["_id"]

        response = await self.service.accept_answer(
            mock_db_session, owner, str(row.id), answer_id
        )

        mock_db_session.flush.assert_awaited_once()
        assert row.answers[0]["check"] == str(owner.id)
        assert response.checked_question.answers[0].check == owner.id


class TestVersionColumn:
    """Two sessions racing on one question against a real database."""

    def setup_method(self):
        self.service = QuestionService()

    async def _seed(self) -> Tuple[Question, str]:
        async with async_session_factory() as session:
            user = User(
                first_name="Ada",
                last_name="Lovelace",
                user_name="ada",
                email="ada@gmail.com",
                password="$2b$04$notarealhash",
            )
            session.add(user)
            await session.flush()
            row = Question(user_id=user.id, question="How do I sort a dict?", answers=[])
            answer = Answer(user=user.id, question=uuid4(), answer="Use sorted() on items()")
            row.answers = [answer.model_dump(mode="json", by_alias=True)]
            session.add(row)
            await session.commit()
            return row, str(answer.id)

    @pytest.mark.asyncio
    async def test_second_writer_on_same_version_gets_conflict(self, db_schema):
        seeded, answer_id = await self._seed()
        question_id = str(seeded.id)
        assert seeded.version == 1

        async with async_session_factory() as first, async_session_factory() as second:
            # Both sessions hold the question at version 1
            first_row = await first.get(Question, seeded.id)
            second_row = await second.get(Question, seeded.id)
            assert first_row.version == second_row.version == 1

            await self.service.upvote(first, _user(), question_id, answer_id)
            await first.commit()

            with pytest.raises(ConflictError) as exc_info:
                await self.service.upvote(second, _user(), question_id, answer_id)
            await second.rollback()

        assert exc_info.value.status_code == 409
        assert exc_info.value.errors == {
            "global": "The question was modified concurrently, please retry"
        }

        async with async_session_factory() as session:
            stored = (
                await session.execute(select(Question).where(Question.id == seeded.id))
            ).scalar_one()
            assert stored.version == 2
            assert len(stored.answers[0]["upvote"]) == 1


class TestCreateAndDelete:

    def setup_method(self):
        self.service = QuestionService()

    @pytest.mark.asyncio
    async def test_duplicate_points_at_existing_question(self, mock_db_session):
        existing = _row(_user())
        result = MagicMock()
        result.scalar_one_or_none.return_value = existing
        mock_db_session.execute.return_value = result

        with pytest.raises(ConflictError) as exc_info:
            await self.service.create_question(
                mock_db_session, _user(), {"question": existing.question}
            )

        assert exc_info.value.errors == {"questionExists": "question already asked"}
        assert exc_info.value.extra["request"] == {
            "type": "GET",
            "url": f"/api/questions/{existing.id}",
        }
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_by_stranger_is_forbidden(self, mock_db_session):
        row = _row(_user())
        _returns_row(mock_db_session, row)

        with pytest.raises(ForbiddenError) as exc_info:
            await self.service.delete_question(mock_db_session, _user(), str(row.id))

        assert exc_info.value.status_code == 401
        mock_db_session.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_admin_may_delete(self, mock_db_session):
        row = _row(_user())
        _returns_row(mock_db_session, row)

        response = await self.service.delete_question(
            mock_db_session, _user(is_admin=True), str(row.id)
        )

        assert response.message == "Question deleted"
        mock_db_session.delete.assert_awaited_once_with(row)


class TestCreationTime:

    def test_strictly_increasing_under_a_frozen_clock(self, monkeypatch):
        frozen = datetime.now(timezone.utc)
        monkeypatch.setattr(question_model, "_utcnow", lambda: frozen)

        stamps = [question_model.creation_time() for _ in range(3)]

        assert stamps[0] < stamps[1] < stamps[2]
        assert stamps[2] - stamps[0] == timedelta(microseconds=2)
