"""
StackLite Backend — Question Service (Thread Orchestrator)
============================================================

What:  Every question/answer operation: create, list, read, edit, delete,
       answer, accept/unaccept, vote/unvote, comment, and the two queries.
Why:   Keeps the HTTP layer thin and the domain layer storage-free.
How:   Each mutation follows the same path:

    ┌──────────┐   ┌────────────┐   ┌──────────────────┐   ┌───────────┐
    │ Validate │──▶│ Load row   │──▶│ Apply transition │──▶│ Flush row │
    │ input    │   │ (404)      │   │ (domain.thread)  │   │ (version) │
    └──────────┘   └────────────┘   └──────────────────┘   └───────────┘

    The flush is a compare-and-swap on `questions.version`: if another
    request changed the same question after we loaded it, SQLAlchemy raises
    StaleDataError and the caller gets a 409 instead of silently losing
    the other write.

Error Handling Strategy:
    Domain errors (NotFound/Forbidden/Conflict/NoResult) propagate as-is.
    StaleDataError → ConflictError. Other SQLAlchemy errors → DatabaseError.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.exc import StaleDataError

from stacklite.dependencies import CurrentUser
from stacklite.domain import thread as domain
from stacklite.domain.thread import QuestionThread, ThreadOperation
from stacklite.exceptions import (
    ConflictError,
    DatabaseError,
    ForbiddenError,
    NotFoundError,
    StackLiteError,
    ValidationFailedError,
)
from stacklite.models.question import Question
from stacklite.models.user import User
from stacklite.schemas.common import MessageResponse, Owner, OwnerRef
from stacklite.schemas.question import (
    AnswerAddedResponse,
    AnswerTransitionResponse,
    CheckedResponse,
    CommentedResponse,
    CreateQuestionResponse,
    DownvoteResponse,
    MostAnsweredResponse,
    QuestionDetail,
    QuestionDocument,
    QuestionListResponse,
    QuestionResponse,
    QuestionSummary,
    SavedQuestion,
    UndownvoteResponse,
    UnupvoteResponse,
    UpdateQuestionResponse,
    UserQuestionsResponse,
)
from stacklite.validators import (
    validate_answer_input,
    validate_comment_input,
    validate_question_input,
)

logger = logging.getLogger(__name__)

QUESTION_NOT_FOUND = "Question by that id not found"
QUESTION_GONE = "Question by that id is either deleted or does not exists"
CONCURRENT_UPDATE = "The question was modified concurrently, please retry"
TIE_NOTE = (
    "There are other question with the same number of answers. "
    "However, this question was asked earlier."
)


@contextmanager
def _store_errors(operation: str, **context: Any) -> Iterator[None]:
    """Translate persistence failures into application errors."""
    try:
        yield
    except StackLiteError:
        raise
    except StaleDataError:
        logger.warning("Concurrent modification during %s: %s", operation, context)
        raise ConflictError(errors={"global": CONCURRENT_UPDATE})
    except SQLAlchemyError as e:
        logger.error("Database error during %s: %s", operation, str(e), exc_info=True)
        raise DatabaseError(context={"operation": operation, **context})


def _parse_id(value: str, message: str) -> UUID:
    # Malformed ids can't match anything, so they are reported as missing
    try:
        return UUID(str(value))
    except ValueError:
        raise NotFoundError(errors={"notFound": message})


def _validated(result_errors: Dict[str, str]) -> None:
    if result_errors:
        raise ValidationFailedError(errors=result_errors)


def _document(thread: QuestionThread) -> QuestionDocument:
    return QuestionDocument(
        id=thread.id, question=thread.question, user=thread.user, answers=thread.answers
    )


def _detail(thread: QuestionThread, user_name: str) -> QuestionDetail:
    return QuestionDetail(
        id=thread.id,
        question=thread.question,
        user=Owner(id=thread.user, user_name=user_name),
        answers=thread.answers,
    )


class QuestionService:
    """
    Business logic for the question aggregate.

    Stateless: every method receives the session and, for mutations, the
    authenticated caller.
    """

    # ── Loading & Persisting ──────────────────────────────────────────────

    async def _load(
        self, db: AsyncSession, question_id: str, message: str = QUESTION_NOT_FOUND
    ) -> Tuple[Question, str]:
        """Fetch a question row and its owner's user name, or raise NotFoundError."""
        qid = _parse_id(question_id, message)
        with _store_errors("load_question", question_id=str(qid)):
            result = await db.execute(
                select(Question, User.user_name)
                .join(User, Question.user_id == User.id)
                .where(Question.id == qid)
            )
            row = result.one_or_none()
        if row is None:
            raise NotFoundError(errors={"notFound": message})
        return row[0], row[1]

    async def _persist(self, db: AsyncSession, row: Question, thread: QuestionThread) -> None:
        """Write the aggregate back; fails with 409 if the version moved."""
        row.question = thread.question
        row.answers = thread.dump_answers()
        # The JSON column isn't change-tracked in place; mark it explicitly
        flag_modified(row, "answers")
        with _store_errors("save_question", question_id=str(row.id)):
            await db.flush()

    async def _find_by_text(self, db: AsyncSession, text: str) -> Optional[Question]:
        with _store_errors("find_question_by_text"):
            result = await db.execute(select(Question).where(Question.question == text))
            return result.scalar_one_or_none()

    # ── Question CRUD ─────────────────────────────────────────────────────

    async def create_question(
        self, db: AsyncSession, actor: CurrentUser, data: Optional[Mapping[str, Any]]
    ) -> CreateQuestionResponse:
        """
        Ask a new question.

        Raises:
            ValidationFailedError: text missing or outside 3–255 chars
            ConflictError: a question with identical text exists (any owner)
        """
        _validated(validate_question_input(data).errors)
        text = str(data["question"])

        existing = await self._find_by_text(db, text)
        if existing is not None:
            raise self._duplicate(existing.id)

        row = Question(user_id=actor.id, question=text, answers=[])
        db.add(row)
        with _store_errors("create_question"):
            try:
                await db.flush()
            except IntegrityError:
                # Lost a race with a concurrent insert of the same text
                raise ConflictError(errors={"questionExists": "question already asked"})
        logger.info("Question %s created by %s", row.id, actor.id)

        return CreateQuestionResponse(
            status="201",
            saved_question=SavedQuestion(
                id=row.id, question=row.question, user=OwnerRef(id=actor.id)
            ),
        )

    @staticmethod
    def _duplicate(existing_id: UUID) -> ConflictError:
        return ConflictError(
            errors={"questionExists": "question already asked"},
            extra={"request": {"type": "GET", "url": f"/api/questions/{existing_id}"}},
        )

    async def list_questions(self, db: AsyncSession) -> QuestionListResponse:
        with _store_errors("list_questions"):
            result = await db.execute(
                select(Question.id, Question.question, User.id, User.user_name)
                .join(User, Question.user_id == User.id)
                .order_by(Question.created_at, Question.id)
            )
            rows = result.all()

        if not rows:
            raise NotFoundError(errors={"notFound": "There are no questions available"})

        return QuestionListResponse(
            status="200",
            message="Question(s) listed below",
            count=len(rows),
            questions_found=[
                QuestionSummary(
                    id=qid, question=text, user=Owner(id=owner_id, user_name=user_name)
                )
                for qid, text, owner_id, user_name in rows
            ],
        )

    async def get_question(self, db: AsyncSession, question_id: str) -> QuestionResponse:
        row, user_name = await self._load(db, question_id)
        return QuestionResponse(status="200", question_found=_detail(row.to_thread(), user_name))

    async def update_question(
        self,
        db: AsyncSession,
        actor: CurrentUser,
        question_id: str,
        data: Optional[Mapping[str, Any]],
    ) -> UpdateQuestionResponse:
        """
        Replace the question text.

        Allowed only for the owner, only while the question has no answers,
        and only when the text actually changes.
        """
        _validated(validate_question_input(data).errors)
        text = str(data["question"])

        row, _ = await self._load(db, question_id)
        thread = row.to_thread()
        domain.edit_question(thread, actor.id, text)

        clash = await self._find_by_text(db, text)
        if clash is not None and clash.id != row.id:
            raise self._duplicate(clash.id)

        await self._persist(db, row, thread)
        logger.info("Question %s edited by %s", row.id, actor.id)

        return UpdateQuestionResponse(
            status="200",
            message="Question successfully updated",
            updated_question=_document(thread),
        )

    async def delete_question(
        self, db: AsyncSession, actor: CurrentUser, question_id: str
    ) -> MessageResponse:
        """Delete a question with everything embedded in it (owner or admin)."""
        row, _ = await self._load(db, question_id, QUESTION_GONE)
        if not domain.can_delete(row.to_thread(), actor.id, actor.is_admin):
            raise ForbiddenError(
                errors={"noAuth": "You don't have that permission to delete the question"}
            )

        with _store_errors("delete_question", question_id=str(row.id)):
            await db.delete(row)
            await db.flush()
        logger.info("Question %s deleted by %s (admin=%s)", row.id, actor.id, actor.is_admin)

        return MessageResponse(status="200", message="Question deleted")

    # ── Answers ───────────────────────────────────────────────────────────

    async def add_answer(
        self,
        db: AsyncSession,
        actor: CurrentUser,
        question_id: str,
        data: Optional[Mapping[str, Any]],
    ) -> AnswerAddedResponse:
        _validated(validate_answer_input(data).errors)

        row, _ = await self._load(db, question_id)
        thread = row.to_thread()
        answer = domain.add_answer(thread, actor.id, str(data["answer"]))
        await self._persist(db, row, thread)
        logger.info("Answer %s added to question %s by %s", answer.id, thread.id, actor.id)

        return AnswerAddedResponse(
            status="201",
            id=thread.id,
            user=thread.user,
            question=thread.question,
            answers=thread.answers,
        )

    async def _transition(
        self,
        db: AsyncSession,
        actor: CurrentUser,
        question_id: str,
        answer_id: str,
        operation: ThreadOperation,
        text: Optional[str] = None,
    ) -> QuestionThread:
        row, _ = await self._load(db, question_id)
        thread = row.to_thread()
        answer = domain.apply_operation(thread, operation, answer_id, actor.id, text)
        await self._persist(db, row, thread)
        logger.info(
            "Answer %s of question %s: %s by %s", answer.id, thread.id, operation.value, actor.id
        )
        return thread

    async def accept_answer(
        self, db: AsyncSession, actor: CurrentUser, question_id: str, answer_id: str
    ) -> CheckedResponse:
        thread = await self._transition(db, actor, question_id, answer_id, ThreadOperation.ACCEPT)
        return CheckedResponse(
            status="201", message="Answer checked", checked_question=_document(thread)
        )

    async def unaccept_answer(
        self, db: AsyncSession, actor: CurrentUser, question_id: str, answer_id: str
    ) -> AnswerTransitionResponse:
        thread = await self._transition(db, actor, question_id, answer_id, ThreadOperation.UNACCEPT)
        return AnswerTransitionResponse(
            status="200", message="Answer unchecked", answer=_document(thread)
        )

    async def upvote(
        self, db: AsyncSession, actor: CurrentUser, question_id: str, answer_id: str
    ) -> AnswerTransitionResponse:
        thread = await self._transition(db, actor, question_id, answer_id, ThreadOperation.UPVOTE)
        return AnswerTransitionResponse(
            status="201", message="You have upvoted the answer", answer=_document(thread)
        )

    async def remove_upvote(
        self, db: AsyncSession, actor: CurrentUser, question_id: str, answer_id: str
    ) -> UnupvoteResponse:
        thread = await self._transition(
            db, actor, question_id, answer_id, ThreadOperation.REMOVE_UPVOTE
        )
        return UnupvoteResponse(
            status="200", message="You have un upvoted the answer", unupvote=_document(thread)
        )

    async def downvote(
        self, db: AsyncSession, actor: CurrentUser, question_id: str, answer_id: str
    ) -> DownvoteResponse:
        thread = await self._transition(db, actor, question_id, answer_id, ThreadOperation.DOWNVOTE)
        return DownvoteResponse(
            status="201", message="You have downvoted the answer", downvote=_document(thread)
        )

    async def remove_downvote(
        self, db: AsyncSession, actor: CurrentUser, question_id: str, answer_id: str
    ) -> UndownvoteResponse:
        thread = await self._transition(
            db, actor, question_id, answer_id, ThreadOperation.REMOVE_DOWNVOTE
        )
        return UndownvoteResponse(
            status="200",
            message="You have un downvoted the answer",
            undownvoted=_document(thread),
        )

    async def add_comment(
        self,
        db: AsyncSession,
        actor: CurrentUser,
        question_id: str,
        answer_id: str,
        data: Optional[Mapping[str, Any]],
    ) -> CommentedResponse:
        _validated(validate_comment_input(data).errors)
        thread = await self._transition(
            db, actor, question_id, answer_id, ThreadOperation.COMMENT, str(data["comment"])
        )
        return CommentedResponse(
            status="201", message="Answer commented", commented=_document(thread)
        )

    # ── Queries ───────────────────────────────────────────────────────────

    async def most_answered(self, db: AsyncSession) -> MostAnsweredResponse:
        """
        The question with the most answers; ties go to the earliest question.

        Raises:
            NotFoundError: no questions at all
            NoResultError: no question has any answers yet
        """
        with _store_errors("most_answered"):
            result = await db.execute(
                select(Question, User.user_name)
                .join(User, Question.user_id == User.id)
                .order_by(Question.created_at, Question.id)
            )
            rows = result.all()

        threads: List[QuestionThread] = [row.to_thread() for row, _ in rows]
        owners = {row.id: user_name for row, user_name in rows}

        winner = domain.most_answered(threads)
        user_name = owners[winner.thread.id]

        return MostAnsweredResponse(
            status="200",
            answers_count=winner.answers_count,
            message=(
                f"The question from {user_name} received most answers, "
                f"({winner.answers_count}) in total"
            ),
            note=TIE_NOTE if winner.tied else None,
            most_answered=_detail(winner.thread, user_name),
        )

    async def list_own_questions(
        self, db: AsyncSession, actor: CurrentUser
    ) -> UserQuestionsResponse:
        with _store_errors("list_own_questions", user_id=str(actor.id)):
            result = await db.execute(
                select(Question)
                .where(Question.user_id == actor.id)
                .order_by(Question.created_at, Question.id)
            )
            rows = list(result.scalars().all())

        if not rows:
            raise NotFoundError(errors={"notFound": "This user has no questions yet"})

        return UserQuestionsResponse(
            status="200",
            questions_count=len(rows),
            message=f"You have {len(rows)} questions",
            user_questions=[_document(row.to_thread()) for row in rows],
        )


# ── Singleton Instance ────────────────────────────────────────────────────
question_service = QuestionService()
