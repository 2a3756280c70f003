"""
StackLite Backend — Question Thread State Machine
===================================================

What:  The question aggregate (question → answers → comments/votes) and every
       transition allowed on it.
Why:   All of the thread's invariants are enforced here, in one place:
         - at most one answer per question carries an accepted-by marker
         - a user appears at most once among an answer's upvotes, and at
           most once among its downvotes
         - only the question owner may edit, accept or unaccept
         - a question with at least one answer can no longer be edited
How:   Pydantic models describe the embedded document exactly as it is
       stored in the `questions.answers` JSON column. Transitions are
       explicit tagged operations (ThreadOperation) applied by
       `apply_operation()`; each one locates its target answer by id,
       checks its invariant, then mutates the aggregate in place.
       Failures raise the application errors from stacklite.exceptions.
Who:   QuestionService loads a QuestionThread from the row, applies one
       operation, and writes the dumped answers back.

Answer acceptance is a two-state machine:

    UNACCEPTED ──ACCEPT(owner)──▶ ACCEPTED(by)
        ▲                              │
        └────────UNACCEPT(owner)───────┘

Upvotes and downvotes are independent sequences: holding both at once is
allowed (see DESIGN.md, open questions).
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from stacklite.exceptions import (
    ConflictError,
    ForbiddenError,
    NoResultError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ══════════════════════════════════════════════════════════════════════════
# Aggregate Models — the embedded document
# ══════════════════════════════════════════════════════════════════════════


class _Embedded(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Vote(_Embedded):
    """One vote marker; the voter's user id."""

    user: UUID


class Comment(_Embedded):
    id: UUID = Field(default_factory=uuid4, alias="_id")
    user: UUID
    answer: UUID
    comment: str


class AcceptanceState(str, enum.Enum):
    UNACCEPTED = "unaccepted"
    ACCEPTED = "accepted"


class Answer(_Embedded):
    """
    An answer embedded in its question.

    Attributes:
        check:    user id of the question owner who accepted it, or None
        upvote:   upvote markers, oldest first
        downvote: downvote markers, oldest first
    """

    id: UUID = Field(default_factory=uuid4, alias="_id")
    user: UUID
    question: UUID
    answer: str
    comments: List[Comment] = Field(default_factory=list)
    check: Optional[UUID] = None
    upvote: List[Vote] = Field(default_factory=list)
    downvote: List[Vote] = Field(default_factory=list)
    time: datetime = Field(default_factory=_utcnow)

    @property
    def state(self) -> AcceptanceState:
        if self.check is None:
            return AcceptanceState.UNACCEPTED
        return AcceptanceState.ACCEPTED


class QuestionThread(_Embedded):
    """
    The aggregate root: a question and its answers, most recent first.
    """

    id: UUID = Field(alias="_id")
    user: UUID
    question: str
    answers: List[Answer] = Field(default_factory=list)

    def dump_answers(self) -> List[dict]:
        """JSON-safe answers list, in the shape stored in the database."""
        return [answer.model_dump(mode="json", by_alias=True) for answer in self.answers]

    def accepted_answer(self) -> Optional[Answer]:
        for answer in self.answers:
            if answer.state is AcceptanceState.ACCEPTED:
                return answer
        return None


# ══════════════════════════════════════════════════════════════════════════
# Transitions
# ══════════════════════════════════════════════════════════════════════════


class ThreadOperation(str, enum.Enum):
    ACCEPT = "check"
    UNACCEPT = "uncheck"
    UPVOTE = "upvote"
    REMOVE_UPVOTE = "unupvote"
    DOWNVOTE = "downvote"
    REMOVE_DOWNVOTE = "undownvote"
    COMMENT = "comment"


def _parse_id(value: Union[str, UUID]) -> Optional[UUID]:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


def find_answer(thread: QuestionThread, answer_id: Union[str, UUID]) -> Answer:
    """Locate an answer by id within the thread, or raise NotFoundError."""
    wanted = _parse_id(answer_id)
    for answer in thread.answers:
        if wanted is not None and answer.id == wanted:
            return answer
    raise NotFoundError(errors={"notFound": "Answer by that id not found"})


def _require_owner(thread: QuestionThread, actor_id: UUID, key: str, message: str) -> None:
    if thread.user != actor_id:
        raise ForbiddenError(errors={key: message})


def edit_question(thread: QuestionThread, actor_id: UUID, text: str) -> None:
    _require_owner(
        thread, actor_id, "noAuth", "You don't have that permission to edit the question"
    )
    if thread.answers:
        raise ConflictError(
            errors={"answerFound": "The question cannot be edited since it already has answers"}
        )
    if thread.question == text:
        raise ConflictError(errors={"noChange": "No changes in question detected"})
    thread.question = text


def can_delete(thread: QuestionThread, actor_id: UUID, is_admin: bool) -> bool:
    return thread.user == actor_id or is_admin


def add_answer(thread: QuestionThread, author_id: UUID, text: str) -> Answer:
    answer = Answer(user=author_id, question=thread.id, answer=text)
    thread.answers.insert(0, answer)
    return answer


def accept_answer(thread: QuestionThread, answer_id: Union[str, UUID], actor_id: UUID) -> Answer:
    # Order: owner, then the single-accepted rule, then the lookup
    _require_owner(thread, actor_id, "notAuth", "Only the question owner can check an answer")
    if thread.accepted_answer() is not None:
        raise ConflictError(errors={"alreadyChecked": "You have already checked another answer"})
    answer = find_answer(thread, answer_id)
    answer.check = actor_id
    return answer


def unaccept_answer(thread: QuestionThread, answer_id: Union[str, UUID], actor_id: UUID) -> Answer:
    _require_owner(thread, actor_id, "noAuth", "Only the question owner can uncheck an answer")
    answer = find_answer(thread, answer_id)
    if answer.state is not AcceptanceState.ACCEPTED:
        raise ConflictError(errors={"notChecked": "The answer has not been checked"})
    answer.check = None
    return answer


class VoteKind(str, enum.Enum):
    UP = "upvote"
    DOWN = "downvote"


_VOTE_MESSAGES = {
    VoteKind.UP: (
        ("alreadyUpvoted", "You have already upvoted this answer"),
        ("notUpvoted", "You have not upvoted the answer"),
    ),
    VoteKind.DOWN: (
        ("alreadyDownvoted", "You have already downvoted"),
        ("notDownvoted", "You have not downvoted the answer"),
    ),
}


def _markers(answer: Answer, kind: VoteKind) -> List[Vote]:
    return answer.upvote if kind is VoteKind.UP else answer.downvote


def cast_vote(
    thread: QuestionThread, answer_id: Union[str, UUID], actor_id: UUID, kind: VoteKind
) -> Answer:
    answer = find_answer(thread, answer_id)
    markers = _markers(answer, kind)
    if any(vote.user == actor_id for vote in markers):
        key, message = _VOTE_MESSAGES[kind][0]
        raise ConflictError(errors={key: message})
    markers.append(Vote(user=actor_id))
    return answer


def retract_vote(
    thread: QuestionThread, answer_id: Union[str, UUID], actor_id: UUID, kind: VoteKind
) -> Answer:
    answer = find_answer(thread, answer_id)
    markers = _markers(answer, kind)
    for index, vote in enumerate(markers):
        if vote.user == actor_id:
            del markers[index]
            return answer
    key, message = _VOTE_MESSAGES[kind][1]
    raise ConflictError(errors={key: message})


def add_comment(
    thread: QuestionThread, answer_id: Union[str, UUID], author_id: UUID, text: str
) -> Comment:
    answer = find_answer(thread, answer_id)
    comment = Comment(user=author_id, answer=answer.id, comment=text)
    answer.comments.append(comment)
    return comment


def apply_operation(
    thread: QuestionThread,
    operation: ThreadOperation,
    answer_id: Union[str, UUID],
    actor_id: UUID,
    text: Optional[str] = None,
) -> Answer:
    """
    Apply one tagged answer-level transition to the thread.

    Returns the answer the operation targeted (after mutation).

    Raises:
        NotFoundError:  answer_id doesn't belong to this question
        ForbiddenError: accept/unaccept by someone other than the owner
        ConflictError:  the transition isn't allowed from the current state
    """
    if operation is ThreadOperation.ACCEPT:
        answer = accept_answer(thread, answer_id, actor_id)
    elif operation is ThreadOperation.UNACCEPT:
        answer = unaccept_answer(thread, answer_id, actor_id)
    elif operation is ThreadOperation.UPVOTE:
        answer = cast_vote(thread, answer_id, actor_id, VoteKind.UP)
    elif operation is ThreadOperation.REMOVE_UPVOTE:
        answer = retract_vote(thread, answer_id, actor_id, VoteKind.UP)
    elif operation is ThreadOperation.DOWNVOTE:
        answer = cast_vote(thread, answer_id, actor_id, VoteKind.DOWN)
    elif operation is ThreadOperation.REMOVE_DOWNVOTE:
        answer = retract_vote(thread, answer_id, actor_id, VoteKind.DOWN)
    elif operation is ThreadOperation.COMMENT:
        if text is None:
            raise ValueError("COMMENT requires text")
        add_comment(thread, answer_id, actor_id, text)
        answer = find_answer(thread, answer_id)
    else:
        raise ValueError(f"Unknown thread operation: {operation!r}")

    logger.debug(
        "Applied %s on answer %s of question %s by %s",
        operation.value, answer.id, thread.id, actor_id,
    )
    return answer


# ══════════════════════════════════════════════════════════════════════════
# Queries
# ══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class MostAnswered:
    thread: QuestionThread
    answers_count: int
    # True when other questions share the same highest count
    tied: bool


def most_answered(threads: Sequence[QuestionThread]) -> MostAnswered:
    """
    Pick the question with the most answers.

    `threads` must be in natural insertion order: on a tie the earliest
    question wins and `tied` is set.

    Raises:
        NotFoundError: there are no questions at all
        NoResultError: every question has zero answers
    """
    if not threads:
        raise NotFoundError(errors={"notFound": "There are no questions available"})

    counts = [len(thread.answers) for thread in threads]
    highest = max(counts)
    if highest == 0:
        raise NoResultError(errors={"noAnswers": "There are no answers yet for the questions"})

    winner = counts.index(highest)
    return MostAnswered(
        thread=threads[winner],
        answers_count=highest,
        tied=counts.count(highest) > 1,
    )
