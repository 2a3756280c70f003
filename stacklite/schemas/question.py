"""
StackLite Backend — Question Schemas
======================================

What:  Request envelopes and response bodies for /api/questions.
How:   Embedded answers are returned as the domain models themselves
       (stacklite.domain.thread.Answer), so the API shows exactly the
       document that is stored: `_id`, `user`, `question`, `answer`,
       `comments`, `check`, `upvote`, `downvote`, `time`.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import Field

from stacklite.domain.thread import Answer
from stacklite.schemas.common import APIModel, Owner, OwnerRef


# ══════════════════════════════════════════════════════════════════════════
# Request Envelopes
# ══════════════════════════════════════════════════════════════════════════


class AddQuestionRequest(APIModel):
    add_question: Optional[Dict[str, Any]] = None


class PutQuestionRequest(APIModel):
    put_question: Optional[Dict[str, Any]] = None


class AddAnswerRequest(APIModel):
    add_answer: Optional[Dict[str, Any]] = None


class AddCommentRequest(APIModel):
    add_comment: Optional[Dict[str, Any]] = None


# ══════════════════════════════════════════════════════════════════════════
# Question Representations
# ══════════════════════════════════════════════════════════════════════════


class SavedQuestion(APIModel):
    id: UUID = Field(alias="_id")
    question: str
    user: OwnerRef


class QuestionSummary(APIModel):
    """List item: id, text and the owner's user name."""

    id: UUID = Field(alias="_id")
    question: str
    user: Owner


class QuestionDetail(APIModel):
    id: UUID = Field(alias="_id")
    question: str
    user: Owner
    answers: List[Answer]


class QuestionDocument(APIModel):
    """The stored aggregate, with the owner as a bare id."""

    id: UUID = Field(alias="_id")
    question: str
    user: UUID
    answers: List[Answer]


# ══════════════════════════════════════════════════════════════════════════
# Response Bodies
# ══════════════════════════════════════════════════════════════════════════


class CreateQuestionResponse(APIModel):
    status: str
    saved_question: SavedQuestion


class QuestionListResponse(APIModel):
    status: str
    message: str
    count: int
    questions_found: List[QuestionSummary]


class QuestionResponse(APIModel):
    status: str
    question_found: QuestionDetail


class UpdateQuestionResponse(APIModel):
    status: str
    message: str
    updated_question: QuestionDocument


class AnswerAddedResponse(APIModel):
    status: str
    id: UUID = Field(alias="_id")
    user: UUID
    question: str
    answers: List[Answer]


class CheckedResponse(APIModel):
    status: str
    message: str
    checked_question: QuestionDocument


class AnswerTransitionResponse(APIModel):
    """Shared by uncheck and upvote: the updated aggregate under `answer`."""

    status: str
    message: str
    answer: QuestionDocument


class UnupvoteResponse(APIModel):
    status: str
    message: str
    unupvote: QuestionDocument


class DownvoteResponse(APIModel):
    status: str
    message: str
    downvote: QuestionDocument


class UndownvoteResponse(APIModel):
    status: str
    message: str
    undownvoted: QuestionDocument


class CommentedResponse(APIModel):
    status: str
    message: str
    commented: QuestionDocument


class MostAnsweredResponse(APIModel):
    status: str
    answers_count: int
    message: str
    # Set only when other questions share the highest answer count
    note: Optional[str] = None
    most_answered: QuestionDetail


class UserQuestionsResponse(APIModel):
    status: str
    questions_count: int
    message: str
    user_questions: List[QuestionDocument]
