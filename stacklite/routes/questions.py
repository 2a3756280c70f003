"""
StackLite Backend — Question Route Handlers
=============================================

What:  Every endpoint under /api/questions.
How:   Thin handlers: unwrap the envelope, resolve the caller, call
       QuestionService, return its response model.

Route order:
    The two-segment static paths (/questions/mostanswered, /questions/all)
    are declared before the /{question_id} routes.

Auth:
    Only the question listing is public. Everything else needs a token
    (see stacklite.dependencies.get_current_user).
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from stacklite.database import get_db_session
from stacklite.dependencies import CurrentUser, get_current_user
from stacklite.schemas.common import ErrorResponse, MessageResponse
from stacklite.schemas.question import (
    AddAnswerRequest,
    AddCommentRequest,
    AddQuestionRequest,
    AnswerAddedResponse,
    AnswerTransitionResponse,
    CheckedResponse,
    CommentedResponse,
    CreateQuestionResponse,
    DownvoteResponse,
    MostAnsweredResponse,
    PutQuestionRequest,
    QuestionListResponse,
    QuestionResponse,
    UndownvoteResponse,
    UnupvoteResponse,
    UpdateQuestionResponse,
    UserQuestionsResponse,
)
from stacklite.services.question_service import question_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/questions", tags=["Questions"])

_AUTH_ERRORS = {
    400: {"description": "Validation failed or token invalid", "model": ErrorResponse},
    401: {"description": "No token, or not allowed for this caller", "model": ErrorResponse},
}
_TRANSITION_ERRORS = {
    **_AUTH_ERRORS,
    404: {"description": "Question or answer not found", "model": ErrorResponse},
    409: {"description": "Transition not allowed in the current state", "model": ErrorResponse},
}


# ── Collection & Queries ──────────────────────────────────────────────────


@router.get(
    "/questions",
    response_model=QuestionListResponse,
    responses={404: {"description": "No questions yet", "model": ErrorResponse}},
    summary="List all questions",
)
async def list_questions(db: AsyncSession = Depends(get_db_session)) -> QuestionListResponse:
    return await question_service.list_questions(db)


@router.post(
    "/question",
    status_code=status.HTTP_201_CREATED,
    response_model=CreateQuestionResponse,
    responses={
        **_AUTH_ERRORS,
        409: {"description": "Same question already asked", "model": ErrorResponse},
    },
    summary="Ask a question",
)
async def create_question(
    body: AddQuestionRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CreateQuestionResponse:
    return await question_service.create_question(db, user, body.add_question)


@router.get(
    "/questions/mostanswered",
    response_model=MostAnsweredResponse,
    responses={
        **_AUTH_ERRORS,
        400: {"description": "No question has answers yet", "model": ErrorResponse},
        404: {"description": "No questions yet", "model": ErrorResponse},
    },
    summary="The question with the most answers",
)
async def most_answered(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MostAnsweredResponse:
    return await question_service.most_answered(db)


@router.get(
    "/questions/all",
    response_model=UserQuestionsResponse,
    responses={
        **_AUTH_ERRORS,
        404: {"description": "Caller has no questions", "model": ErrorResponse},
    },
    summary="Questions asked by the caller",
)
async def list_own_questions(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UserQuestionsResponse:
    return await question_service.list_own_questions(db, user)


# ── Single Question ───────────────────────────────────────────────────────


@router.get(
    "/{question_id}",
    response_model=QuestionResponse,
    responses={
        **_AUTH_ERRORS,
        404: {"description": "Question not found", "model": ErrorResponse},
    },
    summary="Get a question with its answers",
)
async def get_question(
    question_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> QuestionResponse:
    return await question_service.get_question(db, question_id)


@router.put(
    "/{question_id}",
    response_model=UpdateQuestionResponse,
    responses=_TRANSITION_ERRORS,
    summary="Edit a question (owner only, while unanswered)",
)
async def update_question(
    question_id: str,
    body: PutQuestionRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UpdateQuestionResponse:
    return await question_service.update_question(db, user, question_id, body.put_question)


@router.delete(
    "/{question_id}",
    response_model=MessageResponse,
    responses={
        **_AUTH_ERRORS,
        404: {"description": "Question not found", "model": ErrorResponse},
    },
    summary="Delete a question (owner or admin)",
)
async def delete_question(
    question_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await question_service.delete_question(db, user, question_id)


# ── Answers ───────────────────────────────────────────────────────────────


@router.post(
    "/{question_id}/answer",
    status_code=status.HTTP_201_CREATED,
    response_model=AnswerAddedResponse,
    responses={
        **_AUTH_ERRORS,
        404: {"description": "Question not found", "model": ErrorResponse},
    },
    summary="Answer a question",
)
async def add_answer(
    question_id: str,
    body: AddAnswerRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> AnswerAddedResponse:
    return await question_service.add_answer(db, user, question_id, body.add_answer)


@router.post(
    "/{question_id}/{answer_id}/check",
    status_code=status.HTTP_201_CREATED,
    response_model=CheckedResponse,
    responses=_TRANSITION_ERRORS,
    summary="Accept an answer (question owner only)",
)
async def check_answer(
    question_id: str,
    answer_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CheckedResponse:
    return await question_service.accept_answer(db, user, question_id, answer_id)


@router.post(
    "/{question_id}/{answer_id}/uncheck",
    response_model=AnswerTransitionResponse,
    responses=_TRANSITION_ERRORS,
    summary="Withdraw acceptance (question owner only)",
)
async def uncheck_answer(
    question_id: str,
    answer_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> AnswerTransitionResponse:
    return await question_service.unaccept_answer(db, user, question_id, answer_id)


@router.post(
    "/{question_id}/{answer_id}/upvote",
    status_code=status.HTTP_201_CREATED,
    response_model=AnswerTransitionResponse,
    responses=_TRANSITION_ERRORS,
    summary="Upvote an answer",
)
async def upvote_answer(
    question_id: str,
    answer_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> AnswerTransitionResponse:
    return await question_service.upvote(db, user, question_id, answer_id)


@router.post(
    "/{question_id}/{answer_id}/unupvote",
    response_model=UnupvoteResponse,
    responses=_TRANSITION_ERRORS,
    summary="Remove your upvote",
)
async def unupvote_answer(
    question_id: str,
    answer_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UnupvoteResponse:
    return await question_service.remove_upvote(db, user, question_id, answer_id)


@router.post(
    "/{question_id}/{answer_id}/downvote",
    status_code=status.HTTP_201_CREATED,
    response_model=DownvoteResponse,
    responses=_TRANSITION_ERRORS,
    summary="Downvote an answer",
)
async def downvote_answer(
    question_id: str,
    answer_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> DownvoteResponse:
    return await question_service.downvote(db, user, question_id, answer_id)


@router.post(
    "/{question_id}/{answer_id}/undownvote",
    response_model=UndownvoteResponse,
    responses=_TRANSITION_ERRORS,
    summary="Remove your downvote",
)
async def undownvote_answer(
    question_id: str,
    answer_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UndownvoteResponse:
    return await question_service.remove_downvote(db, user, question_id, answer_id)


@router.post(
    "/{question_id}/{answer_id}/comment",
    status_code=status.HTTP_201_CREATED,
    response_model=CommentedResponse,
    responses=_TRANSITION_ERRORS,
    summary="Comment on an answer",
)
async def comment_answer(
    question_id: str,
    answer_id: str,
    body: AddCommentRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> CommentedResponse:
    return await question_service.add_comment(db, user, question_id, answer_id, body.add_comment)
