"""Vote API endpoints.

Provides routes for:
- Casting and cancelling the caller's vote
- Public vote count and the caller's vote status
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Header, Query, status

from interaction_service.auth.dependencies import CurrentUser
from interaction_service.core.exceptions import (
    InteractionError,
    handle_interaction_error,
)
from interaction_service.core.schemas import MessageResponse

from .dependencies import VoteServiceDep
from .schemas import VoteResponse


router = APIRouter(prefix="/votes", tags=["votes"])

SubmissionIdQuery = Annotated[
    UUID, Query(alias="submissionId", description="Submission ID")
]
IdempotencyKeyHeader = Annotated[
    str | None,
    Header(
        alias="Idempotency-Key",
        description="Retry token; a retry with the same key replays the first outcome",
    ),
]


@router.post(
    "",
    response_model=VoteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Vote for a submission",
)
async def cast_vote(
    vote_service: VoteServiceDep,
    user: CurrentUser,
    submission_id: SubmissionIdQuery,
    idempotency_key: IdempotencyKeyHeader = None,
) -> VoteResponse:
    """Cast the caller's vote. 409 if the caller already voted."""
    try:
        vote = await vote_service.cast(submission_id, user.id, idempotency_key)
    except InteractionError as e:
        raise handle_interaction_error(e) from e

    return VoteResponse.model_validate(vote)


@router.delete(
    "",
    response_model=MessageResponse,
    summary="Cancel vote",
)
async def cancel_vote(
    vote_service: VoteServiceDep,
    user: CurrentUser,
    submission_id: SubmissionIdQuery,
    idempotency_key: IdempotencyKeyHeader = None,
) -> MessageResponse:
    """Remove the caller's vote. 404 if there is none."""
    try:
        await vote_service.cancel(submission_id, user.id, idempotency_key)
    except InteractionError as e:
        raise handle_interaction_error(e) from e

    return MessageResponse(message="Vote cancelled")


@router.get(
    "/count",
    response_model=int,
    summary="Get vote count",
)
async def get_vote_count(
    vote_service: VoteServiceDep,
    submission_id: SubmissionIdQuery,
) -> int:
    """Number of votes on a submission. Public."""
    return await vote_service.get_count(submission_id)


@router.get(
    "/status",
    response_model=bool,
    summary="Get my vote status",
)
async def get_vote_status(
    vote_service: VoteServiceDep,
    user: CurrentUser,
    submission_id: SubmissionIdQuery,
) -> bool:
    """Whether the caller has voted for the submission."""
    return await vote_service.get_status(submission_id, user.id)
