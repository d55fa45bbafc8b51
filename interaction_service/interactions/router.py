"""Interaction statistics endpoints.

The only router that reads from both the vote ledger and the comment store.
"""

import asyncio
from uuid import UUID

from fastapi import APIRouter, Query

from interaction_service.comments.dependencies import CommentServiceDep
from interaction_service.votes.dependencies import VoteServiceDep

from .schemas import PlatformStatisticsResponse, SubmissionStatisticsResponse


router = APIRouter(prefix="/interactions", tags=["interactions"])


@router.get(
    "/statistics",
    response_model=SubmissionStatisticsResponse,
    summary="Get submission interaction statistics",
)
async def get_submission_statistics(
    vote_service: VoteServiceDep,
    comment_service: CommentServiceDep,
    submission_id: UUID = Query(..., alias="submissionId"),
) -> SubmissionStatisticsResponse:
    """Vote and comment counts for one submission."""
    vote_count, comment_count = await asyncio.gather(
        vote_service.get_count(submission_id),
        comment_service.count_comments(submission_id),
    )
    return SubmissionStatisticsResponse(
        submission_id=submission_id,
        vote_count=vote_count,
        comment_count=comment_count,
    )


@router.get(
    "/public/platform/interaction-statistics",
    response_model=PlatformStatisticsResponse,
    summary="Get platform interaction statistics",
)
async def get_platform_statistics(
    vote_service: VoteServiceDep,
    comment_service: CommentServiceDep,
) -> PlatformStatisticsResponse:
    """Platform-wide vote and comment totals. Public."""
    vote_count, comment_count = await asyncio.gather(
        vote_service.count_all(),
        comment_service.count_all(),
    )
    return PlatformStatisticsResponse(
        vote_count=vote_count,
        comment_count=comment_count,
    )
