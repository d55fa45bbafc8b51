"""Comment API endpoints.

Provides routes for:
- Paged listing of top-level comments with replies embedded
- Create (comment or reply), edit and delete own comments

Every mutation response carries ``X-Comments-Refetch: page=1``: clients drop
the pages they hold and re-fetch from page 1.
"""

from uuid import UUID

from fastapi import APIRouter, Header, Query, Response, status

from interaction_service.auth.dependencies import CurrentUser
from interaction_service.core.exceptions import (
    InteractionError,
    handle_interaction_error,
)
from interaction_service.core.schemas import MessageResponse

from .dependencies import CommentServiceDep
from .schemas import (
    CommentPageResponse,
    CommentResponse,
    CreateCommentRequest,
    UpdateCommentRequest,
)


router = APIRouter(prefix="/comments", tags=["comments"])

REFETCH_HEADER = "X-Comments-Refetch"
REFETCH_VALUE = "page=1"


def _mark_refetch(response: Response) -> None:
    response.headers[REFETCH_HEADER] = REFETCH_VALUE


@router.get(
    "/list",
    response_model=CommentPageResponse,
    summary="List submission comments",
)
async def list_comments(
    comment_service: CommentServiceDep,
    submission_id: UUID = Query(..., alias="submissionId"),
    page: int = Query(default=1, ge=1),
    size: int | None = Query(default=None, ge=1),
    sort_by: str = Query(default="createdAt", alias="sortBy"),
    order: str = Query(default="desc"),
) -> CommentPageResponse:
    """Get one page of top-level comments for a submission.

    Pages are 1-indexed; replies are embedded in full under their parent.
    Public.
    """
    try:
        result = await comment_service.list_comments(
            submission_id=submission_id,
            page=page,
            size=size,
            sort_by=sort_by,
            order=order,
        )
    except InteractionError as e:
        raise handle_interaction_error(e) from e

    return CommentPageResponse.from_page(result)


@router.post(
    "",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create comment",
)
async def create_comment(
    data: CreateCommentRequest,
    response: Response,
    comment_service: CommentServiceDep,
    user: CurrentUser,
    idempotency_key: str | None = Header(None, alias="Idempotency-Key"),
) -> CommentResponse:
    """Post a comment, or a reply when ``parentId`` is set."""
    try:
        comment = await comment_service.create_comment(
            submission_id=data.submission_id,
            author_id=user.id,
            content=data.content,
            parent_id=data.parent_id,
            idempotency_key=idempotency_key,
        )
    except InteractionError as e:
        raise handle_interaction_error(e) from e

    _mark_refetch(response)
    return CommentResponse.from_comment(comment)


@router.put(
    "/{comment_id}",
    response_model=CommentResponse,
    summary="Update comment",
)
async def update_comment(
    comment_id: UUID,
    data: UpdateCommentRequest,
    response: Response,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> CommentResponse:
    """Replace the content of one of the caller's comments."""
    try:
        comment = await comment_service.update_comment(
            comment_id=comment_id,
            author_id=user.id,
            content=data.content,
        )
    except InteractionError as e:
        raise handle_interaction_error(e) from e

    _mark_refetch(response)
    return CommentResponse.from_comment(comment)


@router.delete(
    "/{comment_id}",
    response_model=MessageResponse,
    summary="Delete comment",
)
async def delete_comment(
    comment_id: UUID,
    response: Response,
    comment_service: CommentServiceDep,
    user: CurrentUser,
) -> MessageResponse:
    """Delete one of the caller's comments, replies included."""
    try:
        await comment_service.delete_comment(comment_id=comment_id, author_id=user.id)
    except InteractionError as e:
        raise handle_interaction_error(e) from e

    _mark_refetch(response)
    return MessageResponse(message="Comment deleted")
