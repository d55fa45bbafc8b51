"""Pydantic schemas for the comment endpoints.

Content trimming and the blank check live in the service so a blank comment
is a domain validation error (400) rather than a schema error (422).
"""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from interaction_service.core.schemas import CamelModel

from .models import Comment, CommentPage, TopLevelComment


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreateCommentRequest(CamelModel):
    """Request to create a comment or a reply."""

    submission_id: UUID
    content: str
    parent_id: UUID | None = None


class UpdateCommentRequest(CamelModel):
    """Request to replace a comment's content."""

    content: str


# ==============================================================================
# Response Schemas
# ==============================================================================


class CommentResponse(CamelModel):
    """Response for a single comment."""

    id: UUID
    submission_id: UUID
    parent_id: UUID | None = None
    author_id: UUID
    content: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_comment(cls, comment: Comment) -> "CommentResponse":
        """Create response from Comment entity."""
        return cls(
            id=comment.comment_id,
            submission_id=comment.submission_id,
            parent_id=comment.parent_id,
            author_id=comment.author_id,
            content=comment.content,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )


class CommentWithRepliesResponse(CommentResponse):
    """Top-level comment with its replies, oldest first."""

    replies: list[CommentResponse] = Field(default_factory=list)

    @classmethod
    def from_top_level(cls, comment: TopLevelComment) -> "CommentWithRepliesResponse":
        return cls(
            **CommentResponse.from_comment(comment).model_dump(),
            replies=[CommentResponse.from_comment(r) for r in comment.replies],
        )


class CommentPageResponse(CamelModel):
    """One page of top-level comments."""

    data: list[CommentWithRepliesResponse]
    total: int
    page: int
    size: int
    pages: int

    @classmethod
    def from_page(cls, result: CommentPage) -> "CommentPageResponse":
        return cls(
            data=[CommentWithRepliesResponse.from_top_level(c) for c in result.data],
            total=result.total,
            page=result.page,
            size=result.size,
            pages=result.pages,
        )
