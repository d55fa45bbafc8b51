"""Database models for two-level submission comments.

Cassandra table definitions for:
- Comments by submission: every comment of a submission in one partition
- Comments by ID: O(1) lookup for edit/delete/parent resolution

Architecture: Adjacency list capped at one level
- parent_id is NULL for top-level comments
- parent_id references a top-level comment of the same submission for replies
- Hard delete; deleting a top-level comment removes its replies
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Partition by submission_id so one read yields the whole tree for paging.
# Ordering is done in the service, so clustering is only for uniqueness.
SUBMISSION_COMMENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.submission_comments (
    submission_id UUID,
    comment_id UUID,
    parent_id UUID,
    author_id UUID,
    content TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    PRIMARY KEY ((submission_id), comment_id)
)
"""

# Comments by ID - O(1) lookup table
COMMENTS_BY_ID_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.submission_comments_by_id (
    comment_id UUID PRIMARY KEY,
    submission_id UUID,
    parent_id UUID,
    author_id UUID,
    content TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

# All table definitions for initialization
COMMENTS_TABLES_CQL = [
    SUBMISSION_COMMENTS_TABLE_CQL,
    COMMENTS_BY_ID_TABLE_CQL,
]


def _parse_uuid(value: str | None) -> UUID | None:
    return UUID(value) if value else None


# ==============================================================================
# Entity Classes
# ==============================================================================


@dataclass
class Comment:
    """Comment entity as stored (flat row)."""

    comment_id: UUID
    submission_id: UUID
    parent_id: UUID | None
    author_id: UUID
    content: str
    created_at: datetime
    updated_at: datetime

    @property
    def is_top_level(self) -> bool:
        return self.parent_id is None

    @classmethod
    def from_row(cls, row: Any) -> "Comment":
        """Create Comment from Cassandra row."""
        return cls(
            comment_id=row.comment_id,
            submission_id=row.submission_id,
            parent_id=row.parent_id,
            author_id=row.author_id,
            content=row.content,
            created_at=row.created_at,
            updated_at=row.updated_at or row.created_at,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Comment":
        """Rebuild a Comment serialized by ``to_dict``."""
        return cls(
            comment_id=UUID(data["comment_id"]),
            submission_id=UUID(data["submission_id"]),
            parent_id=_parse_uuid(data.get("parent_id")),
            author_id=UUID(data["author_id"]),
            content=data["content"],
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "comment_id": str(self.comment_id),
            "submission_id": str(self.submission_id),
            "parent_id": str(self.parent_id) if self.parent_id else None,
            "author_id": str(self.author_id),
            "content": self.content,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass
class Reply(Comment):
    """Second-level comment; always points at a top-level comment."""

    parent_id: UUID

    @classmethod
    def from_comment(cls, comment: Comment) -> "Reply":
        return cls(**vars(comment))


@dataclass
class TopLevelComment(Comment):
    """Top-level comment with its replies embedded, oldest first."""

    replies: list[Reply] = field(default_factory=list)

    @classmethod
    def from_comment(
        cls, comment: Comment, replies: list[Reply] | None = None
    ) -> "TopLevelComment":
        return cls(**vars(comment), replies=replies or [])

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TopLevelComment":
        return cls.from_comment(
            Comment.from_dict(data),
            [Reply.from_comment(Comment.from_dict(r)) for r in data["replies"]],
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["replies"] = [reply.to_dict() for reply in self.replies]
        return data


@dataclass
class CommentPage:
    """One page of top-level comments.

    ``total`` counts top-level comments only; replies ride along with their
    parent and are never paginated.
    """

    data: list[TopLevelComment]
    total: int
    page: int
    size: int
    pages: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CommentPage":
        """Rebuild a page serialized by ``to_dict`` (cache hit)."""
        return cls(
            data=[TopLevelComment.from_dict(c) for c in data["data"]],
            total=data["total"],
            page=data["page"],
            size=data["size"],
            pages=data["pages"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": [comment.to_dict() for comment in self.data],
            "total": self.total,
            "page": self.page,
            "size": self.size,
            "pages": self.pages,
        }


# ==============================================================================
# Factory Functions
# ==============================================================================


def create_comment(
    submission_id: UUID,
    author_id: UUID,
    content: str,
    parent_id: UUID | None = None,
) -> Comment:
    """Create a new comment with default values."""
    now = datetime.now(UTC)
    return Comment(
        comment_id=uuid4(),
        submission_id=submission_id,
        parent_id=parent_id,
        author_id=author_id,
        content=content,
        created_at=now,
        updated_at=now,
    )
