"""Comment store service layer.

Business logic for:
- Two-level comment CRUD (top-level comments and replies)
- Owner-only edit and delete, with cascade to replies
- Page-number listing with replies embedded
- Versioned page cache so any mutation invalidates every cached page
"""

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from cassandra.query import BatchStatement, BatchType

from interaction_service.core.exceptions import (
    ForbiddenError,
    NotFoundError,
    ValidationFailedError,
)
from interaction_service.core.idempotency import IdempotencyStore
from interaction_service.core.logging import get_logger

from .models import Comment, CommentPage, create_comment
from .pagination import SortField, SortOrder, paginate


if TYPE_CHECKING:
    from cassandra.cluster import Session
    from redis.asyncio import Redis


logger = get_logger(__name__)

CREATE_ACTION = "comment_create"


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CommentNotFoundError(NotFoundError):
    """Comment (or reply parent) does not exist."""

    def __init__(self, message: str = "Comment not found"):
        super().__init__(message)


class PermissionDeniedError(ForbiddenError):
    """Caller is not the comment's author."""

    def __init__(self, message: str = "You can only modify your own comments"):
        super().__init__(message)


class CommentValidationError(ValidationFailedError):
    """Comment content rejected."""

    def __init__(self, message: str = "Content cannot be empty"):
        super().__init__(message)


def _count(rows: Any) -> int:
    row = rows[0] if rows else None
    return row.count if row else 0


# ==============================================================================
# Comment Service
# ==============================================================================


class CommentService:
    """Service for submission comments."""

    CACHE_PREFIX = "comments"

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        redis: "Redis | None" = None,
        idempotency: IdempotencyStore | None = None,
        default_page_size: int = 10,
        max_page_size: int = 100,
        max_content_length: int = 10000,
        cache_ttl_seconds: int = 300,
    ):
        """Initialize with Cassandra session and optional Redis."""
        self.session = session
        self.keyspace = keyspace
        self.redis = redis
        self.idempotency = idempotency or IdempotencyStore()
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size
        self.max_content_length = max_content_length
        self.cache_ttl_seconds = cache_ttl_seconds
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        self._insert_comment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.submission_comments
            (submission_id, comment_id, parent_id, author_id, content,
             created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)

        self._insert_comment_by_id = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.submission_comments_by_id
            (comment_id, submission_id, parent_id, author_id, content,
             created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """)

        self._get_comments_by_submission = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.submission_comments
            WHERE submission_id = ?
        """)

        self._get_comment_by_id = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.submission_comments_by_id
            WHERE comment_id = ?
        """)

        self._update_comment = self.session.prepare(f"""
            UPDATE {self.keyspace}.submission_comments
            SET content = ?, updated_at = ?
            WHERE submission_id = ? AND comment_id = ?
        """)

        self._update_comment_by_id = self.session.prepare(f"""
            UPDATE {self.keyspace}.submission_comments_by_id
            SET content = ?, updated_at = ?
            WHERE comment_id = ?
        """)

        self._delete_comment = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.submission_comments
            WHERE submission_id = ? AND comment_id = ?
        """)

        self._delete_comment_by_id = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.submission_comments_by_id
            WHERE comment_id = ?
        """)

        self._count_comments = self.session.prepare(f"""
            SELECT COUNT(*) FROM {self.keyspace}.submission_comments
            WHERE submission_id = ?
        """)

        self._count_all_comments = self.session.prepare(f"""
            SELECT COUNT(*) FROM {self.keyspace}.submission_comments
        """)

    # ==========================================================================
    # Validation
    # ==========================================================================

    def _clean_content(self, content: str) -> str:
        """Trim content and enforce non-empty and max length."""
        cleaned = (content or "").strip()
        if not cleaned:
            raise CommentValidationError
        if len(cleaned) > self.max_content_length:
            msg = f"Content must be at most {self.max_content_length} characters"
            raise CommentValidationError(msg)
        return cleaned

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def get_comment(self, comment_id: UUID) -> Comment:
        """Fetch one comment by id.

        Raises:
            CommentNotFoundError: If it does not exist
        """
        rows = await self.session.aexecute(self._get_comment_by_id, [comment_id])
        row = rows[0] if rows else None
        if not row:
            raise CommentNotFoundError
        return Comment.from_row(row)

    async def _load_submission(self, submission_id: UUID) -> list[Comment]:
        rows = await self.session.aexecute(
            self._get_comments_by_submission, [submission_id]
        )
        return [Comment.from_row(row) for row in rows]

    async def list_comments(
        self,
        submission_id: UUID,
        page: int = 1,
        size: int | None = None,
        sort_by: str | None = None,
        order: str | None = None,
    ) -> CommentPage:
        """Get one page of top-level comments with replies embedded.

        Args:
            submission_id: Submission to list
            page: 1-indexed page number
            size: Page size (default and upper bound from settings)
            sort_by: createdAt or updatedAt; anything else means createdAt
            order: asc or desc; anything other than asc means desc

        Raises:
            CommentValidationError: If page or size is below 1
        """
        size = self.default_page_size if size is None else size
        if page < 1 or size < 1:
            msg = "Page and size must be positive"
            raise CommentValidationError(msg)
        size = min(size, self.max_page_size)
        sort_field = SortField.parse(sort_by)
        sort_order = SortOrder.parse(order)

        # Version first: a page built while a mutation lands is cached under
        # the old version and never served
        version = await self._get_cache_version(submission_id)
        cache_key = self._page_cache_key(
            submission_id, version, page, size, sort_field, sort_order
        )

        cached = await self._get_cached_page(cache_key)
        if cached:
            return cached

        comments = await self._load_submission(submission_id)
        result = paginate(comments, page, size, sort_field, sort_order)

        await self._cache_page(cache_key, result)
        return result

    async def count_comments(self, submission_id: UUID) -> int:
        """Number of comments (top-level and replies) on a submission."""
        rows = await self.session.aexecute(self._count_comments, [submission_id])
        return _count(rows)

    async def count_all(self) -> int:
        """Platform-wide comment total.

        Note: full table scan, meant for the public statistics page only.
        """
        rows = await self.session.aexecute(self._count_all_comments)
        return _count(rows)

    # ==========================================================================
    # Mutations
    # ==========================================================================

    async def create_comment(
        self,
        submission_id: UUID,
        author_id: UUID,
        content: str,
        parent_id: UUID | None = None,
        idempotency_key: str | None = None,
    ) -> Comment:
        """Create a new comment or reply.

        Replying to a reply attaches the new comment to that reply's
        top-level parent, so the tree stays two levels deep.

        Raises:
            CommentValidationError: If content is blank or too long
            CommentNotFoundError: If parent_id is not a comment of this
                submission, or the parent was deleted while the reply was
                being written
        """
        safe_content = self._clean_content(content)

        replay = await self.idempotency.claim(
            CREATE_ACTION, submission_id, author_id, idempotency_key
        )
        if replay:
            return Comment.from_dict(replay)

        try:
            comment = await self._write_comment(
                submission_id, author_id, safe_content, parent_id
            )
        except Exception:
            await self.idempotency.release(
                CREATE_ACTION, submission_id, author_id, idempotency_key
            )
            raise

        await self.idempotency.record(
            CREATE_ACTION,
            submission_id,
            author_id,
            idempotency_key,
            comment.to_dict(),
        )
        await self._invalidate_cache(submission_id)

        logger.info(
            "comment_created",
            comment_id=str(comment.comment_id),
            submission_id=str(submission_id),
            parent_id=str(comment.parent_id) if comment.parent_id else None,
        )
        return comment

    async def _write_comment(
        self,
        submission_id: UUID,
        author_id: UUID,
        content: str,
        parent_id: UUID | None,
    ) -> Comment:
        if parent_id:
            parent_id = await self._resolve_parent(submission_id, parent_id)

        comment = create_comment(
            submission_id=submission_id,
            author_id=author_id,
            content=content,
            parent_id=parent_id,
        )

        batch = BatchStatement(batch_type=BatchType.LOGGED)
        batch.add(
            self._insert_comment,
            [
                comment.submission_id,
                comment.comment_id,
                comment.parent_id,
                comment.author_id,
                comment.content,
                comment.created_at,
                comment.updated_at,
            ],
        )
        batch.add(
            self._insert_comment_by_id,
            [
                comment.comment_id,
                comment.submission_id,
                comment.parent_id,
                comment.author_id,
                comment.content,
                comment.created_at,
                comment.updated_at,
            ],
        )
        await self.session.aexecute(batch)

        # The parent may have been deleted after it was resolved; its cascade
        # could not see this reply, so the reply removes itself
        if parent_id:
            rows = await self.session.aexecute(self._get_comment_by_id, [parent_id])
            if not rows:
                await self._delete_rows(submission_id, [comment.comment_id])
                logger.info(
                    "comment_reply_orphan_removed",
                    comment_id=str(comment.comment_id),
                    parent_id=str(parent_id),
                )
                raise CommentNotFoundError("Parent comment not found")

        return comment

    async def _resolve_parent(self, submission_id: UUID, parent_id: UUID) -> UUID:
        """Return the top-level comment a new reply should hang off."""
        try:
            parent = await self.get_comment(parent_id)
        except CommentNotFoundError:
            raise CommentNotFoundError("Parent comment not found") from None

        if parent.submission_id != submission_id:
            msg = "Parent comment not found"
            raise CommentNotFoundError(msg)

        return parent.parent_id or parent.comment_id

    async def update_comment(
        self,
        comment_id: UUID,
        author_id: UUID,
        content: str,
    ) -> Comment:
        """Replace a comment's content.

        Raises:
            CommentNotFoundError: If the comment does not exist
            PermissionDeniedError: If the caller is not the author
            CommentValidationError: If content is blank or too long
        """
        comment = await self.get_comment(comment_id)

        if comment.author_id != author_id:
            raise PermissionDeniedError("You can only edit your own comments")

        safe_content = self._clean_content(content)
        now = datetime.now(UTC)

        batch = BatchStatement(batch_type=BatchType.LOGGED)
        batch.add(
            self._update_comment,
            [safe_content, now, comment.submission_id, comment_id],
        )
        batch.add(self._update_comment_by_id, [safe_content, now, comment_id])
        await self.session.aexecute(batch)

        comment.content = safe_content
        comment.updated_at = now

        await self._invalidate_cache(comment.submission_id)

        logger.info(
            "comment_updated",
            comment_id=str(comment_id),
            submission_id=str(comment.submission_id),
        )
        return comment

    async def delete_comment(self, comment_id: UUID, author_id: UUID) -> int:
        """Hard delete a comment; a top-level comment takes its replies along.

        The parent goes first and its replies are collected afterwards, so a
        reply written concurrently is either swept up here or removes itself
        when it finds the parent gone.

        Returns:
            Number of comments removed (1 + replies)

        Raises:
            CommentNotFoundError: If the comment does not exist
            PermissionDeniedError: If the caller is not the author
        """
        comment = await self.get_comment(comment_id)

        if comment.author_id != author_id:
            raise PermissionDeniedError("You can only delete your own comments")

        await self._delete_rows(comment.submission_id, [comment_id])

        replies: list[UUID] = []
        if comment.is_top_level:
            siblings = await self._load_submission(comment.submission_id)
            replies = [c.comment_id for c in siblings if c.parent_id == comment_id]
            if replies:
                await self._delete_rows(comment.submission_id, replies)

        await self._invalidate_cache(comment.submission_id)

        logger.info(
            "comment_deleted",
            comment_id=str(comment_id),
            submission_id=str(comment.submission_id),
            replies_removed=len(replies),
        )
        return 1 + len(replies)

    async def _delete_rows(self, submission_id: UUID, comment_ids: list[UUID]) -> None:
        """Remove comments from both tables in one logged batch."""
        batch = BatchStatement(batch_type=BatchType.LOGGED)
        for doomed_id in comment_ids:
            batch.add(self._delete_comment, [submission_id, doomed_id])
            batch.add(self._delete_comment_by_id, [doomed_id])
        await self.session.aexecute(batch)

    # ==========================================================================
    # Cache Helpers
    # ==========================================================================

    def _version_key(self, submission_id: UUID) -> str:
        return f"{self.CACHE_PREFIX}:{submission_id}:version"

    def _page_cache_key(
        self,
        submission_id: UUID,
        version: int,
        page: int,
        size: int,
        sort_by: SortField,
        order: SortOrder,
    ) -> str:
        return (
            f"{self.CACHE_PREFIX}:{submission_id}:v{version}:"
            f"{sort_by.value}:{order.value}:{size}:{page}"
        )

    async def _get_cache_version(self, submission_id: UUID) -> int:
        """Current cache version of a submission (0 when never mutated)."""
        if not self.redis:
            return 0

        version = await self.redis.get(self._version_key(submission_id))
        return int(version) if version else 0

    async def _get_cached_page(self, key: str) -> CommentPage | None:
        if not self.redis:
            return None

        cached = await self.redis.get(key)
        if cached:
            return CommentPage.from_dict(json.loads(cached))

        return None

    async def _cache_page(self, key: str, result: CommentPage) -> None:
        if not self.redis:
            return

        await self.redis.setex(
            key,
            self.cache_ttl_seconds,
            json.dumps(result.to_dict(), default=str),
        )

    async def _invalidate_cache(self, submission_id: UUID) -> None:
        """Bump the submission's cache version; old pages become unreachable."""
        if not self.redis:
            return

        version = await self.redis.incr(self._version_key(submission_id))
        logger.debug(
            "comments_cache_invalidated",
            submission_id=str(submission_id),
            version=version,
        )
