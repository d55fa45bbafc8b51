"""Page-number pagination over a submission's comment tree.

Pure functions, no I/O: the service loads the partition once and hands the
flat rows here.
"""

import math
from collections import defaultdict
from collections.abc import Iterable
from enum import Enum
from uuid import UUID

from .models import Comment, CommentPage, Reply, TopLevelComment


class SortField(str, Enum):
    """Sortable top-level comment fields (wire names)."""

    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"

    @property
    def attribute(self) -> str:
        return "updated_at" if self is SortField.UPDATED_AT else "created_at"

    @classmethod
    def parse(cls, value: str | None) -> "SortField":
        """Resolve a ``sortBy`` value; unknown values fall back to createdAt."""
        normalized = (value or "").replace("_", "").lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        return cls.CREATED_AT


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: str | None) -> "SortOrder":
        """Anything other than ``asc`` means descending."""
        return cls.ASC if (value or "").lower() == "asc" else cls.DESC


def page_count(total: int, size: int) -> int:
    """Number of pages for ``total`` items: ceil(total / size)."""
    return math.ceil(total / size) if total else 0


def build_tree(
    comments: Iterable[Comment],
) -> tuple[list[Comment], dict[UUID, list[Reply]]]:
    """Split rows into top-level comments and replies grouped by parent.

    Replies are ordered oldest first. Replies whose parent is gone are dropped.
    """
    top_level: list[Comment] = []
    replies: dict[UUID, list[Reply]] = defaultdict(list)

    for comment in comments:
        if comment.is_top_level:
            top_level.append(comment)
        else:
            replies[comment.parent_id].append(Reply.from_comment(comment))

    parent_ids = {c.comment_id for c in top_level}
    grouped = {
        parent_id: sorted(items, key=lambda r: (r.created_at, r.comment_id))
        for parent_id, items in replies.items()
        if parent_id in parent_ids
    }
    return top_level, grouped


def paginate(
    comments: Iterable[Comment],
    page: int,
    size: int,
    sort_by: SortField = SortField.CREATED_AT,
    order: SortOrder = SortOrder.DESC,
) -> CommentPage:
    """Build one page of top-level comments with their replies embedded.

    Top-level comments are ordered by (sort field, comment_id) so the order is
    total and pages never overlap or skip. A page past the end is empty.
    """
    top_level, replies = build_tree(comments)

    attribute = sort_by.attribute
    top_level.sort(
        key=lambda c: (getattr(c, attribute), c.comment_id),
        reverse=order is SortOrder.DESC,
    )

    start = (page - 1) * size
    window = top_level[start : start + size]

    return CommentPage(
        data=[
            TopLevelComment.from_comment(c, replies.get(c.comment_id, []))
            for c in window
        ],
        total=len(top_level),
        page=page,
        size=size,
        pages=page_count(len(top_level), size),
    )
