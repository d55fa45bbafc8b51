"""Comment store module.

Provides two-level submission comments with:
- Top-level comments and one level of replies
- Owner-only edit and delete (delete cascades to replies)
- Page-number listing with a versioned Redis cache

Note: Router is not exported here to avoid circular imports.
Import directly from interaction_service.comments.router when needed.
"""

from .models import (
    COMMENTS_TABLES_CQL,
    Comment,
    CommentPage,
    Reply,
    TopLevelComment,
)
from .service import CommentService


__all__ = [
    "COMMENTS_TABLES_CQL",
    "Comment",
    "CommentPage",
    "CommentService",
    "Reply",
    "TopLevelComment",
]
