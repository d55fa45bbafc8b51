"""Vote ledger module.

One vote per user per submission, enforced by a lightweight transaction on
the (submission_id, user_id) primary key.

Note: Router is not exported here to avoid circular imports.
Import directly from interaction_service.votes.router when needed.
"""

from .models import VOTES_TABLES_CQL, Vote, VoteAction
from .service import AlreadyVotedError, VoteNotFoundError, VoteService


__all__ = [
    "VOTES_TABLES_CQL",
    "AlreadyVotedError",
    "Vote",
    "VoteAction",
    "VoteNotFoundError",
    "VoteService",
]
