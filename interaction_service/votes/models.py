"""Database models for the submission vote ledger.

One row per (submission, user). The row's existence is the vote; the count
is always derived from the rows, there is no counter column to drift.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID


class VoteAction(str, Enum):
    """Mutating vote actions, used to scope idempotency keys."""

    CAST = "vote_cast"
    CANCEL = "vote_cancel"


# Partition by submission so COUNT(*) and status lookups hit one partition.
# The (submission_id, user_id) primary key is the uniqueness constraint;
# writes go through lightweight transactions (IF NOT EXISTS / IF EXISTS).
SUBMISSION_VOTES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.submission_votes (
    submission_id UUID,
    user_id UUID,
    created_at TIMESTAMP,
    PRIMARY KEY ((submission_id), user_id)
)
"""

VOTES_TABLES_CQL = [
    SUBMISSION_VOTES_TABLE_CQL,
]


@dataclass
class Vote:
    """A user's vote on a submission."""

    submission_id: UUID
    user_id: UUID
    created_at: datetime

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Vote":
        """Rebuild a Vote recorded by ``to_dict`` (idempotent replay)."""
        return cls(
            submission_id=UUID(data["submission_id"]),
            user_id=UUID(data["user_id"]),
            created_at=datetime.fromisoformat(data["created_at"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "submission_id": str(self.submission_id),
            "user_id": str(self.user_id),
            "created_at": self.created_at.isoformat(),
        }


def create_vote(submission_id: UUID, user_id: UUID) -> Vote:
    """Create a new vote stamped with the current time."""
    return Vote(
        submission_id=submission_id,
        user_id=user_id,
        created_at=datetime.now(UTC),
    )
