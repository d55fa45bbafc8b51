"""Vote ledger service layer.

Business logic for:
- Casting and cancelling a vote (one per user per submission)
- Vote counts and per-user status
- Idempotent replay of retried cast/cancel calls

Uniqueness is enforced by Cassandra lightweight transactions on the
(submission_id, user_id) primary key, so two concurrent casts for the same
pair resolve to one applied insert and one Conflict without app-level locks.
"""

from typing import TYPE_CHECKING, Any
from uuid import UUID

from interaction_service.core.exceptions import ConflictError, NotFoundError
from interaction_service.core.idempotency import IdempotencyStore
from interaction_service.core.logging import get_logger

from .models import Vote, VoteAction, create_vote


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class AlreadyVotedError(ConflictError):
    """Cast while a vote already exists."""

    def __init__(self, message: str = "You have already voted for this submission"):
        super().__init__(message)


class VoteNotFoundError(NotFoundError):
    """Cancel while no vote exists."""

    def __init__(self, message: str = "You have not voted for this submission"):
        super().__init__(message)


def was_applied(rows: Any) -> bool:
    """Read the ``[applied]`` flag of a lightweight transaction result."""
    row = rows[0] if rows else None
    return bool(row is not None and row.applied)


def _count(rows: Any) -> int:
    row = rows[0] if rows else None
    return row.count if row else 0


# ==============================================================================
# Vote Service
# ==============================================================================


class VoteService:
    """Service for the per-submission vote ledger."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        idempotency: IdempotencyStore | None = None,
    ):
        """Initialize with Cassandra session and optional idempotency store."""
        self.session = session
        self.keyspace = keyspace
        self.idempotency = idempotency or IdempotencyStore()
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        self._insert_vote = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.submission_votes
            (submission_id, user_id, created_at)
            VALUES (?, ?, ?)
            IF NOT EXISTS
        """)

        self._delete_vote = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.submission_votes
            WHERE submission_id = ? AND user_id = ?
            IF EXISTS
        """)

        self._get_vote = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.submission_votes
            WHERE submission_id = ? AND user_id = ?
        """)

        self._count_votes = self.session.prepare(f"""
            SELECT COUNT(*) FROM {self.keyspace}.submission_votes
            WHERE submission_id = ?
        """)

        self._count_all_votes = self.session.prepare(f"""
            SELECT COUNT(*) FROM {self.keyspace}.submission_votes
        """)

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def get_count(self, submission_id: UUID) -> int:
        """Number of surviving vote rows for a submission."""
        rows = await self.session.aexecute(self._count_votes, [submission_id])
        return _count(rows)

    async def get_status(self, submission_id: UUID, user_id: UUID) -> bool:
        """Whether the user currently holds a vote on the submission."""
        rows = await self.session.aexecute(self._get_vote, [submission_id, user_id])
        return bool(rows)

    async def count_all(self) -> int:
        """Platform-wide vote total.

        Note: full table scan, meant for the public statistics page only.
        """
        rows = await self.session.aexecute(self._count_all_votes)
        return _count(rows)

    # ==========================================================================
    # Mutations
    # ==========================================================================

    async def cast(
        self,
        submission_id: UUID,
        user_id: UUID,
        idempotency_key: str | None = None,
    ) -> Vote:
        """Cast a vote: NO_VOTE -> VOTED.

        Raises:
            AlreadyVotedError: If the user already voted and this is not a
                retry of the call that created the vote.
        """
        replay = await self.idempotency.claim(
            VoteAction.CAST.value, submission_id, user_id, idempotency_key
        )
        if replay:
            return Vote.from_dict(replay)

        try:
            vote = await self._insert(submission_id, user_id)
        except Exception:
            await self.idempotency.release(
                VoteAction.CAST.value, submission_id, user_id, idempotency_key
            )
            raise

        await self.idempotency.record(
            VoteAction.CAST.value,
            submission_id,
            user_id,
            idempotency_key,
            vote.to_dict(),
        )
        logger.info("vote_cast", submission_id=str(submission_id))
        return vote

    async def _insert(self, submission_id: UUID, user_id: UUID) -> Vote:
        vote = create_vote(submission_id, user_id)
        rows = await self.session.aexecute(
            self._insert_vote,
            [vote.submission_id, vote.user_id, vote.created_at],
        )

        if not was_applied(rows):
            logger.info(
                "vote_cast_rejected",
                submission_id=str(submission_id),
                reason="already_voted",
            )
            raise AlreadyVotedError
        return vote

    async def cancel(
        self,
        submission_id: UUID,
        user_id: UUID,
        idempotency_key: str | None = None,
    ) -> None:
        """Cancel a vote: VOTED -> NO_VOTE (hard delete).

        Raises:
            VoteNotFoundError: If there is no vote to cancel and this is not a
                retry of the call that removed it.
        """
        if await self.idempotency.claim(
            VoteAction.CANCEL.value, submission_id, user_id, idempotency_key
        ):
            return

        try:
            await self._remove(submission_id, user_id)
        except Exception:
            await self.idempotency.release(
                VoteAction.CANCEL.value, submission_id, user_id, idempotency_key
            )
            raise

        await self.idempotency.record(
            VoteAction.CANCEL.value,
            submission_id,
            user_id,
            idempotency_key,
            {"submission_id": str(submission_id), "cancelled": True},
        )
        logger.info("vote_cancelled", submission_id=str(submission_id))

    async def _remove(self, submission_id: UUID, user_id: UUID) -> None:
        rows = await self.session.aexecute(
            self._delete_vote, [submission_id, user_id]
        )

        if not was_applied(rows):
            logger.info(
                "vote_cancel_rejected",
                submission_id=str(submission_id),
                reason="no_vote",
            )
            raise VoteNotFoundError
