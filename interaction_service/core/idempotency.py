"""Replay store for retried mutations.

A client may send an ``Idempotency-Key`` header with a mutating request. The
caller first claims a key scoped by action, submission and user with a
pending marker, performs the write, then records the outcome over the
marker. A network retry carrying the same header either finds the outcome
and replays it, or finds the marker and waits for the first call to finish,
so it never races the original write into a spurious Conflict/NotFound.
A deliberate repeat (no header, or a fresh one) still goes through the
strict state checks.

Without Redis nothing is recorded and every call is treated as new.
"""

import asyncio
import json
import time
from typing import TYPE_CHECKING, Any
from uuid import UUID

from interaction_service.core.logging import get_logger


if TYPE_CHECKING:
    from redis.asyncio import Redis


logger = get_logger(__name__)

MAX_CLIENT_KEY_LENGTH = 128
PENDING = "pending"


class IdempotencyStore:
    """Redis-backed record of first outcomes, keyed per (action, submission, user)."""

    KEY_PREFIX = "idempotency"

    def __init__(
        self,
        redis: "Redis | None" = None,
        ttl_seconds: int = 86400,
        wait_seconds: float = 5.0,
        poll_interval: float = 0.05,
        pending_ttl_seconds: int = 30,
    ):
        self.redis = redis
        self.ttl_seconds = ttl_seconds
        self.wait_seconds = wait_seconds
        self.poll_interval = poll_interval
        self.pending_ttl_seconds = pending_ttl_seconds

    @property
    def enabled(self) -> bool:
        return self.redis is not None

    def scoped_key(
        self,
        action: str,
        submission_id: UUID,
        user_id: UUID,
        client_key: str,
    ) -> str:
        return (
            f"{self.KEY_PREFIX}:{action}:{submission_id}:{user_id}:"
            f"{client_key[:MAX_CLIENT_KEY_LENGTH]}"
        )

    async def get(
        self,
        action: str,
        submission_id: UUID,
        user_id: UUID,
        client_key: str | None,
    ) -> dict[str, Any] | None:
        """Return the recorded outcome for this retry, if any.

        A claim still in flight is not an outcome.
        """
        if not self.redis or not client_key:
            return None

        cached = await self.redis.get(
            self.scoped_key(action, submission_id, user_id, client_key)
        )
        if not cached or cached == PENDING:
            return None

        logger.info(
            "idempotent_replay",
            action=action,
            submission_id=str(submission_id),
        )
        return json.loads(cached)

    async def claim(
        self,
        action: str,
        submission_id: UUID,
        user_id: UUID,
        client_key: str | None,
    ) -> dict[str, Any] | None:
        """Claim the scoped key before a write, or replay the first outcome.

        Returns None when the caller should go ahead with the write: it now
        holds the claim, or there is nothing to deduplicate. Returns the
        recorded outcome when an earlier call with the same key finished,
        waiting up to ``wait_seconds`` for one that is still in flight.
        After the wait the caller proceeds and the strict checks decide.
        """
        if not self.redis or not client_key:
            return None

        key = self.scoped_key(action, submission_id, user_id, client_key)
        deadline = time.monotonic() + self.wait_seconds

        while True:
            if await self.redis.set(
                key, PENDING, ex=self.pending_ttl_seconds, nx=True
            ):
                return None

            outcome = await self.get(action, submission_id, user_id, client_key)
            if outcome is not None:
                return outcome

            if time.monotonic() >= deadline:
                logger.warning(
                    "idempotent_wait_timeout",
                    action=action,
                    submission_id=str(submission_id),
                )
                return None

            await asyncio.sleep(self.poll_interval)

    async def record(
        self,
        action: str,
        submission_id: UUID,
        user_id: UUID,
        client_key: str | None,
        outcome: dict[str, Any],
    ) -> None:
        """Store the outcome over the claim so retries replay it."""
        if not self.redis or not client_key:
            return

        await self.redis.set(
            self.scoped_key(action, submission_id, user_id, client_key),
            json.dumps(outcome, default=str),
            ex=self.ttl_seconds,
        )

    async def release(
        self,
        action: str,
        submission_id: UUID,
        user_id: UUID,
        client_key: str | None,
    ) -> None:
        """Drop a claim whose write failed, so a retry runs the checks again."""
        if not self.redis or not client_key:
            return

        await self.redis.delete(
            self.scoped_key(action, submission_id, user_id, client_key)
        )
