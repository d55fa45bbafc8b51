"""Pydantic schemas for the vote endpoints."""

from datetime import datetime
from uuid import UUID

from interaction_service.core.schemas import CamelModel


class VoteResponse(CamelModel):
    """A vote as returned after a successful cast."""

    submission_id: UUID
    user_id: UUID
    created_at: datetime
