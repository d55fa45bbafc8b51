"""Pydantic schemas for interaction statistics."""

from uuid import UUID

from interaction_service.core.schemas import CamelModel


class SubmissionStatisticsResponse(CamelModel):
    """Vote and comment totals for one submission."""

    submission_id: UUID
    vote_count: int = 0
    comment_count: int = 0


class PlatformStatisticsResponse(CamelModel):
    """Interaction totals across the whole platform."""

    vote_count: int = 0
    comment_count: int = 0
