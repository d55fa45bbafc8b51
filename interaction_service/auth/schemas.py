"""Pydantic schemas for the caller identity."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from interaction_service.auth.permissions import UserRole


class Identity(BaseModel):
    """Authenticated caller, resolved once per request.

    Passed explicitly into every gateway call; nothing downstream reads the
    caller from global state.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(..., description="User ID (token subject)")
    role: UserRole | None = Field(None, description="Platform role, when recognized")
    email: str | None = Field(None, description="Email, when the token carries it")

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v: object) -> UserRole | None:
        """Accept upper-case claims (``PARTICIPANT``); unknown roles become None.

        Voting and commenting only need an authenticated caller, so a role
        this service does not know never rejects the token.
        """
        if isinstance(v, UserRole):
            return v
        if not isinstance(v, str):
            return None
        try:
            return UserRole(v.lower())
        except ValueError:
            return None
