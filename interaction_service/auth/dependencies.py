"""FastAPI dependencies for authentication.

Provides dependency injection for:
- Current identity extraction from the bearer JWT
"""

from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError
from pydantic import ValidationError

from interaction_service.auth.schemas import Identity
from interaction_service.auth.security import decode_access_token
from interaction_service.core.context import set_user_id


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from Authorization header.

    Returns:
        Token string or None if not present
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


def identity_from_payload(payload: dict[str, Any]) -> Identity:
    """Build the caller identity from verified token claims.

    The subject may arrive as ``sub`` or, from the legacy gateway, ``userId``.

    Raises:
        ValidationError: If the subject claim is missing or malformed
    """
    return Identity(
        id=payload.get("sub") or payload.get("userId"),
        role=payload.get("role"),
        email=payload.get("email"),
    )


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> Identity:
    """Get the authenticated caller from the JWT.

    Raises:
        HTTPException(401): If token is missing, invalid, expired, or does not
            carry a usable identity
    """
    if not token:
        raise _unauthorized("Access token not provided")

    try:
        identity = identity_from_payload(decode_access_token(token))
    except (JWTError, ValidationError) as e:
        raise _unauthorized("Invalid or expired token") from e

    # Log enrichment only
    set_user_id(identity.id)
    return identity


# ==============================================================================
# Type Aliases for Cleaner Code
# ==============================================================================

CurrentUser = Annotated[Identity, Depends(get_current_user)]
