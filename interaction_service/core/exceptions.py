"""Domain error taxonomy shared by the vote ledger and the comment store.

Services raise these; routers translate them to HTTP with
``handle_interaction_error``.
"""

from fastapi import HTTPException, status


class InteractionError(Exception):
    """Base interaction error."""

    def __init__(self, message: str, code: str = "interaction_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationFailedError(InteractionError):
    """Input rejected by a domain rule (e.g. blank comment content)."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, "validation_error")


class ForbiddenError(InteractionError):
    """Caller is authenticated but not allowed to touch the resource."""

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message, "forbidden")


class NotFoundError(InteractionError):
    """Submission, comment or vote does not exist."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, "not_found")


class ConflictError(InteractionError):
    """State transition rejected because the target state already holds."""

    def __init__(self, message: str = "Conflict"):
        super().__init__(message, "conflict")


ERROR_STATUS_MAP: dict[str, int] = {
    "validation_error": status.HTTP_400_BAD_REQUEST,
    "forbidden": status.HTTP_403_FORBIDDEN,
    "not_found": status.HTTP_404_NOT_FOUND,
    "conflict": status.HTTP_409_CONFLICT,
}


def handle_interaction_error(error: InteractionError) -> HTTPException:
    """Convert an interaction error to an HTTP exception.

    Args:
        error: Domain error raised by a service

    Returns:
        HTTPException with the mapped status code
    """
    status_code = ERROR_STATUS_MAP.get(
        error.code, status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    return HTTPException(status_code=status_code, detail=error.message)
