"""Platform roles carried in identity tokens.

Roles are issued by the external identity provider. Interactions only need an
authenticated caller (plus ownership for comment edits), so the role is
carried for logging and future policy, not checked here.
"""

from enum import Enum


class UserRole(str, Enum):
    """Contest platform roles."""

    PARTICIPANT = "participant"
    JUDGE = "judge"
    ORGANIZER = "organizer"
    ADMIN = "admin"
