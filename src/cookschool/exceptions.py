"""Error taxonomy shared by all CookSchool components.

Every business-rule failure is one of four kinds. The API layer maps each kind
to an HTTP status; components raise the concrete subclasses defined in their
own ``exceptions`` modules.
"""


class CookSchoolError(Exception):
    """Base exception for CookSchool errors."""


class NotFoundError(CookSchoolError):
    """Referenced entity does not exist."""


class ConflictError(CookSchoolError):
    """Request violates a business rule."""


class UnauthorizedError(CookSchoolError):
    """Acting user is not allowed to perform the operation."""


class ValidationError(CookSchoolError):
    """Input is malformed or incomplete.

    Attributes:
        errors: Field name -> list of messages.
    """

    def __init__(self, message: str, errors: dict[str, list[str]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or {}
