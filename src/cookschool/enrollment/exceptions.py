"""Exceptions for the enrollment module."""

from cookschool.exceptions import ConflictError, ValidationError


class CourseUnavailableError(ConflictError):
    """Course is full, or not open for registration."""


class AlreadyRegisteredError(ConflictError):
    """Student already holds an active registration for the course."""


class TooLateToCancelError(ConflictError):
    """Course is active and has already started."""


class RegistrationAlreadyCanceledError(ConflictError):
    """Registration was canceled by a concurrent request."""


class StudentRequiredError(ValidationError):
    """Staff registration without a target student."""
