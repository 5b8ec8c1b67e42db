"""Custom exceptions for the school store."""

from cookschool.exceptions import (
    ConflictError,
    NotFoundError,
    ValidationError,
)


class UserNotFoundError(NotFoundError):
    """User with given ID or token does not exist."""


class UserExistsError(ConflictError):
    """User with given email already exists."""


class StudentNotFoundError(NotFoundError):
    """Student with given ID does not exist."""


class InstructorNotFoundError(NotFoundError):
    """Instructor with given ID does not exist."""


class CourseNotFoundError(NotFoundError):
    """Course with given ID does not exist."""


class InvalidCourseError(ValidationError):
    """Course fields violate the course invariants."""


class CourseTransitionError(ConflictError):
    """Course status change is not allowed from the current status."""


class CourseHasEnrollmentsError(ConflictError):
    """Cannot delete a course that still has enrolled students."""


class RecipeNotFoundError(NotFoundError):
    """Recipe with given ID does not exist."""


class RecipeAlreadyAttachedError(ConflictError):
    """Recipe is already part of the course."""


class InstructorAlreadyAssignedError(ConflictError):
    """Instructor is already assigned to the course."""


class RegistrationNotFoundError(NotFoundError):
    """Registration with given ID does not exist or was canceled."""


class AttendanceExistsError(ConflictError):
    """Attendance for this registration and date is already recorded."""


class InstructorHasActiveCoursesError(ConflictError):
    """Cannot delete an instructor assigned to an upcoming or active course."""
