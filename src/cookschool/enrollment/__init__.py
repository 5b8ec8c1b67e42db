"""Enrollment package - Registering students for courses."""

from cookschool.enrollment.engine import EnrollmentEngine
from cookschool.enrollment.exceptions import (
    AlreadyRegisteredError,
    CourseUnavailableError,
    RegistrationAlreadyCanceledError,
    StudentRequiredError,
    TooLateToCancelError,
)
from cookschool.enrollment.models import Availability, Enrollment, PaymentInstructions

__all__ = [
    "AlreadyRegisteredError",
    "Availability",
    "CourseUnavailableError",
    "Enrollment",
    "EnrollmentEngine",
    "PaymentInstructions",
    "RegistrationAlreadyCanceledError",
    "StudentRequiredError",
    "TooLateToCancelError",
]
