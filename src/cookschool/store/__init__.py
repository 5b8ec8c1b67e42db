"""School Store - Persistent storage for the cooking school's entities."""

from cookschool.store.database import Database
from cookschool.store.exceptions import (
    AttendanceExistsError,
    CourseHasEnrollmentsError,
    CourseNotFoundError,
    CourseTransitionError,
    InstructorAlreadyAssignedError,
    InstructorHasActiveCoursesError,
    InstructorNotFoundError,
    InvalidCourseError,
    RecipeAlreadyAttachedError,
    RecipeNotFoundError,
    RegistrationNotFoundError,
    StudentNotFoundError,
    UserExistsError,
    UserNotFoundError,
)
from cookschool.store.models import (
    OPEN_COURSE_STATUSES,
    AttendanceRecord,
    Certificate,
    CertificateStatus,
    Course,
    CourseAttendance,
    CourseInstructor,
    CourseRecipe,
    CourseStatus,
    DifficultyLevel,
    Instructor,
    Payment,
    PaymentStatus,
    Recipe,
    RecipeImage,
    Registration,
    Student,
    User,
    VerificationStatus,
)
from cookschool.store.store import SchoolStore

__all__ = [
    "OPEN_COURSE_STATUSES",
    "AttendanceExistsError",
    "AttendanceRecord",
    "Certificate",
    "CertificateStatus",
    "Course",
    "CourseAttendance",
    "CourseHasEnrollmentsError",
    "CourseInstructor",
    "CourseNotFoundError",
    "CourseRecipe",
    "CourseStatus",
    "CourseTransitionError",
    "Database",
    "DifficultyLevel",
    "Instructor",
    "InstructorAlreadyAssignedError",
    "InstructorHasActiveCoursesError",
    "InstructorNotFoundError",
    "InvalidCourseError",
    "Payment",
    "PaymentStatus",
    "Recipe",
    "RecipeAlreadyAttachedError",
    "RecipeImage",
    "RecipeNotFoundError",
    "Registration",
    "RegistrationNotFoundError",
    "SchoolStore",
    "Student",
    "StudentNotFoundError",
    "User",
    "UserExistsError",
    "UserNotFoundError",
    "VerificationStatus",
]
