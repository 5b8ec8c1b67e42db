"""Pydantic models for REST API."""

import datetime as dt
from datetime import date, datetime, time
from decimal import Decimal
from typing import Annotated, Any, Generic, Literal, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from cookschool.store import DifficultyLevel

T = TypeVar("T")

# Money is stored as Decimal and rendered as a JSON number
Money = Annotated[float, BeforeValidator(float)]


class APIResponse(BaseModel, Generic[T]):
    """Standard API response envelope."""

    success: bool = True
    message: str = ""
    data: T | None = None
    errors: dict[str, list[str]] | None = None


# Course models


class CourseCreate(BaseModel):
    """Request model for creating a course."""

    title_en: str = Field(..., min_length=1, max_length=255)
    title_bn: str | None = Field(default=None, max_length=255)
    description_en: str = Field(..., min_length=1)
    description_bn: str | None = None
    start_date: date
    end_date: date
    daily_start_time: time
    daily_end_time: time
    location_details: str = Field(..., min_length=1)
    maximum_capacity: int = Field(..., ge=1)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    category: str = Field(..., min_length=1, max_length=100)
    featured_image: str | None = Field(default=None, max_length=500)


class CourseUpdate(BaseModel):
    """Request model for updating a course (partial update)."""

    title_en: str | None = Field(default=None, min_length=1, max_length=255)
    title_bn: str | None = Field(default=None, max_length=255)
    description_en: str | None = Field(default=None, min_length=1)
    description_bn: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    daily_start_time: time | None = None
    daily_end_time: time | None = None
    location_details: str | None = Field(default=None, min_length=1)
    maximum_capacity: int | None = Field(default=None, ge=1)
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    category: str | None = Field(default=None, min_length=1, max_length=100)
    featured_image: str | None = Field(default=None, max_length=500)


class CourseResponse(BaseModel):
    """Response model for a course."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title_en: str
    title_bn: str | None
    description_en: str
    description_bn: str | None
    start_date: date
    end_date: date
    daily_start_time: time
    daily_end_time: time
    location_details: str
    maximum_capacity: int
    current_enrollment: int
    available_seats: int
    price: Money
    status: str
    featured_image: str | None
    category: str
    created_at: datetime
    updated_at: datetime


def course_to_response(course: Any) -> CourseResponse:
    """Convert a Course model to CourseResponse."""
    return CourseResponse.model_validate(course)


class AvailabilityResponse(BaseModel):
    """Response model for seat availability."""

    model_config = ConfigDict(from_attributes=True)

    course_id: int
    available_seats: int
    is_available: bool
    status: str


# Instructor models


class InstructorCreate(BaseModel):
    """Request model for creating an instructor."""

    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255)
    user_id: int | None = None
    phone: str | None = Field(default=None, max_length=50)
    specialization: str | None = Field(default=None, max_length=255)
    bio: str | None = None


class InstructorUpdate(BaseModel):
    """Request model for updating an instructor (partial update)."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = Field(default=None, min_length=3, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    specialization: str | None = Field(default=None, max_length=255)
    bio: str | None = None


class InstructorResponse(BaseModel):
    """Response model for an instructor."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int | None
    name: str
    email: str
    phone: str | None
    specialization: str | None
    bio: str | None


class CourseInstructorAssign(BaseModel):
    """Request model for assigning an instructor to a course."""

    instructor_id: int
    is_lead: bool = False


class CourseInstructorResponse(BaseModel):
    """An instructor as assigned to a course."""

    model_config = ConfigDict(from_attributes=True)

    course_id: int
    is_lead: bool
    instructor: InstructorResponse


class CourseWithInstructorsResponse(CourseResponse):
    """Course plus its assigned instructors."""

    instructors: list[CourseInstructorResponse]


def course_with_instructors_to_response(course: Any) -> CourseWithInstructorsResponse:
    """Convert a Course with loaded instructor links."""
    base = course_to_response(course).model_dump()
    return CourseWithInstructorsResponse(
        **base,
        instructors=[CourseInstructorResponse.model_validate(i) for i in course.instructor_links],
    )


# Recipe models


class Ingredient(BaseModel):
    """One ingredient line."""

    name: str = Field(..., min_length=1, max_length=255)
    quantity: str = Field(..., min_length=1, max_length=100)


class InstructionStep(BaseModel):
    """One preparation step."""

    step_text: str = Field(..., min_length=1)


class RecipeCreate(BaseModel):
    """Request model for creating a recipe."""

    name_en: str = Field(..., min_length=1, max_length=255)
    name_bn: str | None = Field(default=None, max_length=255)
    description_en: str = Field(..., min_length=1)
    description_bn: str | None = None
    ingredients: list[Ingredient] = Field(..., min_length=1)
    instructions: list[InstructionStep] = Field(..., min_length=1)
    preparation_time: int = Field(..., gt=0, description="Minutes")
    difficulty_level: DifficultyLevel


class RecipeUpdate(BaseModel):
    """Request model for updating a recipe (partial update)."""

    name_en: str | None = Field(default=None, min_length=1, max_length=255)
    name_bn: str | None = Field(default=None, max_length=255)
    description_en: str | None = Field(default=None, min_length=1)
    description_bn: str | None = None
    ingredients: list[Ingredient] | None = Field(default=None, min_length=1)
    instructions: list[InstructionStep] | None = Field(default=None, min_length=1)
    preparation_time: int | None = Field(default=None, gt=0, description="Minutes")
    difficulty_level: DifficultyLevel | None = None


class RecipeImageResponse(BaseModel):
    """Response model for a recipe image."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    recipe_id: int
    image_path: str
    is_primary: bool
    display_order: int


class RecipeResponse(BaseModel):
    """Response model for a recipe."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name_en: str
    name_bn: str | None
    description_en: str
    description_bn: str | None
    ingredients: list[Ingredient]
    instructions: list[InstructionStep]
    preparation_time: int
    difficulty_level: str
    images: list[RecipeImageResponse]
    created_at: datetime
    updated_at: datetime


def recipe_to_response(recipe: Any) -> RecipeResponse:
    """Convert a Recipe model (images loaded) to RecipeResponse."""
    return RecipeResponse.model_validate(recipe)


class CourseRecipeAttach(BaseModel):
    """Request model for adding a recipe to a course."""

    recipe_id: int
    day_number: int | None = Field(default=None, ge=1)


class CourseRecipeResponse(BaseModel):
    """A recipe as scheduled in a course."""

    model_config = ConfigDict(from_attributes=True)

    course_id: int
    day_number: int | None
    recipe: RecipeResponse


# Student models


class StudentCreate(BaseModel):
    """Request model for creating a student."""

    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255)
    user_id: int | None = None
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = None


class StudentUpdate(BaseModel):
    """Request model for updating a student (partial update)."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = Field(default=None, min_length=3, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = None


class StudentResponse(BaseModel):
    """Response model for a student."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int | None
    name: str
    email: str
    phone: str | None
    address: str | None
    profile_image: str | None
    registration_date: datetime


# Registration models


class RegisterRequest(BaseModel):
    """Optional body for registering; staff name the student."""

    student_id: int | None = None


class RegistrationResponse(BaseModel):
    """Response model for a registration."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    student_id: int
    course_id: int
    payment_status: str
    certificate_status: str
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None


class RegistrationWithCourseResponse(RegistrationResponse):
    """Registration plus its course."""

    course: CourseResponse


class RegistrationDetailResponse(RegistrationResponse):
    """Registration plus student name and course title."""

    student_name: str
    course_title: str


def registration_detail_to_response(registration: Any) -> RegistrationDetailResponse:
    """Convert a Registration with loaded student and course."""
    return RegistrationDetailResponse(
        **RegistrationResponse.model_validate(registration).model_dump(),
        student_name=registration.student.name,
        course_title=registration.course.title_en,
    )


class PaymentInstructionsResponse(BaseModel):
    """How to pay for a new registration."""

    model_config = ConfigDict(from_attributes=True)

    amount: Money
    reference: str
    method: str
    account: str


class EnrollmentResponse(BaseModel):
    """Response model for a successful registration."""

    model_config = ConfigDict(from_attributes=True)

    registration: RegistrationResponse
    payment_instructions: PaymentInstructionsResponse


# Attendance models


class AttendanceCreate(BaseModel):
    """Request model for recording attendance."""

    date: dt.date
    present: bool


class AttendanceResponse(BaseModel):
    """Response model for an attendance record."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    registration_id: int
    date: dt.date
    present: bool


class CourseAttendanceResponse(BaseModel):
    """Attendance sheet row for one student."""

    model_config = ConfigDict(from_attributes=True)

    registration_id: int
    student_id: int
    student_name: str
    records: list[AttendanceResponse]


# Payment models


class PaymentVerifyRequest(BaseModel):
    """Request model for reviewing a payment."""

    status: Literal["verified", "rejected"]
    rejection_reason: str | None = None


class PaymentResponse(BaseModel):
    """Response model for a payment."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    registration_id: int
    amount: Money
    payment_method: str
    transaction_id: str
    payment_date: datetime
    payment_proof: str | None
    verification_status: str
    rejection_reason: str | None
    verified_by: int | None
    verified_at: datetime | None
    created_at: datetime


class PaymentDetailResponse(PaymentResponse):
    """Payment plus student and course of its registration."""

    student_id: int
    student_name: str
    course_id: int
    course_title: str


def payment_detail_to_response(payment: Any) -> PaymentDetailResponse:
    """Convert a Payment with loaded registration, student and course."""
    registration = payment.registration
    return PaymentDetailResponse(
        **PaymentResponse.model_validate(payment).model_dump(),
        student_id=registration.student_id,
        student_name=registration.student.name,
        course_id=registration.course_id,
        course_title=registration.course.title_en,
    )


class PaymentSummaryResponse(BaseModel):
    """Amount totals of a payment report."""

    model_config = ConfigDict(from_attributes=True)

    total_amount: Money
    verified_amount: Money
    pending_amount: Money
    rejected_amount: Money


class PaymentReportResponse(BaseModel):
    """Response model for a payment report."""

    payments: list[PaymentDetailResponse]
    total: int
    limit: int
    offset: int
    summary: PaymentSummaryResponse


def payment_report_to_response(report: Any) -> PaymentReportResponse:
    """Convert a PaymentReport to PaymentReportResponse."""
    return PaymentReportResponse(
        payments=[payment_detail_to_response(p) for p in report.payments],
        total=report.total,
        limit=report.limit,
        offset=report.offset,
        summary=PaymentSummaryResponse.model_validate(report.summary),
    )


class WebhookAck(BaseModel):
    """Acknowledgement of a gateway callback."""

    received: bool = True


# Certificate models


class CertificateResponse(BaseModel):
    """Response model for a certificate."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    registration_id: int
    certificate_number: str
    issue_date: datetime
    digital_signature: str
    pdf_path: str | None
    created_at: datetime


def certificate_to_response(certificate: Any) -> CertificateResponse:
    """Convert a Certificate model to CertificateResponse."""
    return CertificateResponse.model_validate(certificate)


class CertificateVerificationResponse(BaseModel):
    """Public verification result for a certificate number."""

    model_config = ConfigDict(from_attributes=True)

    is_valid: bool
    certificate_number: str
    issue_date: datetime
    student_name: str
    course_title: str
    course_start_date: date
    course_end_date: date


# Dashboard models


class StudentCountsResponse(BaseModel):
    """Student totals."""

    total: int
    new_this_month: int


class DashboardStatsResponse(BaseModel):
    """Response model for dashboard statistics."""

    courses: dict[str, int]
    students: StudentCountsResponse
    registrations: dict[str, int]
    payments: dict[str, int]
    verified_amount: Money
    certificates_issued: int


def dashboard_stats_to_response(stats: Any) -> DashboardStatsResponse:
    """Convert DashboardStats to DashboardStatsResponse."""
    return DashboardStatsResponse(
        courses=stats.courses,
        students=StudentCountsResponse(
            total=stats.students_total, new_this_month=stats.students_new_this_month
        ),
        registrations=stats.registrations,
        payments=stats.payments,
        verified_amount=stats.verified_amount,
        certificates_issued=stats.certificates_issued,
    )
