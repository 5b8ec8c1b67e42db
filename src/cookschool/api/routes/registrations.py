"""Registration endpoints: availability, register, cancel, verify, attendance."""

from fastapi import APIRouter, status

from cookschool.access import Capability, require
from cookschool.api.dependencies import ActorDep, EnrollmentDep, SchoolStoreDep
from cookschool.api.models import (
    APIResponse,
    AttendanceCreate,
    AttendanceResponse,
    AvailabilityResponse,
    EnrollmentResponse,
    RegisterRequest,
    RegistrationResponse,
)

router = APIRouter(tags=["registrations"])


@router.get(
    "/courses/{course_id}/availability",
    response_model=APIResponse[AvailabilityResponse],
)
def check_availability(
    course_id: int, engine: EnrollmentDep
) -> APIResponse[AvailabilityResponse]:
    """Seats remaining in a course. Public."""
    availability = engine.check_availability(course_id)
    return APIResponse(
        message="Course availability retrieved successfully",
        data=AvailabilityResponse.model_validate(availability),
    )


@router.post(
    "/courses/{course_id}/register",
    response_model=APIResponse[EnrollmentResponse],
    status_code=status.HTTP_201_CREATED,
)
def register(
    course_id: int,
    engine: EnrollmentDep,
    actor: ActorDep,
    body: RegisterRequest | None = None,
) -> APIResponse[EnrollmentResponse]:
    """Register the caller, or a named student when staff register on their behalf."""
    enrollment = engine.register(
        course_id, actor, student_id=body.student_id if body is not None else None
    )
    return APIResponse(
        message="Registration successful",
        data=EnrollmentResponse.model_validate(enrollment),
    )


@router.post(
    "/registrations/{registration_id}/cancel",
    response_model=APIResponse[RegistrationResponse],
)
def cancel_registration(
    registration_id: int, engine: EnrollmentDep, actor: ActorDep
) -> APIResponse[RegistrationResponse]:
    """Cancel a registration and release its seat."""
    registration = engine.cancel(registration_id, actor)
    return APIResponse(
        message="Registration canceled successfully",
        data=RegistrationResponse.model_validate(registration),
    )


@router.put(
    "/registrations/{registration_id}/verify",
    response_model=APIResponse[RegistrationResponse],
)
def verify_registration(
    registration_id: int, engine: EnrollmentDep, actor: ActorDep
) -> APIResponse[RegistrationResponse]:
    """Mark a registration paid without a payment record."""
    registration = engine.verify(registration_id, actor)
    return APIResponse(
        message="Registration verified successfully",
        data=RegistrationResponse.model_validate(registration),
    )


@router.post(
    "/registrations/{registration_id}/attendance",
    response_model=APIResponse[AttendanceResponse],
    status_code=status.HTTP_201_CREATED,
)
def record_attendance(
    registration_id: int,
    attendance: AttendanceCreate,
    store: SchoolStoreDep,
    actor: ActorDep,
) -> APIResponse[AttendanceResponse]:
    """Record whether a student attended on a day."""
    require(actor, Capability.VIEW_STUDENTS)
    record = store.record_attendance(registration_id, attendance.date, attendance.present)
    return APIResponse(
        message="Attendance recorded successfully",
        data=AttendanceResponse.model_validate(record),
    )
