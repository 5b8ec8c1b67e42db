"""Student endpoints."""

from fastapi import APIRouter, status

from cookschool.access import Capability, require, require_owner_or
from cookschool.api.dependencies import ActorDep, EnrollmentDep, SchoolStoreDep
from cookschool.api.models import (
    APIResponse,
    CertificateResponse,
    RegistrationWithCourseResponse,
    StudentCreate,
    StudentResponse,
    StudentUpdate,
    certificate_to_response,
)

router = APIRouter(prefix="/students", tags=["students"])


@router.post(
    "",
    response_model=APIResponse[StudentResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_student(
    student: StudentCreate, store: SchoolStoreDep, actor: ActorDep
) -> APIResponse[StudentResponse]:
    """Create a student profile."""
    require(actor, Capability.CREATE_STUDENTS)
    created = store.create_student(**student.model_dump())
    return APIResponse(
        message="Student created successfully", data=StudentResponse.model_validate(created)
    )


@router.get("/{student_id}", response_model=APIResponse[StudentResponse])
def get_student(
    student_id: int, store: SchoolStoreDep, actor: ActorDep
) -> APIResponse[StudentResponse]:
    """Get a student. Students may read their own profile."""
    require_owner_or(actor, student_id, Capability.VIEW_STUDENTS)
    student = store.get_student(student_id)
    return APIResponse(
        message="Student retrieved successfully", data=StudentResponse.model_validate(student)
    )


@router.put("/{student_id}", response_model=APIResponse[StudentResponse])
def update_student(
    student_id: int, student: StudentUpdate, store: SchoolStoreDep, actor: ActorDep
) -> APIResponse[StudentResponse]:
    """Update a student (partial update). Students may edit their own profile."""
    require_owner_or(actor, student_id, Capability.EDIT_STUDENTS)
    updated = store.update_student(student_id, **student.model_dump(exclude_none=True))
    return APIResponse(
        message="Student updated successfully", data=StudentResponse.model_validate(updated)
    )


@router.delete("/{student_id}", response_model=APIResponse[None])
def delete_student(student_id: int, store: SchoolStoreDep, actor: ActorDep) -> APIResponse[None]:
    """Soft-delete a student."""
    require(actor, Capability.DELETE_STUDENTS)
    store.delete_student(student_id)
    return APIResponse(message="Student deleted successfully")


@router.get(
    "/{student_id}/registrations",
    response_model=APIResponse[list[RegistrationWithCourseResponse]],
)
def list_student_registrations(
    student_id: int, engine: EnrollmentDep, actor: ActorDep
) -> APIResponse[list[RegistrationWithCourseResponse]]:
    """A student's active registrations with their courses."""
    registrations = engine.list_for_student(student_id, actor)
    return APIResponse(
        message="Student registrations retrieved successfully",
        data=[RegistrationWithCourseResponse.model_validate(r) for r in registrations],
    )


@router.get("/{student_id}/certificates", response_model=APIResponse[list[CertificateResponse]])
def list_student_certificates(
    student_id: int, store: SchoolStoreDep, actor: ActorDep
) -> APIResponse[list[CertificateResponse]]:
    """Certificates issued to a student."""
    require_owner_or(actor, student_id, Capability.VIEW_CERTIFICATES)
    certificates = store.list_student_certificates(student_id)
    return APIResponse(
        message="Student certificates retrieved successfully",
        data=[certificate_to_response(c) for c in certificates],
    )
