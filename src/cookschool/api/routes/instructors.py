"""Instructor endpoints."""

from fastapi import APIRouter, status

from cookschool.access import Actor, Capability, require
from cookschool.api.dependencies import ActorDep, SchoolStoreDep
from cookschool.api.models import (
    APIResponse,
    CourseResponse,
    InstructorCreate,
    InstructorResponse,
    InstructorUpdate,
    course_to_response,
)
from cookschool.store import Instructor

router = APIRouter(prefix="/instructors", tags=["instructors"])


def _require_self_or(actor: Actor, instructor: Instructor, capability: Capability) -> None:
    if instructor.user_id is None or instructor.user_id != actor.user_id:
        require(actor, capability)


@router.post(
    "",
    response_model=APIResponse[InstructorResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_instructor(
    instructor: InstructorCreate, store: SchoolStoreDep, actor: ActorDep
) -> APIResponse[InstructorResponse]:
    """Create an instructor profile."""
    require(actor, Capability.CREATE_INSTRUCTORS)
    created = store.create_instructor(**instructor.model_dump())
    return APIResponse(
        message="Instructor created successfully",
        data=InstructorResponse.model_validate(created),
    )


@router.get("/{instructor_id}", response_model=APIResponse[InstructorResponse])
def get_instructor(instructor_id: int, store: SchoolStoreDep) -> APIResponse[InstructorResponse]:
    """Get an instructor by ID. Public."""
    instructor = store.get_instructor(instructor_id)
    return APIResponse(
        message="Instructor retrieved successfully",
        data=InstructorResponse.model_validate(instructor),
    )


@router.put("/{instructor_id}", response_model=APIResponse[InstructorResponse])
def update_instructor(
    instructor_id: int, instructor: InstructorUpdate, store: SchoolStoreDep, actor: ActorDep
) -> APIResponse[InstructorResponse]:
    """Update an instructor (partial update). Instructors may edit their own profile."""
    _require_self_or(actor, store.get_instructor(instructor_id), Capability.EDIT_INSTRUCTORS)
    updated = store.update_instructor(instructor_id, **instructor.model_dump(exclude_none=True))
    return APIResponse(
        message="Instructor updated successfully",
        data=InstructorResponse.model_validate(updated),
    )


@router.delete("/{instructor_id}", response_model=APIResponse[None])
def delete_instructor(
    instructor_id: int, store: SchoolStoreDep, actor: ActorDep
) -> APIResponse[None]:
    """Soft-delete an instructor who no longer teaches an open course."""
    require(actor, Capability.DELETE_INSTRUCTORS)
    store.delete_instructor(instructor_id)
    return APIResponse(message="Instructor deleted successfully")


@router.get("/{instructor_id}/courses", response_model=APIResponse[list[CourseResponse]])
def list_instructor_courses(
    instructor_id: int, store: SchoolStoreDep, actor: ActorDep
) -> APIResponse[list[CourseResponse]]:
    """List an instructor's teaching schedule. Instructors may read their own."""
    _require_self_or(actor, store.get_instructor(instructor_id), Capability.VIEW_INSTRUCTORS)
    courses = store.list_instructor_courses(instructor_id)
    return APIResponse(
        message="Instructor courses retrieved successfully",
        data=[course_to_response(c) for c in courses],
    )
