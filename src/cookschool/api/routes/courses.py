"""Course CRUD and lifecycle endpoints."""

from typing import Literal

from fastapi import APIRouter, Query, status

from cookschool.access import Capability, require
from cookschool.api.dependencies import ActorDep, SchoolStoreDep
from cookschool.api.models import (
    APIResponse,
    CourseAttendanceResponse,
    CourseCreate,
    CourseInstructorAssign,
    CourseInstructorResponse,
    CourseRecipeAttach,
    CourseRecipeResponse,
    CourseResponse,
    CourseUpdate,
    StudentResponse,
    course_to_response,
)
from cookschool.store import CourseStatus

router = APIRouter(prefix="/courses", tags=["courses"])

CourseSort = Literal["price_asc", "price_desc", "date_asc", "date_desc"]


@router.get("", response_model=APIResponse[list[CourseResponse]])
def list_courses(
    store: SchoolStoreDep,
    status_filter: CourseStatus | None = Query(default=None, alias="status"),
    category: str | None = None,
    sort_by: CourseSort = "date_desc",
    limit: int = Query(default=10, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> APIResponse[list[CourseResponse]]:
    """List courses. Public."""
    courses = store.list_courses(
        status=status_filter, category=category, sort_by=sort_by, limit=limit, offset=offset
    )
    return APIResponse(
        message="Courses retrieved successfully",
        data=[course_to_response(c) for c in courses],
    )


@router.post(
    "",
    response_model=APIResponse[CourseResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_course(
    course: CourseCreate, store: SchoolStoreDep, actor: ActorDep
) -> APIResponse[CourseResponse]:
    """Create a course in the upcoming state."""
    require(actor, Capability.CREATE_COURSES)
    created = store.create_course(**course.model_dump())
    return APIResponse(message="Course created successfully", data=course_to_response(created))


@router.get("/{course_id}", response_model=APIResponse[CourseResponse])
def get_course(course_id: int, store: SchoolStoreDep) -> APIResponse[CourseResponse]:
    """Get a course by ID. Public."""
    course = store.get_course(course_id)
    return APIResponse(message="Course retrieved successfully", data=course_to_response(course))


@router.put("/{course_id}", response_model=APIResponse[CourseResponse])
def update_course(
    course_id: int, course: CourseUpdate, store: SchoolStoreDep, actor: ActorDep
) -> APIResponse[CourseResponse]:
    """Update a course (partial update)."""
    require(actor, Capability.EDIT_COURSES)
    updated = store.update_course(course_id, **course.model_dump(exclude_none=True))
    return APIResponse(message="Course updated successfully", data=course_to_response(updated))


@router.delete("/{course_id}", response_model=APIResponse[None])
def delete_course(course_id: int, store: SchoolStoreDep, actor: ActorDep) -> APIResponse[None]:
    """Soft-delete a course with no enrolled students."""
    require(actor, Capability.DELETE_COURSES)
    store.delete_course(course_id)
    return APIResponse(message="Course deleted successfully")


@router.put("/{course_id}/publish", response_model=APIResponse[CourseResponse])
def publish_course(
    course_id: int, store: SchoolStoreDep, actor: ActorDep
) -> APIResponse[CourseResponse]:
    """Move an upcoming course to active."""
    require(actor, Capability.PUBLISH_COURSES)
    course = store.publish_course(course_id)
    return APIResponse(message="Course published successfully", data=course_to_response(course))


@router.put("/{course_id}/cancel", response_model=APIResponse[CourseResponse])
def cancel_course(
    course_id: int, store: SchoolStoreDep, actor: ActorDep
) -> APIResponse[CourseResponse]:
    """Cancel a course."""
    require(actor, Capability.CANCEL_COURSES)
    course = store.cancel_course(course_id)
    return APIResponse(message="Course canceled successfully", data=course_to_response(course))


@router.put("/{course_id}/complete", response_model=APIResponse[CourseResponse])
def complete_course(
    course_id: int, store: SchoolStoreDep, actor: ActorDep
) -> APIResponse[CourseResponse]:
    """Mark a course completed, making its students eligible for certificates."""
    require(actor, Capability.EDIT_COURSES)
    course = store.complete_course(course_id)
    return APIResponse(message="Course completed successfully", data=course_to_response(course))


@router.get("/{course_id}/recipes", response_model=APIResponse[list[CourseRecipeResponse]])
def list_course_recipes(
    course_id: int, store: SchoolStoreDep
) -> APIResponse[list[CourseRecipeResponse]]:
    """Recipes taught in a course, by day. Public."""
    links = store.list_course_recipes(course_id)
    return APIResponse(
        message="Course recipes retrieved successfully",
        data=[CourseRecipeResponse.model_validate(link) for link in links],
    )


@router.post(
    "/{course_id}/recipes",
    response_model=APIResponse[CourseRecipeResponse],
    status_code=status.HTTP_201_CREATED,
)
def attach_recipe(
    course_id: int, body: CourseRecipeAttach, store: SchoolStoreDep, actor: ActorDep
) -> APIResponse[CourseRecipeResponse]:
    """Add a recipe to a course."""
    require(actor, Capability.EDIT_COURSES)
    link = store.attach_recipe(course_id, body.recipe_id, day_number=body.day_number)
    return APIResponse(
        message="Recipe added to course successfully",
        data=CourseRecipeResponse.model_validate(link),
    )


@router.get(
    "/{course_id}/instructors", response_model=APIResponse[list[CourseInstructorResponse]]
)
def list_course_instructors(
    course_id: int, store: SchoolStoreDep
) -> APIResponse[list[CourseInstructorResponse]]:
    """Instructors assigned to a course. Public."""
    links = store.list_course_instructors(course_id)
    return APIResponse(
        message="Course instructors retrieved successfully",
        data=[CourseInstructorResponse.model_validate(link) for link in links],
    )


@router.post(
    "/{course_id}/instructors",
    response_model=APIResponse[CourseInstructorResponse],
    status_code=status.HTTP_201_CREATED,
)
def assign_instructor(
    course_id: int, body: CourseInstructorAssign, store: SchoolStoreDep, actor: ActorDep
) -> APIResponse[CourseInstructorResponse]:
    """Assign an instructor to a course."""
    require(actor, Capability.EDIT_COURSES)
    link = store.assign_instructor(course_id, body.instructor_id, is_lead=body.is_lead)
    return APIResponse(
        message="Instructor assigned successfully",
        data=CourseInstructorResponse.model_validate(link),
    )


@router.get("/{course_id}/students", response_model=APIResponse[list[StudentResponse]])
def list_course_students(
    course_id: int, store: SchoolStoreDep, actor: ActorDep
) -> APIResponse[list[StudentResponse]]:
    """Students holding an active registration for a course."""
    require(actor, Capability.VIEW_STUDENTS)
    students = store.list_course_students(course_id)
    return APIResponse(
        message="Course students retrieved successfully",
        data=[StudentResponse.model_validate(s) for s in students],
    )


@router.get(
    "/{course_id}/attendance", response_model=APIResponse[list[CourseAttendanceResponse]]
)
def get_course_attendance(
    course_id: int, store: SchoolStoreDep, actor: ActorDep
) -> APIResponse[list[CourseAttendanceResponse]]:
    """Attendance sheet for a course."""
    require(actor, Capability.VIEW_STUDENTS)
    sheet = store.list_course_attendance(course_id)
    return APIResponse(
        message="Course attendance retrieved successfully",
        data=[CourseAttendanceResponse.model_validate(row) for row in sheet],
    )
