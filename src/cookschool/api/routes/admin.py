"""Admin dashboard endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query

from cookschool.api.dependencies import ActorDep, DashboardDep
from cookschool.api.models import (
    APIResponse,
    CourseWithInstructorsResponse,
    DashboardStatsResponse,
    PaymentDetailResponse,
    RegistrationDetailResponse,
    course_with_instructors_to_response,
    dashboard_stats_to_response,
    payment_detail_to_response,
    registration_detail_to_response,
)

router = APIRouter(prefix="/admin", tags=["admin"])

LimitQuery = Annotated[int, Query(ge=1, le=50)]


@router.get("/stats", response_model=APIResponse[DashboardStatsResponse])
def get_stats(dashboard: DashboardDep, actor: ActorDep) -> APIResponse[DashboardStatsResponse]:
    """School-wide counts."""
    stats = dashboard.stats(actor)
    return APIResponse(
        message="Dashboard stats retrieved successfully",
        data=dashboard_stats_to_response(stats),
    )


@router.get(
    "/courses/upcoming", response_model=APIResponse[list[CourseWithInstructorsResponse]]
)
def upcoming_courses(
    dashboard: DashboardDep, actor: ActorDep, limit: LimitQuery = 10
) -> APIResponse[list[CourseWithInstructorsResponse]]:
    """Upcoming courses, soonest first."""
    courses = dashboard.upcoming_courses(actor, limit=limit)
    return APIResponse(
        message="Upcoming courses retrieved successfully",
        data=[course_with_instructors_to_response(c) for c in courses],
    )


@router.get("/courses/active", response_model=APIResponse[list[CourseWithInstructorsResponse]])
def active_courses(
    dashboard: DashboardDep, actor: ActorDep, limit: LimitQuery = 10
) -> APIResponse[list[CourseWithInstructorsResponse]]:
    """Active courses, ending soonest first."""
    courses = dashboard.active_courses(actor, limit=limit)
    return APIResponse(
        message="Active courses retrieved successfully",
        data=[course_with_instructors_to_response(c) for c in courses],
    )


@router.get("/payments/pending", response_model=APIResponse[list[PaymentDetailResponse]])
def pending_payments(
    dashboard: DashboardDep, actor: ActorDep, limit: LimitQuery = 10
) -> APIResponse[list[PaymentDetailResponse]]:
    """Payments awaiting review, newest first."""
    payments = dashboard.pending_payments(actor, limit=limit)
    return APIResponse(
        message="Pending payments retrieved successfully",
        data=[payment_detail_to_response(p) for p in payments],
    )


@router.get(
    "/registrations/new", response_model=APIResponse[list[RegistrationDetailResponse]]
)
def new_registrations(
    dashboard: DashboardDep, actor: ActorDep, limit: LimitQuery = 10
) -> APIResponse[list[RegistrationDetailResponse]]:
    """Most recent registrations."""
    registrations = dashboard.new_registrations(actor, limit=limit)
    return APIResponse(
        message="New registrations retrieved successfully",
        data=[registration_detail_to_response(r) for r in registrations],
    )
