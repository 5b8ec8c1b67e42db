"""Admin Aggregation - Read-only rollups for the admin dashboard."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from cookschool.access import Capability, require
from cookschool.dashboard.models import DashboardStats
from cookschool.store import (
    Certificate,
    Course,
    CourseInstructor,
    CourseStatus,
    Payment,
    PaymentStatus,
    Registration,
    Student,
    VerificationStatus,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.orm import Session

    from cookschool.access import Actor
    from cookschool.store import SchoolStore

logger = logging.getLogger(__name__)

RECENT_LIMIT = 10


def _status_counts(
    session: Session, column: Any, statuses: type[StrEnum], *conditions: Any
) -> dict[str, int]:
    rows = session.execute(
        select(column, func.count()).where(*conditions).group_by(column)
    ).all()
    found = {status: count for status, count in rows}
    counts = {"total": sum(found.values())}
    for status in statuses:
        counts[status.value] = found.get(status.value, 0)
    return counts


class DashboardService:
    """Counts and recent-activity listings for staff.

    Every method needs the ``view dashboard`` capability and never mutates.
    """

    def __init__(
        self, store: SchoolStore, clock: Callable[[], datetime] = datetime.now
    ) -> None:
        self.store = store
        self._db = store.database
        self._clock = clock

    def stats(self, actor: Actor) -> DashboardStats:
        """Compute school-wide counts and the verified payment total."""
        require(actor, Capability.VIEW_DASHBOARD)

        now = self._clock()
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

        with self._db.session_scope() as session:
            courses = _status_counts(
                session, Course.status, CourseStatus, Course.deleted_at.is_(None)
            )
            registrations = _status_counts(
                session,
                Registration.payment_status,
                PaymentStatus,
                Registration.deleted_at.is_(None),
            )
            payments = _status_counts(session, Payment.verification_status, VerificationStatus)

            students_total = session.execute(
                select(func.count(Student.id)).where(Student.deleted_at.is_(None))
            ).scalar_one()
            students_new = session.execute(
                select(func.count(Student.id)).where(
                    Student.deleted_at.is_(None),
                    Student.registration_date >= month_start,
                )
            ).scalar_one()
            verified_amount = session.execute(
                select(func.coalesce(func.sum(Payment.amount), 0)).where(
                    Payment.verification_status == VerificationStatus.VERIFIED.value
                )
            ).scalar_one()
            certificates = session.execute(
                select(func.count(Certificate.id)).where(Certificate.deleted_at.is_(None))
            ).scalar_one()

        return DashboardStats(
            courses=courses,
            registrations=registrations,
            payments=payments,
            students_total=students_total,
            students_new_this_month=students_new,
            verified_amount=Decimal(str(verified_amount)).quantize(Decimal("0.01")),
            certificates_issued=certificates,
        )

    def upcoming_courses(self, actor: Actor, limit: int = RECENT_LIMIT) -> list[Course]:
        """Upcoming courses, soonest first, with their instructors."""
        return self._courses(actor, CourseStatus.UPCOMING, Course.start_date, limit)

    def active_courses(self, actor: Actor, limit: int = RECENT_LIMIT) -> list[Course]:
        """Active courses, ending soonest first, with their instructors."""
        return self._courses(actor, CourseStatus.ACTIVE, Course.end_date, limit)

    def pending_payments(self, actor: Actor, limit: int = RECENT_LIMIT) -> list[Payment]:
        """Payments awaiting review, newest first."""
        require(actor, Capability.VIEW_DASHBOARD)
        with self._db.session_scope() as session:
            stmt = (
                select(Payment)
                .options(
                    selectinload(Payment.registration).selectinload(Registration.student),
                    selectinload(Payment.registration).selectinload(Registration.course),
                )
                .where(Payment.verification_status == VerificationStatus.PENDING.value)
                .order_by(Payment.created_at.desc(), Payment.id.desc())
                .limit(limit)
            )
            return list(session.execute(stmt).scalars().all())

    def new_registrations(self, actor: Actor, limit: int = RECENT_LIMIT) -> list[Registration]:
        """Most recent active registrations with student and course."""
        require(actor, Capability.VIEW_DASHBOARD)
        with self._db.session_scope() as session:
            stmt = (
                select(Registration)
                .options(selectinload(Registration.student), selectinload(Registration.course))
                .where(Registration.deleted_at.is_(None))
                .order_by(Registration.created_at.desc(), Registration.id.desc())
                .limit(limit)
            )
            return list(session.execute(stmt).scalars().all())

    def _courses(
        self, actor: Actor, status: CourseStatus, order: Any, limit: int
    ) -> list[Course]:
        require(actor, Capability.VIEW_DASHBOARD)
        with self._db.session_scope() as session:
            stmt = (
                select(Course)
                .options(
                    selectinload(Course.instructor_links).selectinload(CourseInstructor.instructor)
                )
                .where(Course.status == status.value, Course.deleted_at.is_(None))
                .order_by(order, Course.id)
                .limit(limit)
            )
            return list(session.execute(stmt).scalars().all())
