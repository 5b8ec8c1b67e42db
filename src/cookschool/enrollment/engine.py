"""Enrollment Engine - Seat capacity and registration uniqueness."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from cookschool.access import Capability, require, require_owner_or
from cookschool.access.exceptions import PermissionDeniedError
from cookschool.enrollment.exceptions import (
    AlreadyRegisteredError,
    CourseUnavailableError,
    RegistrationAlreadyCanceledError,
    StudentRequiredError,
    TooLateToCancelError,
)
from cookschool.enrollment.models import Availability, Enrollment, PaymentInstructions
from cookschool.store import (
    OPEN_COURSE_STATUSES,
    CertificateStatus,
    Course,
    CourseNotFoundError,
    CourseStatus,
    PaymentStatus,
    Registration,
    RegistrationNotFoundError,
    Student,
    StudentNotFoundError,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.orm import Session

    from cookschool.access import Actor
    from cookschool.config import Settings
    from cookschool.store import SchoolStore

logger = logging.getLogger(__name__)


def _is_available(course: Course) -> bool:
    return course.available_seats > 0 and course.status in OPEN_COURSE_STATUSES


class EnrollmentEngine:
    """Registers students for courses and cancels registrations.

    ``Course.current_enrollment`` is a materialized count of the course's
    non-canceled registrations. Every change to it happens in the same
    transaction as the registration write that causes it, as a guarded
    UPDATE that only succeeds while the invariant still holds.
    """

    def __init__(
        self,
        store: SchoolStore,
        settings: Settings,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the engine.

        Args:
            store: SchoolStore whose database holds the registrations.
            settings: Provides the payment method and account for instructions.
            clock: Returns the current local time.
        """
        self.store = store
        self.settings = settings
        self._db = store.database
        self._clock = clock

    def check_availability(self, course_id: int) -> Availability:
        """Report the seats left in a course.

        Raises:
            CourseNotFoundError: If course doesn't exist.
        """
        with self._db.session_scope() as session:
            course = self._load_course(session, course_id)
            return Availability(
                course_id=course.id,
                available_seats=course.available_seats,
                is_available=_is_available(course),
                status=course.status,
            )

    def register(
        self, course_id: int, actor: Actor, student_id: int | None = None
    ) -> Enrollment:
        """Register a student for a course.

        The target student is ``student_id`` when given by a holder of
        ``create registrations``, otherwise the actor's own student profile.

        Args:
            course_id: Course to register for.
            actor: The acting user.
            student_id: Student to register on behalf of (staff only).

        Returns:
            Enrollment with the new registration and payment instructions.

        Raises:
            CourseNotFoundError: If course doesn't exist.
            PermissionDeniedError: If no student can be resolved for the actor.
            StudentRequiredError: If staff omit student_id.
            StudentNotFoundError: If student_id doesn't exist.
            CourseUnavailableError: If the course is full or not open.
            AlreadyRegisteredError: If the student is already registered.
        """
        with self._db.session_scope() as session:
            course = self._load_course(session, course_id)
            target_id = self._resolve_student(session, actor, student_id)

            if not _is_available(course):
                logger.warning("Course %s is not available for registration", course_id)
                raise CourseUnavailableError(
                    f"Course '{course_id}' is not available for registration"
                )

            existing = session.execute(
                select(Registration.id).where(
                    Registration.student_id == target_id,
                    Registration.course_id == course_id,
                    Registration.deleted_at.is_(None),
                )
            ).first()
            if existing is not None:
                logger.warning("Student %s already registered for course %s", target_id, course_id)
                raise AlreadyRegisteredError(
                    f"Student '{target_id}' is already registered for course '{course_id}'"
                )

            claimed = session.execute(
                update(Course)
                .where(
                    Course.id == course_id,
                    Course.deleted_at.is_(None),
                    Course.current_enrollment < Course.maximum_capacity,
                    Course.status.in_(OPEN_COURSE_STATUSES),
                )
                .values(current_enrollment=Course.current_enrollment + 1)
                .execution_options(synchronize_session=False)
            )
            if claimed.rowcount != 1:
                logger.warning("Lost the last seat of course %s", course_id)
                raise CourseUnavailableError(
                    f"Course '{course_id}' is not available for registration"
                )

            registration = Registration(
                student_id=target_id,
                course_id=course_id,
                payment_status=PaymentStatus.PENDING.value,
                certificate_status=CertificateStatus.NOT_ELIGIBLE.value,
            )
            session.add(registration)
            try:
                session.flush()
            except IntegrityError as e:
                # The partial unique index caught a concurrent duplicate
                raise AlreadyRegisteredError(
                    f"Student '{target_id}' is already registered for course '{course_id}'"
                ) from e

            session.refresh(registration)
            session.refresh(course)

            logger.info(
                "Registered student %s for course %s (registration %s, %d/%d)",
                target_id,
                course_id,
                registration.id,
                course.current_enrollment,
                course.maximum_capacity,
            )
            return Enrollment(
                registration=registration,
                payment_instructions=PaymentInstructions(
                    amount=course.price,
                    reference=f"COOK-{registration.id}",
                    method=self.settings.payment_method,
                    account=self.settings.payment_account,
                ),
            )

    def cancel(self, registration_id: int, actor: Actor) -> Registration:
        """Cancel a registration and release its seat.

        Args:
            registration_id: Registration to cancel.
            actor: The owning student, or a holder of ``cancel registrations``.

        Returns:
            The canceled registration.

        Raises:
            RegistrationNotFoundError: If registration doesn't exist or is canceled.
            PermissionDeniedError: If the actor may not cancel it.
            TooLateToCancelError: If the course is active and has started.
            RegistrationAlreadyCanceledError: If a concurrent cancel won.
        """
        with self._db.session_scope() as session:
            registration = self._load_registration(session, registration_id)
            require_owner_or(actor, registration.student_id, Capability.CANCEL_REGISTRATIONS)

            course = registration.course
            if course.course_status == CourseStatus.ACTIVE and course.starts_at < self._clock():
                logger.warning("Too late to cancel registration %s", registration_id)
                raise TooLateToCancelError(
                    "Cannot cancel registration for an active course that has already started"
                )

            canceled = session.execute(
                update(Registration)
                .where(Registration.id == registration_id, Registration.deleted_at.is_(None))
                .values(deleted_at=self._clock())
                .execution_options(synchronize_session=False)
            )
            if canceled.rowcount != 1:
                raise RegistrationAlreadyCanceledError(
                    f"Registration '{registration_id}' is already canceled"
                )

            session.execute(
                update(Course)
                .where(Course.id == course.id, Course.current_enrollment > 0)
                .values(current_enrollment=Course.current_enrollment - 1)
                .execution_options(synchronize_session=False)
            )
            session.refresh(registration)

            logger.info("Canceled registration %s (course %s)", registration_id, course.id)
            return registration

    def verify(self, registration_id: int, actor: Actor) -> Registration:
        """Mark a registration paid without a payment record.

        Raises:
            PermissionDeniedError: Without ``verify registrations``.
            RegistrationNotFoundError: If registration doesn't exist.
        """
        require(actor, Capability.VERIFY_REGISTRATIONS)
        with self._db.session_scope() as session:
            registration = self._load_registration(session, registration_id)
            registration.payment_status = PaymentStatus.COMPLETED.value
            session.flush()
            session.refresh(registration)
            logger.info("Registration %s verified by user %s", registration_id, actor.user_id)
            return registration

    def list_for_student(self, student_id: int, actor: Actor) -> list[Registration]:
        """List a student's active registrations.

        Raises:
            PermissionDeniedError: Unless owner or holder of ``view students``.
            StudentNotFoundError: If student doesn't exist.
        """
        require_owner_or(actor, student_id, Capability.VIEW_STUDENTS)
        return self.store.list_student_registrations(student_id)

    # --- Helpers ---

    @staticmethod
    def _load_course(session: Session, course_id: int) -> Course:
        course = session.get(Course, course_id)
        if course is None or course.deleted_at is not None:
            raise CourseNotFoundError(f"Course with id '{course_id}' not found")
        return course

    @staticmethod
    def _load_registration(session: Session, registration_id: int) -> Registration:
        registration = session.get(Registration, registration_id)
        if registration is None or registration.deleted_at is not None:
            raise RegistrationNotFoundError(
                f"Registration with id '{registration_id}' not found"
            )
        return registration

    @staticmethod
    def _resolve_student(session: Session, actor: Actor, student_id: int | None) -> int:
        if student_id is not None and not actor.owns_student(student_id):
            if not actor.can(Capability.CREATE_REGISTRATIONS):
                raise PermissionDeniedError(
                    f"User '{actor.user_id}' may not register other students"
                )
            student = session.get(Student, student_id)
            if student is None or student.deleted_at is not None:
                raise StudentNotFoundError(f"Student with id '{student_id}' not found")
            return student.id

        if actor.student_id is not None:
            return actor.student_id

        if actor.can(Capability.CREATE_REGISTRATIONS):
            raise StudentRequiredError(
                "Validation failed", {"student_id": ["The student_id field is required."]}
            )
        raise PermissionDeniedError(f"User '{actor.user_id}' has no student profile")
