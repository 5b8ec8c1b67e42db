"""Certificate Issuance - Numbered, signed certificates of completion."""

from __future__ import annotations

import hashlib
import hmac
import logging
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from cookschool.access import Capability, require, require_owner_or
from cookschool.certificates.exceptions import (
    AlreadyIssuedError,
    CertificateNotFoundError,
    CourseNotCompletedError,
    PaymentIncompleteError,
)
from cookschool.certificates.models import CertificateVerification
from cookschool.store import (
    Certificate,
    CertificateStatus,
    CourseStatus,
    PaymentStatus,
    Registration,
    RegistrationNotFoundError,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.orm import Session

    from cookschool.access import Actor
    from cookschool.store import SchoolStore

logger = logging.getLogger(__name__)

PDF_DIRECTORY = "certificates"


def certificate_number(registration_id: int, issued_at: datetime) -> str:
    """Format a certificate number, e.g. ``CERT-2025-00042``."""
    return f"CERT-{issued_at.year:04d}-{registration_id:05d}"


def sign_certificate(
    signing_key: str, registration_id: int, number: str, issued_at: datetime
) -> str:
    """Compute the HMAC-SHA256 signature of a certificate.

    Args:
        signing_key: Secret key.
        registration_id: Registration the certificate belongs to.
        number: Certificate number.
        issued_at: Issue timestamp (second precision).

    Returns:
        Hex-encoded signature.
    """
    message = f"{registration_id}|{number}|{issued_at.isoformat(timespec='seconds')}"
    return hmac.new(signing_key.encode(), message.encode(), hashlib.sha256).hexdigest()


class CertificateIssuer:
    """Issues at most one certificate per registration.

    A certificate needs a completed course and a paid registration. The
    registration's ``certificate_status`` flips to ``issued`` in the same
    transaction as the certificate insert, guarded so two concurrent
    requests cannot both issue.
    """

    def __init__(
        self,
        store: SchoolStore,
        signing_key: str,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.store = store
        self._db = store.database
        self._signing_key = signing_key
        self._clock = clock

    def generate(self, registration_id: int, actor: Actor) -> Certificate:
        """Issue the certificate for a registration.

        Args:
            registration_id: Registration to certify.
            actor: A holder of ``generate certificates``.

        Returns:
            The new Certificate.

        Raises:
            PermissionDeniedError: Without ``generate certificates``.
            RegistrationNotFoundError: If registration doesn't exist.
            CourseNotCompletedError: If the course is not completed.
            PaymentIncompleteError: If the registration is not paid.
            AlreadyIssuedError: If a certificate exists; carries it.
        """
        require(actor, Capability.GENERATE_CERTIFICATES)

        with self._db.session_scope() as session:
            stmt = (
                select(Registration)
                .options(selectinload(Registration.course))
                .where(Registration.id == registration_id, Registration.deleted_at.is_(None))
            )
            registration = session.execute(stmt).scalar_one_or_none()
            if registration is None:
                raise RegistrationNotFoundError(
                    f"Registration with id '{registration_id}' not found"
                )

            if registration.course.course_status != CourseStatus.COMPLETED:
                raise CourseNotCompletedError(
                    "Cannot generate certificate for a course that is not completed"
                )
            if registration.payment_status != PaymentStatus.COMPLETED:
                raise PaymentIncompleteError(
                    "Cannot generate certificate for a registration with incomplete payment"
                )

            existing = self._find_for_registration(session, registration_id)
            if existing is not None:
                raise self._already_issued(session, existing)

            claimed = session.execute(
                update(Registration)
                .where(
                    Registration.id == registration_id,
                    Registration.certificate_status != CertificateStatus.ISSUED.value,
                )
                .values(certificate_status=CertificateStatus.ISSUED.value)
                .execution_options(synchronize_session=False)
            )
            if claimed.rowcount != 1:
                raise self._already_issued(
                    session, self._find_for_registration(session, registration_id)
                )

            issued_at = self._clock().replace(microsecond=0)
            number = certificate_number(registration_id, issued_at)
            certificate = Certificate(
                registration_id=registration_id,
                certificate_number=number,
                issue_date=issued_at,
                digital_signature=sign_certificate(
                    self._signing_key, registration_id, number, issued_at
                ),
                # Rendering is not implemented; only the target path is recorded
                pdf_path=f"{PDF_DIRECTORY}/{number}.pdf",
            )
            session.add(certificate)
            try:
                session.flush()
            except IntegrityError as e:
                raise AlreadyIssuedError(f"Certificate number '{number}' is already taken") from e
            session.refresh(certificate)

            logger.info("Issued certificate %s for registration %s", number, registration_id)
            return certificate

    def verify(self, number: str) -> CertificateVerification:
        """Publicly confirm a certificate number.

        Raises:
            CertificateNotFoundError: If no certificate has this number.
        """
        with self._db.session_scope() as session:
            stmt = (
                select(Certificate)
                .options(
                    selectinload(Certificate.registration).selectinload(Registration.student),
                    selectinload(Certificate.registration).selectinload(Registration.course),
                )
                .where(
                    Certificate.certificate_number == number,
                    Certificate.deleted_at.is_(None),
                )
            )
            certificate = session.execute(stmt).scalar_one_or_none()
            if certificate is None:
                logger.warning("Verification of unknown certificate %s", number)
                raise CertificateNotFoundError("Invalid certificate number")

            expected = sign_certificate(
                self._signing_key,
                certificate.registration_id,
                certificate.certificate_number,
                certificate.issue_date,
            )
            is_valid = hmac.compare_digest(expected, certificate.digital_signature)
            if not is_valid:
                logger.warning("Certificate %s failed signature check", number)

            course = certificate.registration.course
            return CertificateVerification(
                is_valid=is_valid,
                certificate_number=certificate.certificate_number,
                issue_date=certificate.issue_date,
                student_name=certificate.registration.student.name,
                course_title=course.title_en,
                course_start_date=course.start_date,
                course_end_date=course.end_date,
            )

    def get(self, certificate_id: int, actor: Actor) -> Certificate:
        """Get a certificate with its registration, student and course.

        Raises:
            CertificateNotFoundError: If certificate doesn't exist.
            PermissionDeniedError: Unless owner or holder of ``view certificates``.
        """
        with self._db.session_scope() as session:
            stmt = (
                select(Certificate)
                .options(
                    selectinload(Certificate.registration).selectinload(Registration.student),
                    selectinload(Certificate.registration).selectinload(Registration.course),
                )
                .where(Certificate.id == certificate_id, Certificate.deleted_at.is_(None))
            )
            certificate = session.execute(stmt).scalar_one_or_none()
            if certificate is None:
                raise CertificateNotFoundError(f"Certificate with id '{certificate_id}' not found")
            require_owner_or(
                actor, certificate.registration.student_id, Capability.VIEW_CERTIFICATES
            )
            return certificate

    @staticmethod
    def _already_issued(session: Session, existing: Certificate | None) -> AlreadyIssuedError:
        # Detach so the certificate stays readable after the rollback
        if existing is not None:
            session.expunge(existing)
        return AlreadyIssuedError("Certificate already exists for this registration", existing)

    @staticmethod
    def _find_for_registration(session: Session, registration_id: int) -> Certificate | None:
        stmt = select(Certificate).where(
            Certificate.registration_id == registration_id,
            Certificate.deleted_at.is_(None),
        )
        return session.execute(stmt).scalars().first()
