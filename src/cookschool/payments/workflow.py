"""Payment Verification Workflow - Payment evidence and its manual review."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from cookschool.access import Capability, require, require_owner_or
from cookschool.logging import sanitize_for_log, truncate_output
from cookschool.payments.exceptions import (
    DuplicateTransactionError,
    InvalidPaymentError,
    PaymentAlreadyReviewedError,
    PaymentNotFoundError,
    RegistrationCanceledError,
)
from cookschool.payments.models import PaymentReport, PaymentSummary
from cookschool.storage import validate_image
from cookschool.store import (
    Payment,
    PaymentStatus,
    Registration,
    RegistrationNotFoundError,
    VerificationStatus,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.orm import Session

    from cookschool.access import Actor
    from cookschool.config import Settings
    from cookschool.storage import FileStorage, UploadedFile
    from cookschool.store import SchoolStore

logger = logging.getLogger(__name__)

PROOF_DIRECTORY = "payments/proofs"
MAX_PROOF_BYTES = 5 * 1024 * 1024
MAX_TRANSACTION_ID_LENGTH = 100


def _money(value: Any) -> Decimal:
    return Decimal(str(value)).quantize(Decimal("0.01"))


def validate_proof(proof: UploadedFile) -> list[str]:
    """Check a payment proof upload.

    Returns:
        Error messages; empty when the proof is acceptable.
    """
    return validate_image(proof, MAX_PROOF_BYTES, "payment proof")


class PaymentWorkflow:
    """Accepts payment submissions and records their review.

    A payment's ``amount`` is always the course price at submission time.
    Reviewing a payment is a one-way step from pending to verified or
    rejected; verifying it marks the owning registration paid in the same
    transaction.
    """

    def __init__(
        self,
        store: SchoolStore,
        storage: FileStorage,
        settings: Settings,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Initialize the workflow.

        Args:
            store: SchoolStore whose database holds the payments.
            storage: Where payment proofs are written.
            settings: Provides the payment method recorded on payments.
            clock: Returns the current local time.
        """
        self.store = store
        self.storage = storage
        self.settings = settings
        self._db = store.database
        self._clock = clock

    def submit(
        self,
        registration_id: int,
        transaction_id: str,
        payment_date: datetime,
        proof: UploadedFile,
        actor: Actor,
    ) -> Payment:
        """Record a payment with its proof, pending review.

        Args:
            registration_id: Registration being paid for.
            transaction_id: Gateway transaction ID, unique across all payments.
            payment_date: When the student paid.
            proof: Receipt image (jpeg or png, at most 5 MiB).
            actor: The owning student, or a holder of ``create payments``.

        Returns:
            The created Payment.

        Raises:
            InvalidPaymentError: If the transaction ID or proof is invalid.
            RegistrationNotFoundError: If registration doesn't exist.
            PermissionDeniedError: If the actor may not pay for it.
            DuplicateTransactionError: If the transaction ID was already used.
            StorageError: If the proof cannot be stored.
        """
        errors: dict[str, list[str]] = {}
        transaction_id = transaction_id.strip()
        if not transaction_id:
            errors["transaction_id"] = ["The transaction id field is required."]
        elif len(transaction_id) > MAX_TRANSACTION_ID_LENGTH:
            errors["transaction_id"] = [
                "The transaction id must not be greater than 100 characters."
            ]
        proof_errors = validate_proof(proof)
        if proof_errors:
            errors["payment_proof"] = proof_errors
        if errors:
            raise InvalidPaymentError("Validation failed", errors)

        proof_path: str | None = None
        try:
            with self._db.session_scope() as session:
                registration = session.get(Registration, registration_id)
                if registration is None or registration.deleted_at is not None:
                    raise RegistrationNotFoundError(
                        f"Registration with id '{registration_id}' not found"
                    )
                require_owner_or(actor, registration.student_id, Capability.CREATE_PAYMENTS)
                course = registration.course

                proof_path = self.storage.save(PROOF_DIRECTORY, proof)
                payment = Payment(
                    registration_id=registration.id,
                    amount=course.price,
                    payment_method=self.settings.payment_method,
                    transaction_id=transaction_id,
                    payment_date=payment_date,
                    payment_proof=proof_path,
                    verification_status=VerificationStatus.PENDING.value,
                )
                session.add(payment)
                try:
                    session.flush()
                except IntegrityError as e:
                    logger.warning("Duplicate transaction id %s", transaction_id)
                    raise DuplicateTransactionError(
                        f"Transaction '{transaction_id}' has already been submitted"
                    ) from e
                session.refresh(payment)
        except Exception:
            if proof_path is not None:
                self.storage.delete(proof_path)
            raise

        logger.info(
            "Payment %s submitted for registration %s (amount=%s)",
            payment.id,
            registration_id,
            payment.amount,
        )
        return payment

    def verify(
        self,
        payment_id: int,
        status: VerificationStatus | str,
        actor: Actor,
        rejection_reason: str | None = None,
    ) -> Payment:
        """Accept or reject a pending payment.

        Args:
            payment_id: Payment to review.
            status: ``verified`` or ``rejected``.
            actor: A holder of ``verify payments``.
            rejection_reason: Required when rejecting.

        Returns:
            The reviewed Payment.

        Raises:
            PermissionDeniedError: Without ``verify payments``.
            InvalidPaymentError: If status is not a review outcome, or a
                rejection has no reason.
            PaymentNotFoundError: If payment doesn't exist.
            PaymentAlreadyReviewedError: If payment is no longer pending.
            RegistrationCanceledError: If verifying a payment whose registration
                was canceled.
        """
        require(actor, Capability.VERIFY_PAYMENTS)

        if status not in (VerificationStatus.VERIFIED, VerificationStatus.REJECTED):
            raise InvalidPaymentError(
                "Validation failed", {"status": ["The selected status is invalid."]}
            )
        status = VerificationStatus(status)
        reason = rejection_reason.strip() if rejection_reason else ""
        if status == VerificationStatus.REJECTED and not reason:
            raise InvalidPaymentError(
                "Validation failed",
                {
                    "rejection_reason": [
                        "The rejection reason field is required when status is rejected."
                    ]
                },
            )

        with self._db.session_scope() as session:
            payment = session.get(Payment, payment_id)
            if payment is None:
                raise PaymentNotFoundError(f"Payment with id '{payment_id}' not found")
            canceled = payment.registration.deleted_at is not None
            if status == VerificationStatus.VERIFIED and canceled:
                logger.warning(
                    "Refusing to verify payment %s: registration %s was canceled",
                    payment_id,
                    payment.registration_id,
                )
                raise RegistrationCanceledError(
                    f"Registration '{payment.registration_id}' was canceled; "
                    "the payment can only be rejected"
                )

            reviewed = session.execute(
                update(Payment)
                .where(
                    Payment.id == payment_id,
                    Payment.verification_status == VerificationStatus.PENDING.value,
                )
                .values(
                    verification_status=status.value,
                    rejection_reason=reason if status == VerificationStatus.REJECTED else None,
                    verified_by=actor.user_id,
                    verified_at=self._clock(),
                )
                .execution_options(synchronize_session=False)
            )
            if reviewed.rowcount != 1:
                logger.warning("Payment %s was already %s", payment_id, payment.verification_status)
                raise PaymentAlreadyReviewedError(
                    f"Payment '{payment_id}' has already been {payment.verification_status}"
                )

            if status == VerificationStatus.VERIFIED:
                session.execute(
                    update(Registration)
                    .where(
                        Registration.id == payment.registration_id,
                        Registration.deleted_at.is_(None),
                    )
                    .values(payment_status=PaymentStatus.COMPLETED.value)
                    .execution_options(synchronize_session=False)
                )

            session.refresh(payment)
            logger.info("Payment %s %s by user %s", payment_id, status.value, actor.user_id)
            return payment

    def get(self, payment_id: int, actor: Actor) -> Payment:
        """Get a payment with its registration, student and course.

        Raises:
            PaymentNotFoundError: If payment doesn't exist.
            PermissionDeniedError: Unless owner or holder of ``view payments``.
        """
        with self._db.session_scope() as session:
            stmt = (
                select(Payment)
                .options(
                    selectinload(Payment.registration).selectinload(Registration.student),
                    selectinload(Payment.registration).selectinload(Registration.course),
                )
                .where(Payment.id == payment_id)
            )
            payment = session.execute(stmt).scalar_one_or_none()
            if payment is None:
                raise PaymentNotFoundError(f"Payment with id '{payment_id}' not found")
            require_owner_or(actor, payment.registration.student_id, Capability.VIEW_PAYMENTS)
            return payment

    def report(
        self,
        actor: Actor,
        status: VerificationStatus | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        course_id: int | None = None,
        limit: int = 15,
        offset: int = 0,
    ) -> PaymentReport:
        """List payments with amount totals.

        Args:
            actor: A holder of ``view payment reports``.
            status: Only payments with this verification status.
            start_date: Only payments made on or after this day.
            end_date: Only payments made on or before this day.
            course_id: Only payments for this course.
            limit: Page size.
            offset: Page offset.

        Returns:
            PaymentReport whose summary covers every matching payment.

        Raises:
            PermissionDeniedError: Without ``view payment reports``.
        """
        require(actor, Capability.VIEW_PAYMENT_REPORTS)

        conditions: list[Any] = []
        if status is not None:
            conditions.append(Payment.verification_status == VerificationStatus(status).value)
        if start_date is not None:
            conditions.append(Payment.payment_date >= datetime.combine(start_date, time.min))
        if end_date is not None:
            conditions.append(
                Payment.payment_date < datetime.combine(end_date + timedelta(days=1), time.min)
            )
        if course_id is not None:
            conditions.append(
                Payment.registration_id.in_(
                    select(Registration.id).where(Registration.course_id == course_id)
                )
            )

        with self._db.session_scope() as session:
            page = session.execute(
                select(Payment)
                .options(
                    selectinload(Payment.registration).selectinload(Registration.student),
                    selectinload(Payment.registration).selectinload(Registration.course),
                )
                .where(*conditions)
                .order_by(Payment.payment_date.desc(), Payment.id.desc())
                .limit(limit)
                .offset(offset)
            )
            payments = list(page.scalars().all())
            total, summary = self._summarize(session, conditions)

        return PaymentReport(
            payments=payments, total=total, limit=limit, offset=offset, summary=summary
        )

    def handle_webhook(self, payload: dict[str, Any]) -> None:
        """Acknowledge a payment gateway callback.

        Gateway integration is not implemented; the payload is only logged.
        """
        body = sanitize_for_log(json.dumps(payload, default=str, sort_keys=True))
        logger.info("Payment webhook received: %s", truncate_output(body, max_length=2000))

    @staticmethod
    def _summarize(session: Session, conditions: list[Any]) -> tuple[int, PaymentSummary]:
        def amount_when(value: VerificationStatus) -> Any:
            return func.coalesce(
                func.sum(case((Payment.verification_status == value.value, Payment.amount))),
                0,
            )

        row = session.execute(
            select(
                func.count(Payment.id),
                func.coalesce(func.sum(Payment.amount), 0),
                amount_when(VerificationStatus.VERIFIED),
                amount_when(VerificationStatus.PENDING),
                amount_when(VerificationStatus.REJECTED),
            ).where(*conditions)
        ).one()

        count, total_amount, verified, pending, rejected = row
        return count, PaymentSummary(
            total_amount=_money(total_amount),
            verified_amount=_money(verified),
            pending_amount=_money(pending),
            rejected_amount=_money(rejected),
        )
