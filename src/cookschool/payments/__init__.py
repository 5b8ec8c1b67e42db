"""Payments package - Payment submission, review and reporting."""

from cookschool.payments.exceptions import (
    DuplicateTransactionError,
    InvalidPaymentError,
    PaymentAlreadyReviewedError,
    PaymentNotFoundError,
    RegistrationCanceledError,
)
from cookschool.payments.models import PaymentReport, PaymentSummary
from cookschool.payments.workflow import MAX_PROOF_BYTES, PaymentWorkflow, validate_proof

__all__ = [
    "MAX_PROOF_BYTES",
    "DuplicateTransactionError",
    "InvalidPaymentError",
    "PaymentAlreadyReviewedError",
    "PaymentNotFoundError",
    "PaymentReport",
    "PaymentSummary",
    "PaymentWorkflow",
    "RegistrationCanceledError",
    "validate_proof",
]
