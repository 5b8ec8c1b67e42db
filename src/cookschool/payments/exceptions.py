"""Exceptions for the payments module."""

from cookschool.exceptions import ConflictError, NotFoundError, ValidationError


class PaymentNotFoundError(NotFoundError):
    """Payment with given ID does not exist."""


class DuplicateTransactionError(ConflictError):
    """A payment with the same transaction ID was already submitted."""


class PaymentAlreadyReviewedError(ConflictError):
    """Payment is already verified or rejected."""


class InvalidPaymentError(ValidationError):
    """Submitted payment or review is missing or malformed."""


class RegistrationCanceledError(ConflictError):
    """The payment's registration was canceled after the payment was submitted."""
