"""Exceptions for the certificates module."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cookschool.exceptions import ConflictError, NotFoundError

if TYPE_CHECKING:
    from cookschool.store import Certificate


class CertificateNotFoundError(NotFoundError):
    """Certificate with given ID or number does not exist."""


class CourseNotCompletedError(ConflictError):
    """Certificates are only issued for completed courses."""


class PaymentIncompleteError(ConflictError):
    """Certificates are only issued for paid registrations."""


class AlreadyIssuedError(ConflictError):
    """A certificate was already issued for the registration.

    Attributes:
        certificate: The certificate issued earlier.
    """

    def __init__(self, message: str, certificate: Certificate | None = None) -> None:
        super().__init__(message)
        self.certificate = certificate
