"""Certificates package - Issuing and verifying completion certificates."""

from cookschool.certificates.exceptions import (
    AlreadyIssuedError,
    CertificateNotFoundError,
    CourseNotCompletedError,
    PaymentIncompleteError,
)
from cookschool.certificates.issuer import (
    CertificateIssuer,
    certificate_number,
    sign_certificate,
)
from cookschool.certificates.models import CertificateVerification

__all__ = [
    "AlreadyIssuedError",
    "CertificateIssuer",
    "CertificateNotFoundError",
    "CertificateVerification",
    "CourseNotCompletedError",
    "PaymentIncompleteError",
    "certificate_number",
    "sign_certificate",
]
