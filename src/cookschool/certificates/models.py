"""Data models for the certificates module."""

from dataclasses import dataclass
from datetime import date, datetime


@dataclass
class CertificateVerification:
    """Public confirmation of a certificate number.

    Attributes:
        is_valid: Whether the stored signature matches the certificate.
        certificate_number: The verified number.
        issue_date: When the certificate was issued.
        student_name: Name of the certified student.
        course_title: English title of the completed course.
        course_start_date: First day of the course.
        course_end_date: Last day of the course.
    """

    is_valid: bool
    certificate_number: str
    issue_date: datetime
    student_name: str
    course_title: str
    course_start_date: date
    course_end_date: date
