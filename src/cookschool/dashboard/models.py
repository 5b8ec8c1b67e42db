"""Data models for the dashboard module."""

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass
class DashboardStats:
    """School-wide counts.

    The status maps hold a ``total`` entry plus one entry per status value,
    zero when no row has that status.

    Attributes:
        courses: Course counts by course status.
        registrations: Active registration counts by payment status.
        payments: Payment counts by verification status.
        students_total: Number of students.
        students_new_this_month: Students who joined in the current month.
        verified_amount: Sum of verified payment amounts.
        certificates_issued: Number of issued certificates.
    """

    courses: dict[str, int] = field(default_factory=dict)
    registrations: dict[str, int] = field(default_factory=dict)
    payments: dict[str, int] = field(default_factory=dict)
    students_total: int = 0
    students_new_this_month: int = 0
    verified_amount: Decimal = Decimal("0.00")
    certificates_issued: int = 0
