"""Data models for the enrollment module."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal  # noqa: TC003
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cookschool.store import Registration


@dataclass
class Availability:
    """Seat availability for a course.

    Attributes:
        course_id: The course's ID.
        available_seats: maximum_capacity - current_enrollment.
        is_available: Seats remain and the course is upcoming or active.
        status: The course's status.
    """

    course_id: int
    available_seats: int
    is_available: bool
    status: str


@dataclass
class PaymentInstructions:
    """How a newly registered student pays for the course.

    Attributes:
        amount: Course price at registration time.
        reference: Reference to quote with the transfer.
        method: Payment channel.
        account: Account the transfer goes to.
    """

    amount: Decimal
    reference: str
    method: str
    account: str


@dataclass
class Enrollment:
    """Result of a successful registration."""

    registration: Registration
    payment_instructions: PaymentInstructions
