"""Data models for the payments module."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cookschool.store import Payment


@dataclass
class PaymentSummary:
    """Amount totals over the payments matching a report's filters."""

    total_amount: Decimal = Decimal("0")
    verified_amount: Decimal = Decimal("0")
    pending_amount: Decimal = Decimal("0")
    rejected_amount: Decimal = Decimal("0")


@dataclass
class PaymentReport:
    """One page of payments plus totals over every matching payment.

    Attributes:
        payments: Payments on this page, newest first.
        total: Number of payments matching the filters.
        limit: Page size used.
        offset: Page offset used.
        summary: Amount totals per verification status.
    """

    payments: list[Payment]
    total: int
    limit: int
    offset: int
    summary: PaymentSummary
