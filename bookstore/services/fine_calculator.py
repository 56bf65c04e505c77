from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

CENTS = Decimal("0.01")
ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class FineQuote:
    overdue_days: int
    amount: Decimal
    is_overdue: bool
    days_remaining: int

    def to_dict(self) -> dict:
        return {
            "overdue_days": self.overdue_days,
            "amount": float(self.amount),
            "is_overdue": self.is_overdue,
            "days_remaining": self.days_remaining,
        }


def _money(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def overdue_days(due_date: datetime, at: datetime) -> int:
    """Started 24h periods after due_date; a loan one minute late owes one day."""
    if due_date is None or at <= due_date:
        return 0
    return math.ceil((at - due_date) / ONE_DAY)


def days_remaining(due_date: datetime, at: datetime) -> int:
    if due_date is None or at >= due_date:
        return 0
    return (due_date - at) // ONE_DAY


def calculate_fine(due_date, actual_or_now, rate, maximum_fine=None) -> FineQuote:
    """
    Fine owed for a loan due at ``due_date`` when returned (or viewed) at
    ``actual_or_now``. ``rate`` is per overdue day; ``maximum_fine`` caps the
    result when given.
    """
    days = overdue_days(due_date, actual_or_now)
    amount = _money(rate) * days
    if maximum_fine is not None:
        amount = min(amount, _money(maximum_fine))
    if amount < 0:
        amount = Decimal("0")
    return FineQuote(
        overdue_days=days,
        amount=amount.quantize(CENTS),
        is_overdue=days > 0,
        days_remaining=days_remaining(due_date, actual_or_now),
    )


def quote_for(request, rate, maximum_fine=None, now: datetime | None = None) -> FineQuote:
    """Live quote for a borrow: finalReturnDate when fixed, otherwise now."""
    at = getattr(request, "final_return_date", None) or now or datetime.utcnow()
    return calculate_fine(getattr(request, "due_date", None), at, rate, maximum_fine)
