from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from bookstore.config import Config
from bookstore.services import lifecycle
from bookstore.services.fine_calculator import quote_for


def _first(data: dict, *keys):
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _parse_dt(value):
    if value is None or isinstance(value, datetime):
        return value
    text = str(value).strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1]
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    # server timestamps are naive UTC
    return parsed.replace(tzinfo=None)


def _nested_id(data: dict, flat_keys: tuple, nested_key: str):
    value = _first(data, *flat_keys)
    if value is None and isinstance(data.get(nested_key), dict):
        value = data[nested_key].get("id")
    return int(value) if value is not None else None


@dataclass
class BorrowRecord:
    """Transient client copy of a borrow request; the server stays authoritative."""
    id: int
    status: str
    customer_id: int | None = None
    book_id: int | None = None
    delivery_person_id: int | None = None
    request_date: datetime | None = None
    approval_date: datetime | None = None
    due_date: datetime | None = None
    delivery_date: datetime | None = None
    return_date: datetime | None = None
    final_return_date: datetime | None = None
    borrow_period_days: int = Config.DEFAULT_BORROW_PERIOD_DAYS
    fine_amount: Decimal = Decimal("0")
    rejection_reason: str | None = None
    customer_name: str | None = None
    book_title: str | None = None
    return_request_id: int | None = None

    @classmethod
    def from_json(cls, data: dict) -> "BorrowRecord":
        period = _first(data, "borrow_period_days", "duration_days")
        period = int(period) if period is not None else Config.DEFAULT_BORROW_PERIOD_DAYS

        request_date = _parse_dt(_first(data, "request_date", "created_at"))
        due_date = _parse_dt(_first(data, "expected_return_date", "due_date"))
        if due_date is None and request_date is not None:
            due_date = request_date + timedelta(days=period)

        customer = data.get("customer") if isinstance(data.get("customer"), dict) else {}
        book = data.get("book") if isinstance(data.get("book"), dict) else {}
        fine = _first(data, "fine_amount", "fine")

        return cls(
            id=int(data["id"]),
            status=str(data.get("status") or ""),
            customer_id=_nested_id(data, ("customer_id",), "customer"),
            book_id=_nested_id(data, ("book_id",), "book"),
            delivery_person_id=_nested_id(data, ("delivery_person_id", "delivery_manager_id"), "delivery_person"),
            request_date=request_date,
            approval_date=_parse_dt(data.get("approval_date")),
            due_date=due_date,
            delivery_date=_parse_dt(data.get("delivery_date")),
            return_date=_parse_dt(data.get("return_date")),
            final_return_date=_parse_dt(data.get("final_return_date")),
            borrow_period_days=period,
            fine_amount=Decimal(str(fine)) if fine is not None else Decimal("0"),
            rejection_reason=data.get("rejection_reason"),
            customer_name=data.get("customer_name") or customer.get("full_name") or customer.get("username"),
            book_title=data.get("book_title") or book.get("title"),
            return_request_id=_first(data, "return_request_id"),
        )

    def can_approve_or_reject(self) -> bool:
        return lifecycle.can_approve_or_reject(self)

    def is_delivery_active(self) -> bool:
        return lifecycle.is_delivery_active(self)

    def should_show_return_actions(self) -> bool:
        return lifecycle.should_show_return_actions(self)

    def should_show_assigned_delivery_manager(self) -> bool:
        return lifecycle.should_show_assigned_delivery_manager(self)

    def can_request_return(self) -> bool:
        return lifecycle.can_request_return(self)

    def is_overdue(self, now: datetime = None) -> bool:
        return lifecycle.is_overdue(self, now)

    def fine_quote(self, rate=Config.FINE_DAILY_RATE, maximum_fine=None, now: datetime = None):
        return quote_for(self, rate, maximum_fine, now=now)
