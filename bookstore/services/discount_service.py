from datetime import datetime
from decimal import Decimal

from flask import current_app

from bookstore.errors import NotFoundError, StateConflictError, ValidationError
from bookstore.models.discount import Discount
from bookstore.repositories.discount_repo import DiscountRepo

PERCENTAGE = "percentage"
FIXED_AMOUNT = "fixed_amount"
DISCOUNT_TYPES = (PERCENTAGE, FIXED_AMOUNT)

ZERO = Decimal("0")
CENTS = Decimal("0.01")


def _dec(value):
    if value is None or isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def is_currently_valid(discount, now: datetime = None) -> bool:
    if not discount.is_active:
        return False

    now = now or datetime.utcnow()
    if discount.start_date is not None and now < discount.start_date:
        return False
    if discount.end_date is not None and now > discount.end_date:
        return False

    if discount.usage_limit is not None and (discount.usage_count or 0) >= discount.usage_limit:
        return False

    return True


def calculate_discount(discount, amount, now: datetime = None) -> Decimal:
    amount = _dec(amount)
    if not is_currently_valid(discount, now):
        return ZERO
    minimum = _dec(discount.minimum_amount)
    if minimum is not None and amount < minimum:
        return ZERO

    value = _dec(discount.value)
    if discount.discount_type == PERCENTAGE:
        result = amount * value / 100
    elif discount.discount_type == FIXED_AMOUNT:
        result = value
    else:
        result = ZERO

    maximum = _dec(discount.maximum_discount)
    if maximum is not None and result > maximum:
        result = maximum

    return result.quantize(CENTS)


class DiscountService:
    @staticmethod
    def list_discounts():
        return DiscountRepo.list_all()

    @staticmethod
    def create_discount(data: dict):
        code = (data.get("code") or "").strip().upper()
        if not code:
            raise ValidationError("code is required")
        if DiscountRepo.get_by_code(code):
            raise ValidationError(f"Discount code '{code}' already exists")

        discount_type = (data.get("discount_type") or "").strip().lower()
        if discount_type not in DISCOUNT_TYPES:
            raise ValidationError("discount_type must be percentage or fixed_amount")

        value = _dec(data["value"])
        if value <= 0:
            raise ValidationError("value must be positive")
        if discount_type == PERCENTAGE and value > 100:
            raise ValidationError("A percentage discount cannot exceed 100")

        start_date = _parse_dt(data.get("start_date"))
        end_date = _parse_dt(data.get("end_date"))
        if start_date and end_date and end_date < start_date:
            raise ValidationError("end_date must be after start_date")

        discount = Discount(
            code=code,
            discount_type=discount_type,
            value=value,
            minimum_amount=_dec(data.get("minimum_amount")),
            maximum_discount=_dec(data.get("maximum_discount")),
            usage_limit=int(data["usage_limit"]) if data.get("usage_limit") is not None else None,
            usage_count=0,
            is_active=bool(data.get("is_active", True)),
            start_date=start_date,
            end_date=end_date,
        )
        return DiscountRepo.create(discount)

    @staticmethod
    def apply(code: str, amount):
        discount = DiscountRepo.get_by_code((code or "").strip().upper())
        if not discount:
            raise NotFoundError("Discount code not found")

        amount = _dec(amount)
        if amount is None or amount < 0:
            raise ValidationError("amount must be zero or more")
        if not is_currently_valid(discount):
            raise StateConflictError("Discount code is not valid right now")

        value = calculate_discount(discount, amount)
        if value > 0:
            discount.usage_count = (discount.usage_count or 0) + 1
            DiscountRepo.commit()
            current_app.logger.info(f"[discounts] code={discount.code} amount={amount} discount={value}")

        return {
            "code": discount.code,
            "amount": float(amount),
            "discount": float(value),
            "final_amount": float(max(amount - value, ZERO)),
        }


def _parse_dt(value):
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"Invalid date: {value}")
