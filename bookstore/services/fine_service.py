import re
import uuid
from datetime import datetime

from flask import current_app

from bookstore.errors import NotFoundError, PermissionDeniedError, StateConflictError, ValidationError
from bookstore.models.fine import Fine
from bookstore.repositories.fine_repo import FineRepo
from bookstore.utils.status import FineStatus, PaymentMethod, normalize_status

_CARD_NUMBER = re.compile(r"^\d{12,19}$")
_EXPIRY = re.compile(r"^(0[1-9]|1[0-2])/(\d{2})$")
_CVV = re.compile(r"^\d{3,4}$")


class FineService:
    @staticmethod
    def _load(fine_id: int) -> Fine:
        fine = FineRepo.get(fine_id)
        if not fine:
            raise NotFoundError("Fine not found")
        return fine

    @staticmethod
    def _ensure_unpaid(fine: Fine):
        if fine.is_settled:
            raise StateConflictError(f"Fine has already been {fine.status}")

    @staticmethod
    def _ensure_owner(actor, fine: Fine):
        if not actor.is_customer or fine.borrow.customer_id != actor.user_id:
            raise PermissionDeniedError("You can only pay fines for your own borrowings")

    @staticmethod
    def _mark_paid(fine: Fine, actor, reference: str):
        fine.status = FineStatus.PAID.value
        fine.paid_date = datetime.utcnow()
        fine.paid_by_id = actor.user_id
        fine.transaction_reference = reference
        FineRepo.commit()
        current_app.logger.info(
            f"[fines] id={fine.id} paid via {fine.payment_method} ref={reference} by {actor.role}#{actor.user_id}"
        )
        return fine

    @staticmethod
    def upsert_for_return(borrow, return_request, quote, daily_rate) -> Fine:
        """Create or refresh the fine of a borrow; settled fines are left untouched."""
        fine = FineRepo.get_by_borrow(borrow.id)
        if fine is None:
            fine = FineRepo.add(Fine(borrow_id=borrow.id, status=FineStatus.UNPAID.value))
        elif fine.is_settled:
            return fine

        fine.return_request_id = return_request.id if return_request else None
        fine.days_overdue = quote.overdue_days
        fine.daily_rate = daily_rate
        fine.amount = quote.amount
        fine.reason = f"Late return - {quote.overdue_days} days overdue"
        return fine

    @staticmethod
    def list_mine(actor, status: str = None):
        return FineRepo.list_by_customer(actor.user_id, status=normalize_status(status) or None)

    @staticmethod
    def list_all(status: str = None):
        return FineRepo.list_all(status=normalize_status(status) or None)

    @staticmethod
    def select_payment_method(actor, fine_id: int, method: str) -> Fine:
        fine = FineService._load(fine_id)
        FineService._ensure_owner(actor, fine)
        FineService._ensure_unpaid(fine)

        key = normalize_status(method)
        if key not in (PaymentMethod.CASH.value, PaymentMethod.CARD.value):
            raise ValidationError("payment_method must be cash or card")

        fine.payment_method = key
        FineRepo.commit()
        return fine

    @staticmethod
    def confirm_card_payment(actor, fine_id: int, card: dict) -> Fine:
        fine = FineService._load(fine_id)
        FineService._ensure_owner(actor, fine)
        FineService._ensure_unpaid(fine)
        if fine.payment_method != PaymentMethod.CARD.value:
            raise StateConflictError("Select card as the payment method before confirming a card payment")

        number = re.sub(r"[\s-]", "", str(card.get("card_number") or ""))
        expiry = str(card.get("expiry") or "").strip()
        cvv = str(card.get("cvv") or "").strip()

        if not _CARD_NUMBER.match(number):
            raise ValidationError("Card number must be 12 to 19 digits")
        m = _EXPIRY.match(expiry)
        if not m:
            raise ValidationError("Expiry must be in MM/YY format")
        now = datetime.utcnow()
        if (2000 + int(m.group(2)), int(m.group(1))) < (now.year, now.month):
            raise ValidationError("Card has expired")
        if not _CVV.match(cvv):
            raise ValidationError("CVV must be 3 or 4 digits")

        reference = f"CARD-{number[-4:]}-{uuid.uuid4().hex[:10].upper()}"
        return FineService._mark_paid(fine, actor, reference)

    @staticmethod
    def confirm_cash_payment(actor, fine_id: int) -> Fine:
        fine = FineService._load(fine_id)
        if actor.is_delivery_manager:
            if fine.borrow.delivery_person_id != actor.user_id:
                raise PermissionDeniedError("You are not assigned to this borrowing")
        elif not actor.is_admin:
            raise PermissionDeniedError("Only staff can confirm cash payments")

        FineService._ensure_unpaid(fine)
        if fine.payment_method != PaymentMethod.CASH.value:
            raise StateConflictError("Customer has not chosen to pay this fine in cash")

        return FineService._mark_paid(fine, actor, f"CASH-{uuid.uuid4().hex[:10].upper()}")

    @staticmethod
    def waive(actor, fine_id: int, reason: str) -> Fine:
        fine = FineService._load(fine_id)
        FineService._ensure_unpaid(fine)
        if not isinstance(reason, str) or not reason.strip():
            raise ValidationError("A reason is required")

        fine.status = FineStatus.WAIVED.value
        fine.waive_reason = reason.strip()
        fine.paid_by_id = actor.user_id
        FineRepo.commit()
        current_app.logger.info(f"[fines] id={fine.id} waived by admin#{actor.user_id}")
        return fine
