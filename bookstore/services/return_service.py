from datetime import datetime

from flask import current_app

from bookstore.errors import NotFoundError, PermissionDeniedError, StateConflictError
from bookstore.models.return_request import ReturnRequest
from bookstore.repositories.borrow_repo import BorrowRepo
from bookstore.repositories.return_repo import ReturnRepo
from bookstore.services import lifecycle
from bookstore.services.borrow_service import BorrowService
from bookstore.services.fine_calculator import calculate_fine
from bookstore.services.fine_service import FineService
from bookstore.utils.status import BorrowStatus, ReturnStatus, normalize_status


class ReturnService:
    @staticmethod
    def _load(return_id: int, for_update: bool = False) -> ReturnRequest:
        ret = ReturnRepo.get(return_id)
        if not ret:
            raise NotFoundError("Return request not found")
        if for_update:
            # row lock on the parent borrow; ret.borrow then resolves to it
            BorrowRepo.get_for_update(ret.borrow_id)
        return ret

    @staticmethod
    def get_return(actor, return_id: int) -> ReturnRequest:
        ret = ReturnService._load(return_id)
        borrow = ret.borrow
        if actor.is_admin:
            return ret
        if actor.is_customer and borrow.customer_id == actor.user_id:
            return ret
        if actor.is_delivery_manager and ret.delivery_manager_id == actor.user_id:
            return ret
        raise PermissionDeniedError("This return request does not belong to you")

    @staticmethod
    def list_returns(actor, status: str = None):
        key = normalize_status(status)
        status_filter = None if key in ("", "all") else key
        if actor.is_delivery_manager:
            return ReturnRepo.list(status=status_filter, delivery_manager_id=actor.user_id)
        if actor.is_admin:
            return ReturnRepo.list(status=status_filter)
        return [
            r for r in ReturnRepo.list(status=status_filter)
            if r.borrow and r.borrow.customer_id == actor.user_id
        ]

    # -----------------------------
    # Admin
    # -----------------------------
    @staticmethod
    def approve(actor, return_id: int) -> ReturnRequest:
        ret = ReturnService._load(return_id, for_update=True)
        BorrowService.apply_transition(ret.borrow, BorrowStatus.RETURN_APPROVED, actor)
        BorrowRepo.commit()
        return ret

    @staticmethod
    def decline(actor, return_id: int, reason: str) -> ReturnRequest:
        ret = ReturnService._load(return_id, for_update=True)
        BorrowService.apply_transition(ret.borrow, BorrowStatus.ACTIVE, actor, reason=reason)
        ret.status = ReturnStatus.CANCELLED.value
        ret.decline_reason = reason.strip()
        BorrowRepo.commit()
        return ret

    @staticmethod
    def assign_delivery_manager(actor, return_id: int, delivery_manager_id) -> ReturnRequest:
        ret = ReturnService._load(return_id, for_update=True)
        borrow = ret.borrow
        try:
            lifecycle.transition(
                borrow.status, BorrowStatus.RETURN_ASSIGNED, actor.role,
                delivery_manager_id=delivery_manager_id,
            ).unwrap()
            manager = BorrowService.resolve_delivery_manager(delivery_manager_id, require_available=False)

            BorrowService.apply_transition(
                borrow, BorrowStatus.RETURN_ASSIGNED, actor, delivery_manager_id=delivery_manager_id
            )
            borrow.delivery_person_id = manager.id
            ret.delivery_manager_id = manager.id
            BorrowRepo.commit()
        except Exception:
            BorrowRepo.rollback()
            raise
        return ret

    # -----------------------------
    # Delivery manager
    # -----------------------------
    @staticmethod
    def start(actor, return_id: int) -> ReturnRequest:
        ret = ReturnService._load(return_id, for_update=True)
        BorrowService.ensure_assigned(actor, ret.delivery_manager_id)
        BorrowService.apply_transition(ret.borrow, BorrowStatus.OUT_FOR_DELIVERY, actor)
        ret.status = ReturnStatus.IN_RETURN.value
        BorrowRepo.commit()
        return ret

    @staticmethod
    def mark_picked_up(actor, return_id: int) -> ReturnRequest:
        ret = ReturnService._load(return_id, for_update=True)
        BorrowService.ensure_assigned(actor, ret.delivery_manager_id)
        if ret.status != ReturnStatus.IN_RETURN.value:
            raise StateConflictError(
                f"Return request is '{ret.status}' and cannot be marked as picked up"
            )
        ret.status = ReturnStatus.RETURNING_TO_LIBRARY.value
        ret.picked_up_at = datetime.utcnow()
        BorrowRepo.commit()
        return ret

    @staticmethod
    def complete(actor, return_id: int, now: datetime = None) -> ReturnRequest:
        """
        Closes the return leg. This is the only place a fine is persisted:
        final_return_date is fixed here and the overdue interval becomes billable.
        """
        ret = ReturnService._load(return_id, for_update=True)
        borrow = ret.borrow
        BorrowService.ensure_assigned(actor, ret.delivery_manager_id)
        BorrowService.apply_transition(borrow, BorrowStatus.RETURNED, actor)

        now = now or datetime.utcnow()
        borrow.final_return_date = now
        borrow.return_date = now

        cfg = current_app.config
        quote = calculate_fine(borrow.due_date, now, cfg["FINE_DAILY_RATE"], cfg.get("FINE_MAXIMUM"))
        if quote.is_overdue:
            fine = FineService.upsert_for_return(borrow, ret, quote, cfg["FINE_DAILY_RATE"])
            ret.status = ReturnStatus.LATE_RETURN.value
            ret.fine_amount = fine.amount
            borrow.fine_amount = fine.amount
        else:
            ret.status = ReturnStatus.RETURNED_SUCCESSFULLY.value

        ret.completed_at = now
        if borrow.book:
            borrow.book.release_copy()

        BorrowRepo.commit()
        current_app.logger.info(
            f"[returns] id={ret.id} borrow={borrow.id} completed overdue_days={quote.overdue_days} "
            f"fine={quote.amount}"
        )
        return ret
