from datetime import datetime

from flask import current_app

from bookstore.errors import (
    LocationUnavailableWarning,
    NotFoundError,
    PermissionDeniedError,
    StateConflictError,
    ValidationError,
)
from bookstore.models.borrow import BorrowRequest
from bookstore.models.return_request import ReturnRequest
from bookstore.repositories.book_repo import BookRepo
from bookstore.repositories.borrow_repo import BorrowRepo
from bookstore.repositories.return_repo import ReturnRepo
from bookstore.repositories.user_repo import UserRepo
from bookstore.services import lifecycle
from bookstore.services.fine_calculator import quote_for
from bookstore.utils.status import BorrowStatus, ReturnStatus, Role, normalize_status


class BorrowService:
    # -----------------------------
    # Helpers
    # -----------------------------
    @staticmethod
    def _load(borrow_id: int, for_update: bool = False) -> BorrowRequest:
        borrow = BorrowRepo.get_for_update(borrow_id) if for_update else BorrowRepo.get(borrow_id)
        if not borrow:
            raise NotFoundError("Borrow request not found")
        return borrow

    @staticmethod
    def _ensure_visible(actor, borrow: BorrowRequest):
        if actor.is_admin:
            return
        if actor.is_customer and borrow.customer_id == actor.user_id:
            return
        if actor.is_delivery_manager and borrow.delivery_person_id == actor.user_id:
            return
        raise PermissionDeniedError("This request does not belong to you")

    @staticmethod
    def _ensure_owner(actor, borrow: BorrowRequest):
        if actor.is_customer and borrow.customer_id != actor.user_id:
            raise PermissionDeniedError("This request does not belong to you")

    @staticmethod
    def ensure_assigned(actor, assigned_id):
        if actor.is_delivery_manager and assigned_id != actor.user_id:
            raise PermissionDeniedError("You are not assigned to this request")

    @staticmethod
    def apply_transition(borrow: BorrowRequest, target: BorrowStatus, actor, **inputs):
        new_status = lifecycle.transition(borrow.status, target, actor.role, **inputs).unwrap()
        previous = borrow.status
        borrow.status = new_status.value
        current_app.logger.info(
            f"[borrow] id={borrow.id} {previous} -> {borrow.status} by {actor.role}#{actor.user_id}"
        )
        return borrow

    @staticmethod
    def fine_quote(borrow: BorrowRequest, now: datetime = None):
        cfg = current_app.config
        return quote_for(borrow, cfg["FINE_DAILY_RATE"], cfg.get("FINE_MAXIMUM"), now=now)

    @staticmethod
    def resolve_delivery_manager(delivery_manager_id, require_available: bool):
        try:
            manager = UserRepo.get_by_id(int(delivery_manager_id))
        except (TypeError, ValueError):
            raise ValidationError("delivery_manager_id must be an integer")

        if not manager or manager.role != Role.DELIVERY_MANAGER.value or not manager.is_active:
            raise ValidationError("Delivery manager not found or inactive")
        if require_available and not manager.is_available:
            raise ValidationError(
                f"Delivery manager {manager.display_name} is {manager.delivery_status or 'offline'} "
                "and cannot take new deliveries"
            )
        return manager

    # -----------------------------
    # Queries
    # -----------------------------
    @staticmethod
    def get_request(actor, borrow_id: int) -> BorrowRequest:
        borrow = BorrowService._load(borrow_id)
        BorrowService._ensure_visible(actor, borrow)
        return borrow

    @staticmethod
    def list_requests(actor, status: str = None, search: str = None):
        key = normalize_status(status)
        if key in ("", "all"):
            status_filter = None
        elif key == "overdue":
            status_filter = "overdue"
        else:
            parsed = BorrowStatus.parse(key)
            if parsed is None:
                raise ValidationError(f"Unknown status filter '{status}'")
            status_filter = parsed.value

        scope = {}
        if actor.is_customer:
            scope["customer_id"] = actor.user_id
        elif actor.is_delivery_manager:
            scope["delivery_person_id"] = actor.user_id

        return BorrowRepo.search(
            status=status_filter,
            search=(search or "").strip() or None,
            **scope,
        )

    @staticmethod
    def list_delivery_managers():
        return UserRepo.list_delivery_managers()

    # -----------------------------
    # Customer submission
    # -----------------------------
    @staticmethod
    def create_request(actor, book_id: int, borrow_period_days: int = None, delivery_address: str = None):
        if not actor.is_customer:
            raise PermissionDeniedError("Only customers can submit borrow requests")

        cfg = current_app.config
        days = int(borrow_period_days if borrow_period_days is not None else cfg["DEFAULT_BORROW_PERIOD_DAYS"])
        if days <= 0 or days > cfg["MAX_BORROW_PERIOD_DAYS"]:
            raise ValidationError(f"borrow_period_days must be between 1 and {cfg['MAX_BORROW_PERIOD_DAYS']}")

        book = BookRepo.get(book_id)
        if not book:
            raise NotFoundError("Book not found")
        if book.available_copies is None or book.available_copies < 1:
            raise ValidationError("Book is not available for borrowing. No copies available.")

        borrow = BorrowRequest(
            customer_id=actor.user_id,
            book_id=book.id,
            borrow_period_days=days,
            delivery_address=(delivery_address or "").strip() or None,
            status=BorrowStatus.PENDING.value,
        )
        BorrowRepo.create(borrow)
        current_app.logger.info(f"[borrow] id={borrow.id} created by customer#{actor.user_id} book#{book.id}")
        return borrow

    # -----------------------------
    # Admin decisions
    # -----------------------------
    @staticmethod
    def approve(actor, borrow_id: int, delivery_manager_id) -> BorrowRequest:
        borrow = BorrowService._load(borrow_id, for_update=True)
        try:
            lifecycle.transition(
                borrow.status, BorrowStatus.APPROVED, actor.role,
                delivery_manager_id=delivery_manager_id,
            ).unwrap()
            manager = BorrowService.resolve_delivery_manager(delivery_manager_id, require_available=True)

            if not borrow.book or not borrow.book.reserve_copy():
                raise StateConflictError("No copies available for borrowing")

            BorrowService.apply_transition(
                borrow, BorrowStatus.APPROVED, actor, delivery_manager_id=delivery_manager_id
            )
            borrow.approval_date = datetime.utcnow()
            borrow.approved_by_id = actor.user_id
            borrow.delivery_person_id = manager.id
            BorrowRepo.commit()
        except Exception:
            BorrowRepo.rollback()
            raise
        return borrow

    @staticmethod
    def reject(actor, borrow_id: int, reason: str) -> BorrowRequest:
        borrow = BorrowService._load(borrow_id, for_update=True)
        BorrowService.apply_transition(borrow, BorrowStatus.REJECTED, actor, reason=reason)
        borrow.rejection_reason = reason.strip()
        BorrowRepo.commit()
        return borrow

    @staticmethod
    def cancel(actor, borrow_id: int) -> BorrowRequest:
        borrow = BorrowService._load(borrow_id, for_update=True)
        BorrowService._ensure_owner(actor, borrow)
        BorrowService.apply_transition(borrow, BorrowStatus.CANCELLED, actor)
        BorrowRepo.commit()
        return borrow

    # -----------------------------
    # Delivery workflow
    # -----------------------------
    @staticmethod
    def mark_delivered(actor, borrow_id: int) -> BorrowRequest:
        borrow = BorrowService._load(borrow_id, for_update=True)
        BorrowService.ensure_assigned(actor, borrow.delivery_person_id)
        BorrowService.apply_transition(borrow, BorrowStatus.ACTIVE, actor)
        borrow.delivery_date = datetime.utcnow()
        BorrowRepo.commit()
        return borrow

    @staticmethod
    def request_return(actor, borrow_id: int) -> ReturnRequest:
        borrow = BorrowService._load(borrow_id, for_update=True)
        BorrowService._ensure_owner(actor, borrow)
        BorrowService.apply_transition(borrow, BorrowStatus.RETURN_REQUESTED, actor)

        # one return leg per borrow; a declined one is reopened
        ret = ReturnRepo.get_by_borrow(borrow.id)
        if ret is None:
            ret = ReturnRepo.add(ReturnRequest(borrow_id=borrow.id))
        ret.status = ReturnStatus.PENDING_PICKUP.value
        ret.delivery_manager_id = None
        ret.decline_reason = None
        ret.picked_up_at = None
        ret.completed_at = None

        BorrowRepo.commit()
        return ret

    @staticmethod
    def delivery_location(actor, borrow_id: int) -> dict:
        borrow = BorrowService.get_request(actor, borrow_id)
        if not borrow.is_delivery_active():
            raise StateConflictError(
                "Live location is only available while the book is out for delivery",
                details={"status": borrow.status},
            )

        manager = borrow.delivery_person
        if manager is None or manager.latitude is None or manager.longitude is None:
            raise LocationUnavailableWarning("The delivery manager has not shared a location yet")

        return {
            "location": {"latitude": manager.latitude, "longitude": manager.longitude},
            "updated_at": manager.location_updated_at.isoformat() if manager.location_updated_at else None,
            "delivery_manager_id": manager.id,
        }
