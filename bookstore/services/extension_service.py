from datetime import datetime, timedelta

from flask import current_app

from bookstore.errors import NotFoundError, PermissionDeniedError, StateConflictError, ValidationError
from bookstore.models.extension import BorrowExtension
from bookstore.repositories.borrow_repo import BorrowRepo
from bookstore.repositories.extension_repo import ExtensionRepo
from bookstore.services import lifecycle
from bookstore.utils.status import BorrowStatus, ExtensionStatus, normalize_status


class ExtensionService:
    @staticmethod
    def _load_pending(extension_id: int) -> BorrowExtension:
        ext = ExtensionRepo.get(extension_id)
        if not ext:
            raise NotFoundError("Extension request not found")
        if ext.status != ExtensionStatus.PENDING.value:
            raise StateConflictError(f"Extension request is already {ext.status}")
        return ext

    @staticmethod
    def request_extension(actor, borrow_id: int, extension_days) -> BorrowExtension:
        borrow = BorrowRepo.get(borrow_id)
        if not borrow:
            raise NotFoundError("Borrow request not found")
        if not actor.is_customer or borrow.customer_id != actor.user_id:
            raise PermissionDeniedError("Only the borrower can request an extension")

        max_days = current_app.config["MAX_EXTENSION_DAYS"]
        try:
            days = int(extension_days)
        except (TypeError, ValueError):
            raise ValidationError("extension_days must be an integer")
        if days < 1 or days > max_days:
            raise ValidationError(f"extension_days must be between 1 and {max_days}")

        if not lifecycle.can_be_extended(borrow):
            raise StateConflictError("This borrowing cannot be extended")

        ext = BorrowExtension(
            borrow_id=borrow.id,
            extension_days=days,
            original_due_date=borrow.due_date,
            new_due_date=borrow.due_date + timedelta(days=days),
            status=ExtensionStatus.PENDING.value,
        )
        return ExtensionRepo.create(ext)

    @staticmethod
    def list_extensions(status: str = None):
        return ExtensionRepo.list(status=normalize_status(status) or None)

    @staticmethod
    def approve(actor, extension_id: int) -> BorrowExtension:
        ext = ExtensionService._load_pending(extension_id)
        borrow = ext.borrow
        if BorrowStatus.parse(borrow.status) != BorrowStatus.ACTIVE:
            raise StateConflictError(f"Borrowing is '{borrow.status}' and can no longer be extended")

        ext.status = ExtensionStatus.APPROVED.value
        ext.decided_by_id = actor.user_id
        ext.decided_at = datetime.utcnow()
        borrow.due_date = ext.new_due_date
        BorrowRepo.commit()
        current_app.logger.info(
            f"[extensions] id={ext.id} borrow={borrow.id} due_date -> {ext.new_due_date.isoformat()}"
        )
        return ext

    @staticmethod
    def reject(actor, extension_id: int, reason: str) -> BorrowExtension:
        ext = ExtensionService._load_pending(extension_id)
        if not isinstance(reason, str) or not reason.strip():
            raise ValidationError("A reason is required")

        ext.status = ExtensionStatus.REJECTED.value
        ext.rejection_reason = reason.strip()
        ext.decided_by_id = actor.user_id
        ext.decided_at = datetime.utcnow()
        BorrowRepo.commit()
        return ext
