from bookstore.services import lifecycle
from bookstore.services.discount_service import is_currently_valid


def _iso(value):
    return value.isoformat() if value else None


def _money(value):
    return float(value) if value is not None else 0.0


def user_brief(user):
    if not user:
        return None
    return {
        "id": user.id,
        "username": user.username,
        "full_name": user.full_name,
        "email": user.email,
        "role": user.role,
    }


def delivery_manager_to_dict(user):
    data = user_brief(user)
    data.update({
        "delivery_status": user.delivery_status or "offline",
        "is_available": user.is_available,
        "location_updated_at": _iso(user.location_updated_at),
    })
    return data


def book_to_dict(b):
    return {
        "id": b.id,
        "title": b.title,
        "author": b.author,
        "isbn": b.isbn,
        "total_copies": b.total_copies,
        "available_copies": b.available_copies,
    }


def borrow_to_dict(b, quote=None):
    data = {
        "id": b.id,
        "customer_id": b.customer_id,
        "customer_name": b.customer_name,
        "book_id": b.book_id,
        "book_title": b.book_title,
        "status": b.status,
        "borrow_period_days": b.borrow_period_days,
        "delivery_address": b.delivery_address,
        "request_date": _iso(b.request_date),
        "approval_date": _iso(b.approval_date),
        "due_date": _iso(b.due_date),
        "delivery_date": _iso(b.delivery_date),
        "return_date": _iso(b.return_date),
        "final_return_date": _iso(b.final_return_date),
        "rejection_reason": b.rejection_reason,
        "fine_amount": _money(b.fine_amount),
        "delivery_person": user_brief(b.delivery_person),
        "delivery_person_id": b.delivery_person_id,
        "can_approve_or_reject": b.can_approve_or_reject(),
        "is_delivery_active": b.is_delivery_active(),
        "can_request_return": lifecycle.can_request_return(b),
        "should_show_return_actions": b.should_show_return_actions(),
        "should_show_assigned_delivery_manager": b.should_show_assigned_delivery_manager(),
        "is_terminal": lifecycle.is_terminal(b),
        "return_request_id": b.return_request.id if b.return_request else None,
    }
    if quote is not None:
        data.update({
            "is_overdue": quote.is_overdue,
            "days_overdue": quote.overdue_days,
            "days_remaining": quote.days_remaining,
            "fine_quote": quote.to_dict(),
        })
    return data


def return_to_dict(r):
    borrow = r.borrow
    return {
        "id": r.id,
        "borrow_id": r.borrow_id,
        "status": r.status,
        "borrow_status": borrow.status if borrow else None,
        "book_title": borrow.book_title if borrow else None,
        "customer_name": borrow.customer_name if borrow else None,
        "due_date": _iso(borrow.due_date) if borrow else None,
        "delivery_manager": user_brief(r.delivery_manager),
        "fine_amount": _money(r.fine_amount),
        "decline_reason": r.decline_reason,
        "picked_up_at": _iso(r.picked_up_at),
        "completed_at": _iso(r.completed_at),
        "created_at": _iso(r.created_at),
    }


def fine_to_dict(f):
    return {
        "id": f.id,
        "borrow_id": f.borrow_id,
        "return_request_id": f.return_request_id,
        "days_overdue": f.days_overdue,
        "daily_rate": _money(f.daily_rate),
        "amount": _money(f.amount),
        "reason": f.reason,
        "status": f.status,
        "payment_method": f.payment_method,
        "transaction_reference": f.transaction_reference,
        "paid_date": _iso(f.paid_date),
        "paid_by_name": f.paid_by_name,
        "created_at": _iso(f.created_at),
    }


def extension_to_dict(e):
    return {
        "id": e.id,
        "borrow_id": e.borrow_id,
        "extension_days": e.extension_days,
        "original_due_date": _iso(e.original_due_date),
        "new_due_date": _iso(e.new_due_date),
        "status": e.status,
        "rejection_reason": e.rejection_reason,
        "created_at": _iso(e.created_at),
    }


def discount_to_dict(d):
    return {
        "id": d.id,
        "code": d.code,
        "discount_type": d.discount_type,
        "value": _money(d.value),
        "minimum_amount": float(d.minimum_amount) if d.minimum_amount is not None else None,
        "maximum_discount": float(d.maximum_discount) if d.maximum_discount is not None else None,
        "usage_limit": d.usage_limit,
        "usage_count": d.usage_count,
        "is_active": d.is_active,
        "is_currently_valid": is_currently_valid(d),
        "start_date": _iso(d.start_date),
        "end_date": _iso(d.end_date),
    }
