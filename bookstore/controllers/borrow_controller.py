from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from bookstore.services.borrow_service import BorrowService
from bookstore.services import lifecycle
from bookstore.services.extension_service import ExtensionService
from bookstore.utils.auth import current_actor
from bookstore.utils.decorators import role_required
from bookstore.utils.serializers import (
    borrow_to_dict,
    delivery_manager_to_dict,
    extension_to_dict,
    return_to_dict,
)

borrow_bp = Blueprint("borrow", __name__)


def _body() -> dict:
    return request.get_json(silent=True) or {}


# -----------------------------
# Customer
# -----------------------------
@borrow_bp.post("/requests/")
@jwt_required()
@role_required("customer")
def create_request():
    data = _body()
    try:
        b = BorrowService.create_request(
            current_actor(),
            book_id=int(data["book_id"]),
            borrow_period_days=data.get("borrow_period_days"),
            delivery_address=data.get("delivery_address"),
        )
    except KeyError:
        return jsonify({"success": False, "code": "validation_error", "message": "book_id is required"}), 400
    except (TypeError, ValueError):
        return jsonify({"success": False, "code": "validation_error", "message": "book_id and borrow_period_days must be integers"}), 400
    return jsonify({"success": True, "data": borrow_to_dict(b)}), 201


@borrow_bp.post("/requests/<int:borrow_id>/cancel")
@jwt_required()
@role_required("customer")
def cancel_request(borrow_id: int):
    b = BorrowService.cancel(current_actor(), borrow_id)
    return jsonify({"success": True, "data": borrow_to_dict(b)})


@borrow_bp.post("/borrowings/<int:borrow_id>/return-request")
@jwt_required()
@role_required("customer", "admin")
def request_return(borrow_id: int):
    ret = BorrowService.request_return(current_actor(), borrow_id)
    return jsonify({"success": True, "data": return_to_dict(ret)}), 201


@borrow_bp.post("/borrowings/<int:borrow_id>/extend")
@jwt_required()
@role_required("customer")
def request_extension(borrow_id: int):
    ext = ExtensionService.request_extension(current_actor(), borrow_id, _body().get("extension_days"))
    return jsonify({"success": True, "data": extension_to_dict(ext)}), 201


# -----------------------------
# Shared reads
# -----------------------------
@borrow_bp.get("/borrowings/")
@jwt_required()
def list_borrowings():
    rows = BorrowService.list_requests(
        current_actor(),
        status=request.args.get("status"),
        search=request.args.get("search"),
    )
    return jsonify({"success": True, "data": [borrow_to_dict(b, BorrowService.fine_quote(b)) for b in rows]})


@borrow_bp.get("/borrowings/<int:borrow_id>/")
@jwt_required()
def get_borrowing(borrow_id: int):
    actor = current_actor()
    b = BorrowService.get_request(actor, borrow_id)
    data = borrow_to_dict(b, BorrowService.fine_quote(b))
    data["allowed_transitions"] = [t.value for t in lifecycle.allowed_targets(b.status, actor.role)]
    return jsonify({"success": True, "data": data})


@borrow_bp.get("/borrowings/<int:borrow_id>/delivery-location/")
@jwt_required()
def delivery_location(borrow_id: int):
    return jsonify({"success": True, "data": BorrowService.delivery_location(current_actor(), borrow_id)})


# -----------------------------
# Admin
# -----------------------------
@borrow_bp.get("/delivery-managers/")
@jwt_required()
@role_required("admin")
def list_delivery_managers():
    managers = BorrowService.list_delivery_managers()
    return jsonify({"success": True, "data": [delivery_manager_to_dict(u) for u in managers]})


@borrow_bp.post("/requests/<int:borrow_id>/approve")
@jwt_required()
@role_required("admin")
def approve_request(borrow_id: int):
    b = BorrowService.approve(current_actor(), borrow_id, _body().get("delivery_manager_id"))
    return jsonify({"success": True, "data": borrow_to_dict(b)})


@borrow_bp.post("/requests/<int:borrow_id>/reject")
@jwt_required()
@role_required("admin")
def reject_request(borrow_id: int):
    b = BorrowService.reject(current_actor(), borrow_id, _body().get("reason"))
    return jsonify({"success": True, "data": borrow_to_dict(b)})


@borrow_bp.get("/extensions/")
@jwt_required()
@role_required("admin")
def list_extensions():
    rows = ExtensionService.list_extensions(request.args.get("status"))
    return jsonify({"success": True, "data": [extension_to_dict(e) for e in rows]})


@borrow_bp.post("/extensions/<int:extension_id>/approve")
@jwt_required()
@role_required("admin")
def approve_extension(extension_id: int):
    ext = ExtensionService.approve(current_actor(), extension_id)
    return jsonify({"success": True, "data": extension_to_dict(ext)})


@borrow_bp.post("/extensions/<int:extension_id>/reject")
@jwt_required()
@role_required("admin")
def reject_extension(extension_id: int):
    ext = ExtensionService.reject(current_actor(), extension_id, _body().get("reason"))
    return jsonify({"success": True, "data": extension_to_dict(ext)})


# -----------------------------
# Delivery manager
# -----------------------------
@borrow_bp.post("/borrowings/<int:borrow_id>/delivered")
@jwt_required()
@role_required("delivery_manager", "admin")
def mark_delivered(borrow_id: int):
    b = BorrowService.mark_delivered(current_actor(), borrow_id)
    return jsonify({"success": True, "data": borrow_to_dict(b)})
