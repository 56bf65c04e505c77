from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from bookstore.services.fine_service import FineService
from bookstore.utils.auth import current_actor
from bookstore.utils.decorators import role_required
from bookstore.utils.serializers import fine_to_dict

fines_bp = Blueprint("fines", __name__)


@fines_bp.get("/my-fines/")
@jwt_required()
@role_required("customer")
def my_fines():
    rows = FineService.list_mine(current_actor(), request.args.get("status"))
    return jsonify({"success": True, "data": [fine_to_dict(f) for f in rows]})


@fines_bp.get("/all/")
@jwt_required()
@role_required("admin")
def all_fines():
    rows = FineService.list_all(request.args.get("status"))
    return jsonify({"success": True, "data": [fine_to_dict(f) for f in rows]})


@fines_bp.post("/<int:fine_id>/select-payment-method/")
@jwt_required()
@role_required("customer")
def select_payment_method(fine_id: int):
    method = (request.get_json(silent=True) or {}).get("payment_method")
    fine = FineService.select_payment_method(current_actor(), fine_id, method)
    return jsonify({"success": True, "data": fine_to_dict(fine)})


@fines_bp.post("/<int:fine_id>/confirm-card-payment/")
@jwt_required()
@role_required("customer")
def confirm_card_payment(fine_id: int):
    fine = FineService.confirm_card_payment(current_actor(), fine_id, request.get_json(silent=True) or {})
    return jsonify({"success": True, "data": fine_to_dict(fine)})


@fines_bp.post("/<int:fine_id>/confirm-cash-payment/")
@jwt_required()
@role_required("admin", "delivery_manager")
def confirm_cash_payment(fine_id: int):
    fine = FineService.confirm_cash_payment(current_actor(), fine_id)
    return jsonify({"success": True, "data": fine_to_dict(fine)})


@fines_bp.post("/<int:fine_id>/waive/")
@jwt_required()
@role_required("admin")
def waive_fine(fine_id: int):
    reason = (request.get_json(silent=True) or {}).get("reason")
    fine = FineService.waive(current_actor(), fine_id, reason)
    return jsonify({"success": True, "data": fine_to_dict(fine)})
