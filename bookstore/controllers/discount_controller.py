from decimal import InvalidOperation

from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from bookstore.services.discount_service import DiscountService
from bookstore.utils.decorators import role_required
from bookstore.utils.serializers import discount_to_dict

discount_bp = Blueprint("discounts", __name__)


@discount_bp.get("/")
@jwt_required()
@role_required("admin")
def list_discounts():
    return jsonify({"success": True, "data": [discount_to_dict(d) for d in DiscountService.list_discounts()]})


@discount_bp.post("/")
@jwt_required()
@role_required("admin")
def create_discount():
    try:
        d = DiscountService.create_discount(request.get_json(silent=True) or {})
    except KeyError as e:
        return jsonify({"success": False, "code": "validation_error", "message": f"{e.args[0]} is required"}), 400
    except (TypeError, ValueError, InvalidOperation):
        return jsonify({"success": False, "code": "validation_error", "message": "Invalid discount values"}), 400
    return jsonify({"success": True, "data": discount_to_dict(d)}), 201


@discount_bp.post("/apply")
@jwt_required()
def apply_discount():
    data = request.get_json(silent=True) or {}
    try:
        result = DiscountService.apply(data["code"], data["amount"])
    except KeyError:
        return jsonify({"success": False, "code": "validation_error", "message": "code and amount are required"}), 400
    except (TypeError, ValueError, InvalidOperation):
        return jsonify({"success": False, "code": "validation_error", "message": "amount must be a number"}), 400
    return jsonify({"success": True, "data": result})
