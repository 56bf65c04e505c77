from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from bookstore.services.delivery_service import DeliveryService
from bookstore.utils.auth import current_actor
from bookstore.utils.decorators import role_required
from bookstore.utils.serializers import delivery_manager_to_dict

delivery_bp = Blueprint("delivery", __name__)


@delivery_bp.put("/status")
@jwt_required()
@role_required("delivery_manager")
def set_status():
    status = (request.get_json(silent=True) or {}).get("status")
    user = DeliveryService.set_status(current_actor(), status)
    return jsonify({"success": True, "data": delivery_manager_to_dict(user)})


@delivery_bp.put("/location")
@jwt_required()
@role_required("delivery_manager")
def update_location():
    data = request.get_json(silent=True) or {}
    user = DeliveryService.update_location(current_actor(), data.get("latitude"), data.get("longitude"))
    return jsonify({"success": True, "data": delivery_manager_to_dict(user)})
