from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from bookstore.services.return_service import ReturnService
from bookstore.utils.auth import current_actor
from bookstore.utils.decorators import role_required
from bookstore.utils.serializers import return_to_dict

returns_bp = Blueprint("returns", __name__)


@returns_bp.get("/requests/")
@jwt_required()
def list_returns():
    rows = ReturnService.list_returns(current_actor(), request.args.get("status"))
    return jsonify({"success": True, "data": [return_to_dict(r) for r in rows]})


@returns_bp.get("/requests/<int:return_id>/")
@jwt_required()
def get_return(return_id: int):
    return jsonify({"success": True, "data": return_to_dict(ReturnService.get_return(current_actor(), return_id))})


@returns_bp.post("/requests/<int:return_id>/approve")
@jwt_required()
@role_required("admin")
def approve_return(return_id: int):
    return jsonify({"success": True, "data": return_to_dict(ReturnService.approve(current_actor(), return_id))})


@returns_bp.post("/requests/<int:return_id>/decline")
@jwt_required()
@role_required("admin")
def decline_return(return_id: int):
    reason = (request.get_json(silent=True) or {}).get("reason")
    ret = ReturnService.decline(current_actor(), return_id, reason)
    return jsonify({"success": True, "data": return_to_dict(ret)})


@returns_bp.post("/requests/<int:return_id>/assign")
@jwt_required()
@role_required("admin")
def assign_return(return_id: int):
    manager_id = (request.get_json(silent=True) or {}).get("delivery_manager_id")
    ret = ReturnService.assign_delivery_manager(current_actor(), return_id, manager_id)
    return jsonify({"success": True, "data": return_to_dict(ret)})


@returns_bp.post("/requests/<int:return_id>/start")
@jwt_required()
@role_required("delivery_manager")
def start_return(return_id: int):
    return jsonify({"success": True, "data": return_to_dict(ReturnService.start(current_actor(), return_id))})


@returns_bp.post("/requests/<int:return_id>/pickup")
@jwt_required()
@role_required("delivery_manager")
def pickup_return(return_id: int):
    ret = ReturnService.mark_picked_up(current_actor(), return_id)
    return jsonify({"success": True, "data": return_to_dict(ret)})


@returns_bp.post("/requests/<int:return_id>/complete")
@jwt_required()
@role_required("delivery_manager", "admin")
def complete_return(return_id: int):
    ret = ReturnService.complete(current_actor(), return_id)
    return jsonify({"success": True, "data": return_to_dict(ret)})
