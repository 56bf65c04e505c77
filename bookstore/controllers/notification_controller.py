from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required
from bookstore.services.notification_service import NotificationService
from bookstore.utils.decorators import role_required

notif_bp = Blueprint("notifications", __name__)

@notif_bp.post("/run-late-check")
@jwt_required()
@role_required("admin")
def run_late_check():
    counts = NotificationService.run_late_check()
    return jsonify({"success": True, "data": counts})
