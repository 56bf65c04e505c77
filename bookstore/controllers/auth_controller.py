from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from bookstore.errors import NotFoundError
from bookstore.services.auth_service import AuthService
from bookstore.repositories.user_repo import UserRepo
from bookstore.utils.auth import current_actor
from bookstore.utils.serializers import user_brief

auth_bp = Blueprint("auth", __name__)

@auth_bp.post("/register", endpoint="auth_register")
def register():
    data = request.get_json(silent=True) or {}

    # staff accounts are seeded, not self-registered
    user = AuthService.register(
        username=data.get("username"),
        email=data.get("email"),
        password=data.get("password"),
        full_name=data.get("full_name"),
    )
    return jsonify({"success": True, "data": user_brief(user)}), 201


@auth_bp.post("/login", endpoint="auth_login")
def login():
    data = request.get_json(silent=True) or {}
    token, user = AuthService.login(data.get("username"), data.get("password"))
    return jsonify({
        "success": True,
        "access_token": token,
        "user": user_brief(user),
    })


@auth_bp.get("/me", endpoint="auth_me")
@jwt_required()
def me():
    actor = current_actor()
    user = UserRepo.get_by_id(actor.user_id)
    if not user:
        raise NotFoundError("User not found")
    return jsonify({"success": True, "user": user_brief(user)})
