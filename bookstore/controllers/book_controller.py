from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required
from bookstore.services.book_service import BookService
from bookstore.utils.decorators import role_required
from bookstore.utils.serializers import book_to_dict

book_bp = Blueprint("books", __name__)


@book_bp.get("/")
def list_books():
    return jsonify({"success": True, "data": [book_to_dict(b) for b in BookService.list_books()]})


@book_bp.get("/<int:book_id>")
def get_book(book_id: int):
    return jsonify({"success": True, "data": book_to_dict(BookService.get_book(book_id))})


@book_bp.post("/")
@jwt_required()
@role_required("admin")
def create_book():
    data = request.get_json(silent=True) or {}
    try:
        b = BookService.create_book(data)
        return jsonify({"success": True, "data": book_to_dict(b)}), 201
    except KeyError:
        return jsonify({"success": False, "code": "validation_error", "message": "title and author are required"}), 400
    except (TypeError, ValueError):
        return jsonify({"success": False, "code": "validation_error", "message": "copies must be integers"}), 400
