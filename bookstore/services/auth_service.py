from werkzeug.security import generate_password_hash, check_password_hash
from flask_jwt_extended import create_access_token
from bookstore.errors import AuthenticationError, PermissionDeniedError, StateConflictError, ValidationError
from bookstore.models.user import User
from bookstore.repositories.user_repo import UserRepo
from bookstore.utils.status import DeliveryStatus, Role

class AuthService:
    @staticmethod
    def register(username: str, email: str, password: str, role: str = Role.CUSTOMER.value, full_name: str = None):
        username = (username or "").strip()
        email = (email or "").strip().lower()
        if not username or not email or not password:
            raise ValidationError("username, email and password are required")
        if role not in {r.value for r in Role}:
            raise ValidationError(f"Unknown role '{role}'")

        if UserRepo.get_by_username(username) or UserRepo.get_by_email(email):
            raise StateConflictError("Username or email is already registered")

        user = User(
            username=username,
            email=email,
            full_name=(full_name or "").strip() or None,
            password_hash=generate_password_hash(password),
            role=role,
            delivery_status=DeliveryStatus.OFFLINE.value if role == Role.DELIVERY_MANAGER.value else None,
        )
        UserRepo.create(user)
        return user

    @staticmethod
    def login(username: str, password: str):
        user = UserRepo.get_by_username((username or "").strip())
        if not user or not check_password_hash(user.password_hash, password or ""):
            raise AuthenticationError("Invalid username or password")
        if not user.is_active:
            raise PermissionDeniedError("This account is disabled")

        token = create_access_token(
            identity=str(user.id),
            additional_claims={"role": user.role, "username": user.username}
        )
        return token, user
