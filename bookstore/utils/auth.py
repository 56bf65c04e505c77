from dataclasses import dataclass
from flask_jwt_extended import get_jwt, get_jwt_identity


@dataclass(frozen=True)
class Actor:
    """Who is calling; passed explicitly into every service method."""
    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_customer(self) -> bool:
        return self.role == "customer"

    @property
    def is_delivery_manager(self) -> bool:
        return self.role == "delivery_manager"


def current_actor() -> Actor:
    claims = get_jwt() or {}
    return Actor(user_id=int(get_jwt_identity()), role=claims.get("role") or "")
