from functools import wraps
from flask_jwt_extended import verify_jwt_in_request, get_jwt

from bookstore.errors import PermissionDeniedError


def role_required(*roles):
    """Reject callers whose token role is not one of ``roles`` (403)."""
    allowed = {getattr(r, "value", r) for r in roles}

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if get_jwt().get("role") not in allowed:
                raise PermissionDeniedError("Not allowed for this role")
            return fn(*args, **kwargs)
        return wrapper
    return decorator
