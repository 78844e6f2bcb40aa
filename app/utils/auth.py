from functools import wraps
from flask_jwt_extended import verify_jwt_in_request, get_jwt, get_jwt_identity
from flask import jsonify

from app.domain.actor import Actor


def current_actor() -> Actor:
    """JWT identity (user id) + role claim'den Actor üretir."""
    claims = get_jwt() or {}
    return Actor(user_id=int(get_jwt_identity()), role=claims.get("role", "user"))


def role_required(*roles):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            claims = get_jwt()
            role = claims.get("role")
            if role not in roles:
                return jsonify({"success": False, "code": "forbidden", "message": "Yetkisiz"}), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator
