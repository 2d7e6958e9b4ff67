# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


def require_auth(f):
    """
    Require a bearer token and establish the shop context.

    Sets the following Flask g attributes:
    - g.current_user: the authenticated User
    - g.scope: ShopScope(shop_id, user_id) passed to every service call
    - g.session_context: the full SessionContext
    - g.token: the raw bearer token (used by logout)

    Returns 401 when the header is missing, the token is unknown, expired
    or revoked, or the user/shop has been deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1].strip()
        context = session_service.validate_session(token)

        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.scope = context.scope
        g.session_context = context
        g.token = token

        return f(*args, **kwargs)

    return decorated_function
