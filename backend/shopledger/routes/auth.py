# Overview: Flask API routes for the authenticated session.

"""
Session routes.

Tokens are issued out of band (`flask users token`); this blueprint only
exposes the current identity and logout.
"""

from flask import Blueprint, jsonify, g

from ..services import session_service
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict(), "shop_id": g.scope.shop_id}), 200


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(g.token)
    return jsonify({"message": "Logged out"}), 200
