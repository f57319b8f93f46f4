# Overview: Flask API routes for user and role management; parses input and returns JSON responses.

"""
User management routes.

Provides endpoints for:
- Listing users with their role
- Changing a user's role

All endpoints require MANAGE_USERS (admin only).
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_permission
from ..extensions import db
from ..models import User
from ..permissions import VALID_ROLES
from ..services import auth_service

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_permission("MANAGE_USERS")
def list_users_route():
    """
    List users with their role.

    Query params:
    - include_inactive: bool (default false) - include deactivated users
    """
    include_inactive = request.args.get("include_inactive", "false").lower() == "true"

    query = db.session.query(User)
    if not include_inactive:
        query = query.filter_by(is_active=True)

    users = query.order_by(User.username).all()
    return jsonify({
        "users": [u.to_dict() for u in users],
        "count": len(users),
        "roles": list(VALID_ROLES),
    })


@users_bp.put("/<int:user_id>/role")
@require_auth
@require_permission("MANAGE_USERS")
def update_user_role_route(user_id: int):
    """
    Replace a user's role.

    Request body:
    - role: admin | sales | accountant | warehouse
    """
    if not db.session.get(User, user_id):
        return jsonify({"error": "User not found"}), 404

    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400

    role = data.get("role")
    if not role:
        return jsonify({"error": "role required"}), 400

    try:
        user = auth_service.set_role(user_id, role)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    current_app.logger.info(
        "User %s set role of %s to %s", g.current_user.username, user.username, user.role
    )
    return jsonify({"user": user.to_dict(), "message": f"Role {role} assigned to {user.username}"})
