# Overview: Flask API routes for role operations; parses input and returns JSON responses.

# backend/dealerops/routes/roles.py
"""
Role management routes.

SECURITY:
- Listing roles requires any of create_roles, edit_roles or assign_roles
- Creating requires user_management.create_roles
- Reading, editing and deleting a single role is admin-only
- System roles cannot be renamed or deleted
"""
from flask import Blueprint, request, jsonify, current_app

from ..services import role_service
from ..validation import ValidationError, NotFoundError, ConflictError
from ..decorators import require_auth, require_admin, require_permission, require_any_permission

roles_bp = Blueprint("roles", __name__, url_prefix="/api/roles")


@roles_bp.get("")
@require_auth
@require_any_permission(
    "user_management.create_roles",
    "user_management.edit_roles",
    "user_management.assign_roles",
)
def list_roles_route():
    roles = role_service.list_roles()
    return jsonify({"data": [r.to_dict() for r in roles]}), 200


@roles_bp.post("")
@require_auth
@require_permission("user_management.create_roles")
def create_role_route():
    """
    Create a custom role.

    Body: {name, description?, permissions: {module: {flag: bool}}}
    Missing flags are stored as false.
    """
    payload = request.get_json(silent=True) or {}
    try:
        role = role_service.create_role(payload=payload)
        current_app.logger.info("Role created: %s", role.name)
        return jsonify({"data": role.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create role")
        return jsonify({"error": "Internal server error"}), 500


@roles_bp.get("/<int:role_id>")
@require_auth
@require_admin
def get_role_route(role_id: int):
    try:
        return jsonify({"data": role_service.get_role(role_id).to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@roles_bp.patch("/<int:role_id>")
@require_auth
@require_admin
def update_role_route(role_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        role = role_service.update_role(role_id=role_id, payload=payload)
        return jsonify({"data": role.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to update role")
        return jsonify({"error": "Internal server error"}), 500


@roles_bp.delete("/<int:role_id>")
@require_auth
@require_admin
def delete_role_route(role_id: int):
    try:
        role_service.delete_role(role_id=role_id)
        return jsonify({"message": "Role deleted successfully"}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
