# Overview: Flask API routes for dropdown settings; parses input and returns JSON responses.

# backend/dealerops/routes/dropdown_settings.py
"""
Admin-managed dropdown options (locations, transport companies, ...).

SECURITY: any signed-in user can read; writes are admin-only.
"""
from flask import Blueprint, request, g, jsonify, current_app

from ..services import dropdown_service
from ..validation import ValidationError, NotFoundError, ConflictError
from ..decorators import require_auth, require_admin

dropdowns_bp = Blueprint("dropdown_settings", __name__, url_prefix="/api/dropdown-settings")


@dropdowns_bp.get("")
@require_auth
def list_dropdown_settings_route():
    """Query params: category, active_only (default true; "false" includes inactive)"""
    settings = dropdown_service.list_settings(
        category=request.args.get("category") or None,
        active_only=request.args.get("active_only", "true").lower() != "false",
    )
    return jsonify({"data": [s.to_dict() for s in settings]}), 200


@dropdowns_bp.post("")
@require_auth
@require_admin
def create_dropdown_setting_route():
    """Body: {category, label, value, display_order?, is_active?}"""
    payload = request.get_json(silent=True) or {}
    try:
        setting = dropdown_service.create_setting(payload=payload, created_by=g.current_user.id)
        return jsonify({"data": setting.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create dropdown setting")
        return jsonify({"error": "Internal server error"}), 500


@dropdowns_bp.patch("/<int:setting_id>")
@require_auth
@require_admin
def update_dropdown_setting_route(setting_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        setting = dropdown_service.update_setting(setting_id=setting_id, payload=payload)
        return jsonify({"data": setting.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409


@dropdowns_bp.delete("/<int:setting_id>")
@require_auth
@require_admin
def delete_dropdown_setting_route(setting_id: int):
    try:
        dropdown_service.delete_setting(setting_id=setting_id)
        return jsonify({"message": "Dropdown setting deleted successfully"}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
