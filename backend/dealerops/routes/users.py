# Overview: Flask API routes for user administration; parses input and returns JSON responses.

# backend/dealerops/routes/users.py
"""
User administration routes.

SECURITY:
- Everything here is admin-only except:
  - PATCH /api/users/<id>/role requires user_management.assign_roles
  - restore-admin and check-impersonation run on the impersonated session
  - GET /api/audit-logs requires user_management.activity_logs
- Admin accounts cannot be modified, deactivated, impersonated or deleted
- Every state change is written to the audit log
"""
from flask import Blueprint, request, g, jsonify, current_app

from ..services import audit_service, user_service
from ..services.auth_service import PasswordValidationError
from ..services.permission_service import PermissionDeniedError
from ..permissions import effective_permissions, is_admin
from ..validation import ValidationError, NotFoundError, ConflictError
from ..decorators import require_auth, require_admin, require_permission

users_bp = Blueprint("users", __name__, url_prefix="/api/users")
audit_bp = Blueprint("audit", __name__, url_prefix="/api/audit-logs")


def _session_body(profile, token: str, message: str) -> dict:
    return {
        "user": profile.to_dict(),
        "permissions": effective_permissions(profile),
        "is_admin": is_admin(profile),
        "token": token,
        "message": message,
    }


@users_bp.get("")
@require_auth
@require_admin
def list_users_route():
    profiles = user_service.list_profiles()
    return jsonify({"data": [p.to_dict() for p in profiles]}), 200


@users_bp.post("")
@require_auth
@require_admin
def create_user_route():
    """
    Create a profile.

    Body: {email, password, role: admin|seller|transporter, username?, role_id?}
    """
    payload = request.get_json(silent=True) or {}
    try:
        profile = user_service.create_user(
            payload=payload,
            actor_id=g.current_user.id,
            ip_address=request.remote_addr,
        )
        return jsonify({"data": profile.to_dict()}), 201
    except (ValidationError, PasswordValidationError) as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.get("/check-impersonation")
@require_auth
def check_impersonation_route():
    return jsonify(user_service.impersonation_state(g.session_context)), 200


@users_bp.get("/<int:profile_id>")
@require_auth
@require_admin
def get_user_route(profile_id: int):
    try:
        return jsonify({"data": user_service.get_profile(profile_id).to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@users_bp.patch("/<int:profile_id>")
@require_auth
@require_admin
def update_user_route(profile_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        profile = user_service.update_user(
            profile_id=profile_id,
            payload=payload,
            actor_id=g.current_user.id,
            ip_address=request.remote_addr,
        )
        return jsonify({"data": profile.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except PermissionDeniedError as e:
        return jsonify({"error": str(e)}), 403
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.delete("/<int:profile_id>")
@require_auth
@require_admin
def delete_user_route(profile_id: int):
    try:
        user_service.delete_user(
            profile_id=profile_id,
            actor_id=g.current_user.id,
            ip_address=request.remote_addr,
        )
        return jsonify({"message": "User deleted successfully"}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except PermissionDeniedError as e:
        return jsonify({"error": str(e)}), 403
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.patch("/<int:profile_id>/status")
@require_auth
@require_admin
def set_user_status_route(profile_id: int):
    """Body: {status: "active" | "inactive"}"""
    payload = request.get_json(silent=True) or {}
    try:
        profile = user_service.set_status(
            profile_id=profile_id,
            status=payload.get("status"),
            actor_id=g.current_user.id,
            ip_address=request.remote_addr,
        )
        return jsonify({"data": profile.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except PermissionDeniedError as e:
        return jsonify({"error": str(e)}), 403
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@users_bp.post("/<int:profile_id>/reset-password")
@require_auth
@require_admin
def reset_password_route(profile_id: int):
    """
    Body: {newPassword}

    The target is signed out of every session.
    """
    payload = request.get_json(silent=True) or {}
    try:
        user_service.reset_password(
            profile_id=profile_id,
            new_password=payload.get("newPassword") or payload.get("new_password"),
            actor_id=g.current_user.id,
            ip_address=request.remote_addr,
        )
        return jsonify({"message": "Password reset successfully"}), 200
    except (ValidationError, PasswordValidationError) as e:
        return jsonify({"error": str(e)}), 400
    except PermissionDeniedError as e:
        return jsonify({"error": str(e)}), 403
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@users_bp.patch("/<int:profile_id>/role")
@require_auth
@require_permission("user_management.assign_roles")
def assign_role_route(profile_id: int):
    """Body: {role_id}"""
    payload = request.get_json(silent=True) or {}
    try:
        profile = user_service.assign_role(
            profile_id=profile_id,
            role_id=payload.get("role_id"),
            actor_id=g.current_user.id,
            ip_address=request.remote_addr,
        )
        return jsonify({"data": profile.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except PermissionDeniedError as e:
        return jsonify({"error": str(e)}), 403
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@users_bp.post("/<int:profile_id>/impersonate")
@require_auth
@require_admin
def impersonate_route(profile_id: int):
    """
    Sign in as another user.

    SECURITY: the new session records the admin; the admin's own session
    stays valid so the client can switch back.
    """
    try:
        target, token = user_service.start_impersonation(
            admin=g.current_user,
            profile_id=profile_id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
        current_app.logger.info("Admin %s impersonating profile %s", g.current_user.id, target.id)
        body = _session_body(target, token, "Impersonation started")
        body["impersonation"] = {
            "isImpersonating": True,
            "adminId": g.current_user.id,
            "adminUsername": g.current_user.username,
        }
        return jsonify(body), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except PermissionDeniedError as e:
        return jsonify({"error": str(e)}), 403
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to impersonate user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.post("/<int:admin_id>/restore-admin")
@require_auth
def restore_admin_route(admin_id: int):
    """
    End impersonation.

    Must be called with the impersonation token; <admin_id> is the admin
    who started it. Returns a fresh admin token.
    """
    try:
        admin, token = user_service.restore_admin(
            context=g.session_context,
            admin_id=admin_id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
        return jsonify(_session_body(admin, token, "Admin session restored")), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except PermissionDeniedError as e:
        return jsonify({"error": str(e)}), 403
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to restore admin session")
        return jsonify({"error": "Internal server error"}), 500


@audit_bp.get("")
@require_auth
@require_permission("user_management.activity_logs")
def list_audit_logs_route():
    """
    Paginated audit entries, newest first.

    Query params: page, limit (default 50, max 200), action, actorId
    """
    result = audit_service.list_audit_logs(
        page=request.args.get("page", 1, type=int),
        limit=request.args.get("limit", 50, type=int),
        action=request.args.get("action") or None,
        actor_id=request.args.get("actorId", type=int),
    )
    return jsonify(result), 200
