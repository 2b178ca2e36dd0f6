# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/dealerops/routes/auth.py
"""
Authentication API routes

SECURITY FEATURES:
- bcrypt password verification
- Opaque bearer tokens, stored hashed, with idle and absolute timeouts
- Inactive profiles cannot log in
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..services import user_service
from ..permissions import effective_permissions, is_admin
from ..decorators import require_auth, bearer_token


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _auth_payload(profile, token: str | None = None, session=None) -> dict:
    body = {
        "user": profile.to_dict(),
        "permissions": effective_permissions(profile),
        "is_admin": is_admin(profile),
    }
    if token is not None:
        body["token"] = token
    if session is not None:
        body["session"] = session.to_dict()
    return body


@auth_bp.post("/login")
def login_route():
    """
    Authenticate a profile and create a session token.

    Accepts username or email plus password. The token must be sent as
    "Authorization: Bearer <token>" on protected routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        identifier = data.get("username") or data.get("email") or data.get("identifier")
        password = data.get("password")

        if not all([identifier, password]):
            return jsonify({"error": "username/email and password required"}), 400

        profile = auth_service.authenticate(identifier, password)
        if not profile:
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            profile.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        body = _auth_payload(profile, token=token, session=session)
        body["message"] = "Login successful"
        return jsonify(body), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke the current session token."""
    session_service.revoke_session(bearer_token(), reason="User logout")
    return jsonify({"message": "Logged out successfully"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current profile, effective permissions and impersonation state."""
    body = _auth_payload(g.current_user)
    body["impersonation"] = user_service.impersonation_state(g.session_context)
    return jsonify(body), 200


@auth_bp.post("/validate")
@require_auth
def validate_route():
    """Check that a token is still valid."""
    return jsonify({
        "valid": True,
        "user": g.current_user.to_dict(include_role=False),
    }), 200
