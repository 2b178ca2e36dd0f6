# backend/dealerops/routes/system.py
"""
System health, version and stored-file endpoints.

Stored files (vehicle images, dispatch documents) are served from
UPLOAD_FOLDER under /uploads/<bucket>/<path>, matching the URLs that
storage_service hands out.
"""

import os
import sys
import time

from flask import Blueprint, abort, current_app, send_file

from ..extensions import db
from ..models import Profile, Role, SessionToken
from ..services import storage_service
from dealerops.time_utils import utcnow

system_bp = Blueprint("system", __name__)

API_VERSION = "1.0.0"


def check_database_health() -> dict:
    """
    Check database connectivity with a few cheap counts.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        profile_count = db.session.query(Profile).count()
        role_count = db.session.query(Role).count()
        active_sessions = db.session.query(SessionToken).filter_by(is_revoked=False).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "profiles": profile_count,
                "roles": role_count,
                "active_sessions": active_sessions,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


@system_bp.get("/health")
def health():
    """
    Health check.

    Returns:
    - 200 {"status": "ok"} when the database answers
    - 503 {"status": "unhealthy"} otherwise
    """
    database_health = check_database_health()
    if database_health["status"] != "healthy":
        return {"status": "unhealthy", "checks": {"database": database_health}}, 503

    return {
        "status": "ok",
        "timestamp": utcnow().isoformat() + "Z",
        "checks": {"database": database_health},
    }


@system_bp.get("/api/system/version")
def version():
    """
    Version endpoint for deployment debugging.

    Does NOT expose secret keys, database credentials or internal paths.
    """
    env = "production" if not current_app.debug else "development"

    return {
        "api_version": API_VERSION,
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": utcnow().isoformat() + "Z",
    }


@system_bp.get("/uploads/<bucket>/<path:path>")
def serve_upload(bucket: str, path: str):
    """Serve a stored file. Unknown buckets and missing files are 404."""
    if bucket not in storage_service.BUCKETS:
        abort(404)
    full_path = storage_service.resolve_path(bucket, path)
    if not full_path or not os.path.isfile(full_path):
        abort(404)
    return send_file(full_path)
