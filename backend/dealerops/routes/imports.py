# Overview: Flask API routes for vehicle import operations; parses input and returns JSON responses.

# backend/dealerops/routes/imports.py
from flask import Blueprint, request, g, jsonify, current_app

from ..services import import_service
from ..services.import_service import VehicleImportError
from ..decorators import require_auth, require_admin

imports_bp = Blueprint("imports", __name__, url_prefix="/api/vehicles")


def _failure(message: str):
    return jsonify({"success": False, "imported": 0, "errors": [message], "vehicles": []}), 400


@imports_bp.post("/import")
@require_auth
@require_admin
def import_vehicles_route():
    """
    Bulk import vehicles from an uploaded file.

    Form field: file (.csv, .xlsx, .xlsm or .pdf)

    Rows that fail validation are skipped and listed in "errors"; the rest
    are inserted with status Pending.
    """
    file = request.files.get("file")
    if file is None or not file.filename:
        return _failure("No file uploaded")

    try:
        result = import_service.import_upload(
            filename=file.filename,
            stream=file.stream,
            created_by=g.current_user.id,
        )
        current_app.logger.info(
            "Vehicle import %s: %s imported, %s errors",
            file.filename, result["imported"], len(result["errors"]),
        )
        return jsonify(result), 200
    except VehicleImportError as e:
        return _failure(str(e))
    except Exception:
        current_app.logger.exception("Failed to import vehicles")
        return jsonify({"error": "Internal server error"}), 500
