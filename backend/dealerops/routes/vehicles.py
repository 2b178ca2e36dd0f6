# Overview: Flask API routes for vehicle inventory operations; parses input and returns JSON responses.

# backend/dealerops/routes/vehicles.py
"""
Vehicle inventory routes.

SECURITY: All routes require authentication.
- Listing and reading require inventory.view
- Creating requires inventory.add
- Editing and deleting are admin-only
- The Sold page list requires sold.view
"""
from flask import Blueprint, request, g, jsonify, current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..services import vehicle_service
from ..validation import ValidationError, NotFoundError, describe_integrity_error
from ..decorators import require_auth, require_admin, require_permission

vehicles_bp = Blueprint("vehicles", __name__, url_prefix="/api/vehicles")


@vehicles_bp.get("")
@require_auth
@require_permission("inventory.view")
def list_vehicles_route():
    """
    Paginated vehicle list, newest first.

    Query params:
    - page: int (default 1)
    - limit: int (default 10)
    - status, make, model, year: exact filters
    - search: case-insensitive match on make, model or VIN
    """
    try:
        result = vehicle_service.list_vehicles(
            page=request.args.get("page", 1, type=int),
            limit=request.args.get("limit", vehicle_service.DEFAULT_PAGE_LIMIT, type=int),
            status=request.args.get("status") or None,
            make=request.args.get("make") or None,
            model=request.args.get("model") or None,
            year=request.args.get("year", type=int),
            search=request.args.get("search") or None,
        )
        return jsonify(result), 200
    except Exception:
        current_app.logger.exception("Failed to list vehicles")
        return jsonify({"error": "Internal server error"}), 500


@vehicles_bp.post("")
@require_auth
@require_permission("inventory.add")
def create_vehicle_route():
    payload = request.get_json(silent=True) or {}
    try:
        vehicle = vehicle_service.create_vehicle(payload=payload, created_by=g.current_user.id)
        return jsonify({"data": vehicle.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except IntegrityError as e:
        # VIN raced past the pre-insert check
        db.session.rollback()
        message, code = describe_integrity_error(e)
        return jsonify({"error": message, "code": code}), 400
    except Exception:
        current_app.logger.exception("Failed to create vehicle")
        return jsonify({"error": "Internal server error"}), 500


@vehicles_bp.get("/sold")
@require_auth
@require_permission("sold.view")
def list_sold_route():
    """
    Vehicles on the Sold page with cost and profit columns.

    Query params: status (one of the sold-section statuses), search.
    """
    try:
        rows = vehicle_service.list_sold_vehicles(
            status=request.args.get("status") or None,
            search=request.args.get("search") or None,
        )
        return jsonify({"data": rows}), 200
    except Exception:
        current_app.logger.exception("Failed to list sold vehicles")
        return jsonify({"error": "Internal server error"}), 500


@vehicles_bp.get("/<int:vehicle_id>")
@require_auth
@require_permission("inventory.view")
def get_vehicle_route(vehicle_id: int):
    try:
        vehicle = vehicle_service.get_vehicle(vehicle_id)
        return jsonify({"data": vehicle.to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@vehicles_bp.patch("/<int:vehicle_id>")
@require_auth
@require_admin
def update_vehicle_route(vehicle_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        vehicle = vehicle_service.update_vehicle(vehicle_id=vehicle_id, payload=payload)
        return jsonify({"data": vehicle.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except IntegrityError as e:
        db.session.rollback()
        message, code = describe_integrity_error(e)
        return jsonify({"error": message, "code": code}), 400
    except Exception:
        current_app.logger.exception("Failed to update vehicle")
        return jsonify({"error": "Internal server error"}), 500


@vehicles_bp.delete("/<int:vehicle_id>")
@require_auth
@require_admin
def delete_vehicle_route(vehicle_id: int):
    """Hard delete with all dependent records and stored images."""
    try:
        vehicle_service.delete_vehicle(vehicle_id=vehicle_id)
        return jsonify({"message": "Vehicle deleted successfully"}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete vehicle")
        return jsonify({"error": "Internal server error"}), 500
