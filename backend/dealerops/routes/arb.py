# Overview: Flask API routes for arbitration (ARB) operations; parses input and returns JSON responses.

# backend/dealerops/routes/arb.py
"""
Arbitration routes.

Initiating an ARB and resolving its outcome both run as single transactions
in arb_service; these handlers only translate errors.

SECURITY:
- initiate requires arb.create
- outcome requires arb.enter_outcomes
- history and the ARB list require arb.access
"""
from flask import Blueprint, request, g, jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..services import arb_service
from ..validation import ValidationError, NotFoundError
from ..decorators import require_auth, require_permission

arb_bp = Blueprint("arb", __name__)


@arb_bp.post("/api/vehicles/<int:vehicle_id>/arb/initiate")
@require_auth
@require_permission("arb.create")
def initiate_arb_route(vehicle_id: int):
    """
    Open a Pending ARB record.

    Body: {"arb_type": "Sold ARB" | "Inventory ARB", "notes": str?}
    """
    payload = request.get_json(silent=True) or {}
    try:
        record = arb_service.initiate_arb(
            vehicle_id=vehicle_id,
            arb_type=payload.get("arb_type"),
            notes=payload.get("notes"),
            created_by=g.current_user.id,
        )
        return jsonify({"data": record.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except SQLAlchemyError:
        current_app.logger.exception("Failed to initiate ARB")
        return jsonify({"error": "Failed to initiate ARB"}), 500


@arb_bp.post("/api/vehicles/<int:vehicle_id>/arb/outcome")
@require_auth
@require_permission("arb.enter_outcomes")
def resolve_arb_route(vehicle_id: int):
    """
    Resolve the most recent Pending ARB record of the given type.

    Body: {arb_type, outcome, adjustment_amount?, transport_type?,
    transport_location?, transport_date?, transport_cost?, notes?}
    """
    payload = request.get_json(silent=True) or {}
    try:
        record, vehicle = arb_service.resolve_arb(
            vehicle_id=vehicle_id,
            payload=payload,
            user_id=g.current_user.id,
        )
        return jsonify({"data": {"arb_record": record.to_dict(), "vehicle": vehicle.to_dict()}}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except SQLAlchemyError:
        current_app.logger.exception("Failed to process ARB outcome")
        return jsonify({"error": "Failed to process ARB outcome"}), 500


@arb_bp.get("/api/vehicles/<int:vehicle_id>/arb/history")
@require_auth
@require_permission("arb.access")
def arb_history_route(vehicle_id: int):
    try:
        return jsonify({"data": arb_service.vehicle_history(vehicle_id=vehicle_id)}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@arb_bp.get("/api/arb")
@require_auth
@require_permission("arb.access")
def list_arb_route():
    """
    All ARB records, newest first.

    Query params: arb_type, outcome.
    """
    try:
        rows = arb_service.list_records(
            arb_type=request.args.get("arb_type") or None,
            outcome=request.args.get("outcome") or None,
        )
        return jsonify({"data": rows}), 200
    except Exception:
        current_app.logger.exception("Failed to list ARB records")
        return jsonify({"error": "Internal server error"}), 500


@arb_bp.get("/api/arb/<int:arb_id>")
@require_auth
@require_permission("arb.access")
def get_arb_route(arb_id: int):
    try:
        record = arb_service.get_record(arb_id=arb_id)
        return jsonify({"data": record.to_dict(include_vehicle=True)}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
