# Overview: Flask API routes for vehicle sub-records; parses input and returns JSON responses.

# backend/dealerops/routes/vehicle_records.py
"""
Per-vehicle sub-record routes: expenses, notes, images, dispatch,
assessments and the timeline.

SECURITY: All routes require authentication.
- Expenses require accounting.expenses_section
- Notes and assessments require inventory.condition_notes
- Images require inventory.upload_photos
- Dispatch requires transportation.transport_assignment
- Reading the timeline requires inventory.view, adding to it inventory.edit
"""
from flask import Blueprint, request, g, jsonify, current_app

from ..services import vehicle_records_service as records
from ..services import timeline_service
from ..services.storage_service import StorageError
from ..validation import ValidationError, NotFoundError
from ..decorators import require_auth, require_permission

records_bp = Blueprint("vehicle_records", __name__, url_prefix="/api/vehicles")


def _server_error(action: str):
    current_app.logger.exception("Failed to %s", action)
    return jsonify({"error": "Internal server error"}), 500


# -- Expenses --

@records_bp.get("/<int:vehicle_id>/expenses")
@require_auth
@require_permission("accounting.expenses_section")
def list_expenses_route(vehicle_id: int):
    try:
        rows = records.list_expenses(vehicle_id=vehicle_id)
        return jsonify({"data": [r.to_dict() for r in rows]}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@records_bp.post("/<int:vehicle_id>/expenses")
@require_auth
@require_permission("accounting.expenses_section")
def create_expense_route(vehicle_id: int):
    """Body: {expense_description, expense_date, cost, notes?}"""
    payload = request.get_json(silent=True) or {}
    try:
        expense = records.create_expense(vehicle_id=vehicle_id, payload=payload, created_by=g.current_user.id)
        return jsonify({"data": expense.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        return _server_error("create expense")


@records_bp.patch("/<int:vehicle_id>/expenses/<int:expense_id>")
@require_auth
@require_permission("accounting.expenses_section")
def update_expense_route(vehicle_id: int, expense_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        expense = records.update_expense(vehicle_id=vehicle_id, expense_id=expense_id, payload=payload)
        return jsonify({"data": expense.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        return _server_error("update expense")


@records_bp.delete("/<int:vehicle_id>/expenses/<int:expense_id>")
@require_auth
@require_permission("accounting.expenses_section")
def delete_expense_route(vehicle_id: int, expense_id: int):
    try:
        records.delete_expense(vehicle_id=vehicle_id, expense_id=expense_id)
        return jsonify({"success": True}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


# -- Notes --

@records_bp.get("/<int:vehicle_id>/notes")
@require_auth
@require_permission("inventory.condition_notes")
def list_notes_route(vehicle_id: int):
    try:
        rows = records.list_notes(vehicle_id=vehicle_id)
        return jsonify({"data": [r.to_dict() for r in rows]}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@records_bp.post("/<int:vehicle_id>/notes")
@require_auth
@require_permission("inventory.condition_notes")
def create_note_route(vehicle_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        note = records.create_note(vehicle_id=vehicle_id, payload=payload, created_by=g.current_user.id)
        return jsonify({"data": note.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        return _server_error("create note")


@records_bp.patch("/<int:vehicle_id>/notes/<int:note_id>")
@require_auth
@require_permission("inventory.condition_notes")
def update_note_route(vehicle_id: int, note_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        note = records.update_note(vehicle_id=vehicle_id, note_id=note_id, payload=payload)
        return jsonify({"data": note.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@records_bp.delete("/<int:vehicle_id>/notes/<int:note_id>")
@require_auth
@require_permission("inventory.condition_notes")
def delete_note_route(vehicle_id: int, note_id: int):
    try:
        records.delete_note(vehicle_id=vehicle_id, note_id=note_id)
        return jsonify({"success": True}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


# -- Images --

@records_bp.get("/<int:vehicle_id>/images")
@require_auth
@require_permission("inventory.upload_photos")
def list_images_route(vehicle_id: int):
    try:
        rows = records.list_images(vehicle_id=vehicle_id)
        return jsonify({"data": [r.to_dict() for r in rows]}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@records_bp.post("/<int:vehicle_id>/images")
@require_auth
@require_permission("inventory.upload_photos")
def upload_image_route(vehicle_id: int):
    """
    Upload one image as multipart/form-data.

    Form field: file (JPEG, PNG or PDF, max 10MB)
    """
    try:
        image = records.upload_image(
            vehicle_id=vehicle_id,
            file=request.files.get("file"),
            uploaded_by=g.current_user.id,
        )
        return jsonify({"data": image.to_dict()}), 201
    except StorageError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        return _server_error("upload image")


@records_bp.delete("/<int:vehicle_id>/images/<int:image_id>")
@require_auth
@require_permission("inventory.upload_photos")
def delete_image_route(vehicle_id: int, image_id: int):
    try:
        records.delete_image(vehicle_id=vehicle_id, image_id=image_id)
        return jsonify({"success": True}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


# -- Dispatch --

@records_bp.get("/<int:vehicle_id>/dispatch")
@require_auth
@require_permission("transportation.transport_assignment")
def list_dispatch_route(vehicle_id: int):
    try:
        rows = records.list_dispatches(vehicle_id=vehicle_id)
        return jsonify({"data": [r.to_dict() for r in rows]}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@records_bp.post("/<int:vehicle_id>/dispatch")
@require_auth
@require_permission("transportation.transport_assignment")
def create_dispatch_route(vehicle_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        dispatch = records.create_dispatch(vehicle_id=vehicle_id, payload=payload, created_by=g.current_user.id)
        return jsonify({"data": dispatch.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        return _server_error("create dispatch")


@records_bp.post("/<int:vehicle_id>/dispatch/upload")
@require_auth
@require_permission("transportation.transport_assignment")
def upload_dispatch_document_route(vehicle_id: int):
    """Store a dispatch document and return {file_url, file_name}."""
    try:
        stored = records.upload_dispatch_document(vehicle_id=vehicle_id, file=request.files.get("file"))
        return jsonify({"data": stored}), 201
    except StorageError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@records_bp.patch("/<int:vehicle_id>/dispatch/<int:dispatch_id>")
@require_auth
@require_permission("transportation.transport_assignment")
def update_dispatch_route(vehicle_id: int, dispatch_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        dispatch = records.update_dispatch(vehicle_id=vehicle_id, dispatch_id=dispatch_id, payload=payload)
        return jsonify({"data": dispatch.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@records_bp.delete("/<int:vehicle_id>/dispatch/<int:dispatch_id>")
@require_auth
@require_permission("transportation.transport_assignment")
def delete_dispatch_route(vehicle_id: int, dispatch_id: int):
    try:
        records.delete_dispatch(vehicle_id=vehicle_id, dispatch_id=dispatch_id)
        return jsonify({"success": True}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


# -- Assessments --

@records_bp.get("/<int:vehicle_id>/assessments")
@require_auth
@require_permission("inventory.condition_notes")
def list_assessments_route(vehicle_id: int):
    try:
        rows = records.list_assessments(vehicle_id=vehicle_id)
        return jsonify({"data": [r.to_dict() for r in rows]}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@records_bp.post("/<int:vehicle_id>/assessments")
@require_auth
@require_permission("inventory.condition_notes")
def create_assessment_route(vehicle_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        assessment = records.create_assessment(vehicle_id=vehicle_id, payload=payload, created_by=g.current_user.id)
        return jsonify({"data": assessment.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        return _server_error("create assessment")


@records_bp.patch("/<int:vehicle_id>/assessments/<int:assessment_id>")
@require_auth
@require_permission("inventory.condition_notes")
def update_assessment_route(vehicle_id: int, assessment_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        assessment = records.update_assessment(
            vehicle_id=vehicle_id, assessment_id=assessment_id, payload=payload
        )
        return jsonify({"data": assessment.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@records_bp.delete("/<int:vehicle_id>/assessments/<int:assessment_id>")
@require_auth
@require_permission("inventory.condition_notes")
def delete_assessment_route(vehicle_id: int, assessment_id: int):
    try:
        records.delete_assessment(vehicle_id=vehicle_id, assessment_id=assessment_id)
        return jsonify({"success": True}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


# -- Timeline --

@records_bp.get("/<int:vehicle_id>/timeline")
@require_auth
@require_permission("inventory.view")
def list_timeline_route(vehicle_id: int):
    """
    Timeline entries, newest first.

    Query params: page (default 1), limit (default 15).
    """
    result = timeline_service.list_entries(
        vehicle_id=vehicle_id,
        page=request.args.get("page", 1, type=int),
        limit=request.args.get("limit", timeline_service.DEFAULT_TIMELINE_LIMIT, type=int),
    )
    return jsonify(result), 200


@records_bp.post("/<int:vehicle_id>/timeline")
@require_auth
@require_permission("inventory.edit")
def create_timeline_route(vehicle_id: int):
    """
    Append a timeline entry.

    Returns 201 for a new entry, 200 when an identical entry already exists.
    """
    payload = request.get_json(silent=True) or {}
    try:
        entry, created = timeline_service.record_entry(
            vehicle_id=vehicle_id, payload=payload, user_id=g.current_user.id
        )
        return jsonify({"data": entry.to_dict()}), (201 if created else 200)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        return _server_error("create timeline entry")
