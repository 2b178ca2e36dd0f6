# Overview: Flask API routes for tasks, calendar events and direct messages; parses input and returns JSON responses.

# backend/dealerops/routes/communications.py
"""
Tasks, events and messages.

SECURITY: All routes require authentication; no module permission is
needed. Messages are always scoped to the caller.
"""
from flask import Blueprint, request, g, jsonify, current_app

from ..services import communications_service as comms
from ..validation import ValidationError, NotFoundError
from ..decorators import require_auth

tasks_bp = Blueprint("tasks", __name__, url_prefix="/api/tasks")
events_bp = Blueprint("events", __name__, url_prefix="/api/events")
messages_bp = Blueprint("messages", __name__, url_prefix="/api/messages")


# -- Tasks --

@tasks_bp.get("")
@require_auth
def list_tasks_route():
    """
    Query params: page, limit (default 10), status, category, assignedTo,
    vehicleId, search
    """
    try:
        result = comms.list_tasks(
            page=request.args.get("page", 1, type=int),
            limit=request.args.get("limit", comms.DEFAULT_PAGE_LIMIT, type=int),
            status=request.args.get("status") or None,
            category=request.args.get("category") or None,
            assigned_to=request.args.get("assignedTo", type=int),
            vehicle_id=request.args.get("vehicleId", type=int),
            search=request.args.get("search") or None,
        )
        return jsonify(result), 200
    except Exception:
        current_app.logger.exception("Failed to list tasks")
        return jsonify({"error": "Internal server error"}), 500


@tasks_bp.post("")
@require_auth
def create_task_route():
    payload = request.get_json(silent=True) or {}
    try:
        task = comms.create_task(payload=payload, assigned_by=g.current_user.id)
        return jsonify({"data": task.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create task")
        return jsonify({"error": "Internal server error"}), 500


@tasks_bp.patch("/bulk")
@require_auth
def bulk_update_tasks_route():
    """Body: {taskIds: [int], updates: {...}}"""
    payload = request.get_json(silent=True) or {}
    try:
        tasks = comms.bulk_update_tasks(
            task_ids=payload.get("taskIds", payload.get("task_ids")),
            updates=payload.get("updates"),
        )
        return jsonify({
            "data": [t.to_dict() for t in tasks],
            "message": f"{len(tasks)} task(s) updated successfully",
            "count": len(tasks),
        }), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@tasks_bp.get("/<int:task_id>")
@require_auth
def get_task_route(task_id: int):
    try:
        return jsonify({"data": comms.get_task(task_id).to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@tasks_bp.patch("/<int:task_id>")
@require_auth
def update_task_route(task_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        task = comms.update_task(task_id=task_id, payload=payload)
        return jsonify({"data": task.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@tasks_bp.delete("/<int:task_id>")
@require_auth
def delete_task_route(task_id: int):
    try:
        comms.delete_task(task_id=task_id)
        return jsonify({"message": "Task deleted successfully"}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


# -- Events --

@events_bp.get("")
@require_auth
def list_events_route():
    """
    Events ordered by date and time ascending.

    Query params: page, limit (default 10), status, assignedTo, dateFrom,
    dateTo, search
    """
    try:
        result = comms.list_events(
            page=request.args.get("page", 1, type=int),
            limit=request.args.get("limit", comms.DEFAULT_PAGE_LIMIT, type=int),
            status=request.args.get("status") or None,
            assigned_to=request.args.get("assignedTo", type=int),
            date_from=request.args.get("dateFrom") or None,
            date_to=request.args.get("dateTo") or None,
            search=request.args.get("search") or None,
        )
        return jsonify(result), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@events_bp.post("")
@require_auth
def create_event_route():
    payload = request.get_json(silent=True) or {}
    try:
        event = comms.create_event(payload=payload, created_by=g.current_user.id)
        return jsonify({"data": event.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create event")
        return jsonify({"error": "Internal server error"}), 500


@events_bp.get("/<int:event_id>")
@require_auth
def get_event_route(event_id: int):
    try:
        return jsonify({"data": comms.get_event(event_id).to_dict()}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@events_bp.patch("/<int:event_id>")
@require_auth
def update_event_route(event_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        event = comms.update_event(event_id=event_id, payload=payload)
        return jsonify({"data": event.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@events_bp.delete("/<int:event_id>")
@require_auth
def delete_event_route(event_id: int):
    try:
        comms.delete_event(event_id=event_id)
        return jsonify({"message": "Event deleted successfully"}), 200
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


# -- Messages --

@messages_bp.get("")
@require_auth
def list_messages_route():
    """
    Conversation between the caller and receiverId, oldest first.

    Query params: receiverId (required), page, limit (default 50)
    """
    try:
        result = comms.list_conversation(
            profile_id=g.current_user.id,
            other_id=request.args.get("receiverId"),
            page=request.args.get("page", 1, type=int),
            limit=request.args.get("limit", comms.DEFAULT_MESSAGE_LIMIT, type=int),
        )
        return jsonify(result), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@messages_bp.post("")
@require_auth
def send_message_route():
    """Body: {receiver_id, content}"""
    payload = request.get_json(silent=True) or {}
    try:
        message = comms.send_message(sender_id=g.current_user.id, payload=payload)
        return jsonify({"data": message.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to send message")
        return jsonify({"error": "Internal server error"}), 500


@messages_bp.patch("/read")
@require_auth
def mark_read_route():
    """Body: {sender_id} - marks that sender's messages to the caller as read."""
    payload = request.get_json(silent=True) or {}
    try:
        count = comms.mark_conversation_read(
            profile_id=g.current_user.id,
            sender_id=payload.get("sender_id", payload.get("senderId")),
        )
        return jsonify({"message": "Messages marked as read", "count": count}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@messages_bp.get("/unread-count")
@require_auth
def unread_count_route():
    return jsonify({"data": comms.unread_counts(profile_id=g.current_user.id)}), 200
