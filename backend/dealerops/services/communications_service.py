# Overview: Service-layer operations for communications; encapsulates tasks, events and direct messages.

from __future__ import annotations

from sqlalchemy import and_, or_

from ..extensions import db
from ..models import Event, EventStatus, Message, Profile, Task, TaskCategory, TaskStatus, Vehicle
from ..validation import ModelValidationPolicy, NotFoundError, ValidationError, validate_payload
from ..time_utils import parse_iso_date, utcnow


DEFAULT_PAGE_LIMIT = 10
DEFAULT_MESSAGE_LIMIT = 50
MAX_PAGE_LIMIT = 200

TASK_POLICY = ModelValidationPolicy(
    writable_fields={"task_name", "vehicle_id", "due_date", "notes", "category", "status", "assigned_to"},
    aliases={"taskName": "task_name", "vehicleId": "vehicle_id", "dueDate": "due_date", "assignedTo": "assigned_to"},
)

EVENT_POLICY = ModelValidationPolicy(
    writable_fields={"title", "description", "event_date", "event_time", "location", "status", "assigned_to"},
    aliases={"eventDate": "event_date", "eventTime": "event_time", "assignedTo": "assigned_to"},
)


def _page_args(page: int | None, limit: int | None, default_limit: int) -> tuple[int, int]:
    page = max(page or 1, 1)
    limit = min(max(limit or default_limit, 1), MAX_PAGE_LIMIT)
    return page, limit


def _paginate(query, *, page: int, limit: int, order_by) -> dict:
    total = query.count()
    rows = query.order_by(*order_by).offset((page - 1) * limit).limit(limit).all()
    return {
        "data": [r.to_dict() for r in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit,
        },
    }


def _check_profile(profile_id: int | None, field: str) -> None:
    if profile_id is not None and db.session.get(Profile, profile_id) is None:
        raise ValidationError(f"{field} does not reference an existing user")


# -- Tasks --

def _task_patch(payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=Task, payload=payload, policy=TASK_POLICY, partial=partial)
    if "category" in patch and patch["category"] not in TaskCategory.ALL:
        raise ValidationError(f"category must be one of: {', '.join(TaskCategory.ALL)}")
    if "status" in patch and patch["status"] not in TaskStatus.ALL:
        raise ValidationError(f"status must be one of: {', '.join(TaskStatus.ALL)}")
    if patch.get("vehicle_id") is not None and db.session.get(Vehicle, patch["vehicle_id"]) is None:
        raise ValidationError("vehicle_id does not reference an existing vehicle")
    _check_profile(patch.get("assigned_to"), "assigned_to")
    return patch


def _apply_task_patch(task: Task, patch: dict) -> None:
    previous = task.status
    for k, v in patch.items():
        setattr(task, k, v)
    if task.status == TaskStatus.COMPLETED and previous != TaskStatus.COMPLETED:
        task.completed_at = utcnow()
    elif task.status != TaskStatus.COMPLETED:
        task.completed_at = None


def get_task(task_id: int) -> Task:
    task = db.session.get(Task, task_id)
    if not task:
        raise NotFoundError("Task not found")
    return task


def list_tasks(
    *,
    page: int = 1,
    limit: int = DEFAULT_PAGE_LIMIT,
    status: str | None = None,
    category: str | None = None,
    assigned_to: int | None = None,
    vehicle_id: int | None = None,
    search: str | None = None,
) -> dict:
    page, limit = _page_args(page, limit, DEFAULT_PAGE_LIMIT)
    query = db.session.query(Task)
    if status:
        query = query.filter(Task.status == status)
    if category:
        query = query.filter(Task.category == category)
    if assigned_to:
        query = query.filter(Task.assigned_to == assigned_to)
    if vehicle_id:
        query = query.filter(Task.vehicle_id == vehicle_id)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Task.task_name.ilike(pattern), Task.notes.ilike(pattern)))
    return _paginate(query, page=page, limit=limit, order_by=(Task.created_at.desc(), Task.id.desc()))


def create_task(*, payload: dict, assigned_by: int | None) -> Task:
    task_name = payload.get("task_name", payload.get("taskName"))
    due_date = payload.get("due_date", payload.get("dueDate"))
    if not (task_name or "").strip() or not due_date:
        raise ValidationError("Task name and due date are required")

    patch = _task_patch(payload, partial=False)
    task = Task(assigned_by=assigned_by)
    task.category = TaskCategory.GENERAL
    task.status = TaskStatus.PENDING
    _apply_task_patch(task, patch)

    db.session.add(task)
    db.session.commit()
    return task


def update_task(*, task_id: int, payload: dict) -> Task:
    task = get_task(task_id)
    patch = _task_patch(payload, partial=True)
    _apply_task_patch(task, patch)
    db.session.commit()
    return task


def delete_task(*, task_id: int) -> None:
    task = get_task(task_id)
    db.session.delete(task)
    db.session.commit()


def bulk_update_tasks(*, task_ids, updates) -> list[Task]:
    """
    Apply one patch to many tasks in a single transaction.

    Unknown ids are skipped; the returned list holds the tasks updated.
    """
    if not isinstance(task_ids, list) or not task_ids:
        raise ValidationError("Task IDs array is required")
    if not isinstance(updates, dict) or not updates:
        raise ValidationError("Updates object is required")
    try:
        ids = [int(i) for i in task_ids]
    except (TypeError, ValueError):
        raise ValidationError("Task IDs must be integers")

    patch = _task_patch(updates, partial=True)
    tasks = db.session.query(Task).filter(Task.id.in_(ids)).order_by(Task.id.asc()).all()
    for task in tasks:
        _apply_task_patch(task, patch)
    db.session.commit()
    return tasks


# -- Events --

def _event_patch(payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=Event, payload=payload, policy=EVENT_POLICY, partial=partial)
    if "status" in patch and patch["status"] not in EventStatus.ALL:
        raise ValidationError(f"status must be one of: {', '.join(EventStatus.ALL)}")
    _check_profile(patch.get("assigned_to"), "assigned_to")
    return patch


def get_event(event_id: int) -> Event:
    event = db.session.get(Event, event_id)
    if not event:
        raise NotFoundError("Event not found")
    return event


def list_events(
    *,
    page: int = 1,
    limit: int = DEFAULT_PAGE_LIMIT,
    status: str | None = None,
    assigned_to: int | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    search: str | None = None,
) -> dict:
    page, limit = _page_args(page, limit, DEFAULT_PAGE_LIMIT)
    try:
        start = parse_iso_date(date_from)
        end = parse_iso_date(date_to)
    except ValueError:
        raise ValidationError("dateFrom and dateTo must be dates (YYYY-MM-DD)")

    query = db.session.query(Event)
    if status:
        query = query.filter(Event.status == status)
    if assigned_to:
        query = query.filter(Event.assigned_to == assigned_to)
    if start:
        query = query.filter(Event.event_date >= start)
    if end:
        query = query.filter(Event.event_date <= end)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Event.title.ilike(pattern), Event.description.ilike(pattern)))
    return _paginate(
        query, page=page, limit=limit,
        order_by=(Event.event_date.asc(), Event.event_time.asc(), Event.id.asc()),
    )


def create_event(*, payload: dict, created_by: int | None) -> Event:
    title = payload.get("title")
    event_date = payload.get("event_date", payload.get("eventDate"))
    event_time = payload.get("event_time", payload.get("eventTime"))
    if not (title or "").strip() or not event_date or not event_time:
        raise ValidationError("Title, event date, and event time are required")

    patch = _event_patch(payload, partial=False)
    event = Event(created_by=created_by, **patch)
    if not event.status:
        event.status = EventStatus.SCHEDULED
    db.session.add(event)
    db.session.commit()
    return event


def update_event(*, event_id: int, payload: dict) -> Event:
    event = get_event(event_id)
    patch = _event_patch(payload, partial=True)
    for k, v in patch.items():
        setattr(event, k, v)
    db.session.commit()
    return event


def delete_event(*, event_id: int) -> None:
    event = get_event(event_id)
    db.session.delete(event)
    db.session.commit()


# -- Messages --

def _conversation(profile_id: int, other_id: int):
    return db.session.query(Message).filter(or_(
        and_(Message.sender_id == profile_id, Message.receiver_id == other_id),
        and_(Message.sender_id == other_id, Message.receiver_id == profile_id),
    ))


def list_conversation(*, profile_id: int, other_id, page: int = 1, limit: int = DEFAULT_MESSAGE_LIMIT) -> dict:
    """
    Two-way conversation between the caller and other_id.

    Page 1 holds the newest `limit` messages; each page is returned oldest
    first so it renders top-to-bottom.
    """
    if not other_id:
        raise ValidationError("Receiver ID is required")
    try:
        other_id = int(other_id)
    except (TypeError, ValueError):
        raise ValidationError("Receiver ID must be an integer")
    page, limit = _page_args(page, limit, DEFAULT_MESSAGE_LIMIT)

    query = _conversation(profile_id, other_id)
    total = query.count()
    rows = (
        query.order_by(Message.created_at.desc(), Message.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    rows.reverse()
    return {
        "data": [m.to_dict() for m in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit,
        },
    }


def send_message(*, sender_id: int, payload: dict) -> Message:
    receiver_id = payload.get("receiver_id", payload.get("receiverId"))
    content = (payload.get("content") or "").strip()
    if not receiver_id or not content:
        raise ValidationError("Receiver ID and content are required")
    try:
        receiver_id = int(receiver_id)
    except (TypeError, ValueError):
        raise ValidationError("Receiver ID must be an integer")
    if db.session.get(Profile, receiver_id) is None:
        raise NotFoundError("Receiver not found")

    message = Message(sender_id=sender_id, receiver_id=receiver_id, content=content, is_read=False)
    db.session.add(message)
    db.session.commit()
    return message


def mark_conversation_read(*, profile_id: int, sender_id) -> int:
    """Mark every unread message from sender_id to the caller as read."""
    if not sender_id:
        raise ValidationError("Sender ID is required")
    try:
        sender_id = int(sender_id)
    except (TypeError, ValueError):
        raise ValidationError("Sender ID must be an integer")

    updated = db.session.query(Message).filter(
        Message.sender_id == sender_id,
        Message.receiver_id == profile_id,
        Message.is_read.is_(False),
    ).update({Message.is_read: True}, synchronize_session=False)
    db.session.commit()
    return updated


def unread_counts(*, profile_id: int) -> dict:
    """Unread messages for the caller: total plus a per-sender breakdown."""
    rows = (
        db.session.query(Message.sender_id, db.func.count(Message.id))
        .filter(Message.receiver_id == profile_id, Message.is_read.is_(False))
        .group_by(Message.sender_id)
        .all()
    )
    by_sender = {str(sender): int(count) for sender, count in rows}
    return {"total": sum(by_sender.values()), "bySender": by_sender}
