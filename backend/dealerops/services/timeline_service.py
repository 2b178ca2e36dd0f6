# Overview: Service-layer operations for the per-vehicle timeline.

from __future__ import annotations

from ..extensions import db
from ..models import TimelineEntry, Vehicle
from ..validation import NotFoundError, ValidationError, parse_money
from ..time_utils import current_time_str, parse_iso_date, today


DEFAULT_TIMELINE_LIMIT = 15


def add_entry(
    *,
    vehicle_id: int,
    action: str,
    user_id: int | None,
    note: str | None = None,
    status: str | None = None,
    cost: float | None = None,
    expense_value: float | None = None,
    action_date=None,
    action_time: str | None = None,
) -> TimelineEntry:
    """
    Append a timeline row to the current transaction (caller commits).

    action_date / action_time default to now.
    """
    entry = TimelineEntry(
        vehicle_id=vehicle_id,
        action=action,
        action_date=action_date or today(),
        action_time=action_time or current_time_str(),
        cost=cost,
        expense_value=expense_value,
        note=note,
        status=status,
        user_id=user_id,
    )
    db.session.add(entry)
    return entry


def list_entries(*, vehicle_id: int, page: int = 1, limit: int = DEFAULT_TIMELINE_LIMIT) -> dict:
    page = max(page or 1, 1)
    limit = max(limit or DEFAULT_TIMELINE_LIMIT, 1)

    query = db.session.query(TimelineEntry).filter(TimelineEntry.vehicle_id == vehicle_id)
    total = query.count()
    rows = (
        query.order_by(
            TimelineEntry.created_at.desc(),
            TimelineEntry.action_date.desc(),
            TimelineEntry.action_time.desc(),
            TimelineEntry.id.desc(),
        )
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "data": [r.to_dict() for r in rows],
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": (total + limit - 1) // limit,
    }


def record_entry(*, vehicle_id: int, payload: dict, user_id: int | None) -> tuple[TimelineEntry, bool]:
    """
    Create a timeline entry from a client payload.

    Payload keys: action (required), actionDate, actionTime, cost,
    expenseValue, note, status.

    Returns (entry, created). An identical (action, date, time, note) entry
    for the vehicle is returned as-is with created=False.
    """
    if db.session.get(Vehicle, vehicle_id) is None:
        raise NotFoundError("Vehicle not found")

    action = (payload.get("action") or "").strip()
    if not action:
        raise ValidationError("Action is required")

    try:
        action_date = parse_iso_date(payload.get("actionDate")) or today()
    except ValueError:
        raise ValidationError("actionDate must be a date (YYYY-MM-DD)")
    action_time = (payload.get("actionTime") or "").strip() or current_time_str()
    note = (payload.get("note") or "").strip() or None

    existing = db.session.query(TimelineEntry).filter(
        TimelineEntry.vehicle_id == vehicle_id,
        TimelineEntry.action == action,
        TimelineEntry.action_date == action_date,
        TimelineEntry.action_time == action_time,
        TimelineEntry.note.is_(None) if note is None else TimelineEntry.note == note,
    ).first()
    if existing:
        return existing, False

    entry = add_entry(
        vehicle_id=vehicle_id,
        action=action,
        user_id=user_id,
        note=note,
        status=payload.get("status") or None,
        cost=parse_money(payload.get("cost") or None, "cost"),
        expense_value=parse_money(payload.get("expenseValue") or None, "expenseValue"),
        action_date=action_date,
        action_time=action_time,
    )
    db.session.commit()
    return entry, True
