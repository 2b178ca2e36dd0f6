from __future__ import annotations

from ..extensions import db
from dealerops.time_utils import to_iso_date, to_utc_z, utcnow


class TaskStatus:
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    ALL = (PENDING, COMPLETED, CANCELLED)


class TaskCategory:
    MISSING_TITLE = "missing_title"
    FILE_ARB = "file_arb"
    LOCATION = "location"
    GENERAL = "general"

    ALL = (MISSING_TITLE, FILE_ARB, LOCATION, GENERAL)


class EventStatus:
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    ALL = (SCHEDULED, COMPLETED, CANCELLED)


class Task(db.Model):
    """
    Assignable work item, optionally tied to a vehicle.

    completed_at is stamped when status moves to completed and cleared
    when it moves away again.
    """
    __tablename__ = "tasks"
    __table_args__ = (
        db.Index("ix_tasks_assignee_status", "assigned_to", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    task_name = db.Column(db.String(255), nullable=False)
    vehicle_id = db.Column(db.Integer, db.ForeignKey("vehicles.id", ondelete="SET NULL"), nullable=True, index=True)
    due_date = db.Column(db.Date, nullable=False)
    notes = db.Column(db.Text, nullable=True)
    category = db.Column(db.String(32), nullable=False, default=TaskCategory.GENERAL)
    status = db.Column(db.String(16), nullable=False, default=TaskStatus.PENDING, index=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    assigned_to = db.Column(db.Integer, db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    assigned_by = db.Column(db.Integer, db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now(), onupdate=utcnow)

    vehicle = db.relationship("Vehicle")
    assignee = db.relationship("Profile", foreign_keys=[assigned_to])
    assigner = db.relationship("Profile", foreign_keys=[assigned_by])

    def to_dict(self):
        return {
            "id": self.id,
            "task_name": self.task_name,
            "vehicle_id": self.vehicle_id,
            "vehicle": (
                {"id": self.vehicle.id, "vin": self.vehicle.vin, "label": self.vehicle.label}
                if self.vehicle else None
            ),
            "due_date": to_iso_date(self.due_date),
            "notes": self.notes,
            "category": self.category,
            "status": self.status,
            "completed_at": to_utc_z(self.completed_at),
            "assigned_to": self.assigned_to,
            "assigned_to_user": self.assignee.to_summary() if self.assignee else None,
            "assigned_by": self.assigned_by,
            "assigned_by_user": self.assigner.to_summary() if self.assigner else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Event(db.Model):
    """Calendar entry (auction day, pickup appointment, meeting)."""
    __tablename__ = "events"
    __table_args__ = (
        db.Index("ix_events_date_time", "event_date", "event_time"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    event_date = db.Column(db.Date, nullable=False)
    event_time = db.Column(db.String(8), nullable=False)
    location = db.Column(db.String(255), nullable=True)
    status = db.Column(db.String(16), nullable=False, default=EventStatus.SCHEDULED, index=True)

    assigned_to = db.Column(db.Integer, db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)
    created_by = db.Column(db.Integer, db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now(), onupdate=utcnow)

    assignee = db.relationship("Profile", foreign_keys=[assigned_to])
    creator = db.relationship("Profile", foreign_keys=[created_by])

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "event_date": to_iso_date(self.event_date),
            "event_time": self.event_time,
            "location": self.location,
            "status": self.status,
            "assigned_to": self.assigned_to,
            "assigned_to_user": self.assignee.to_summary() if self.assignee else None,
            "created_by": self.created_by,
            "created_by_user": self.creator.to_summary() if self.creator else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Message(db.Model):
    """Directed chat message between two profiles."""
    __tablename__ = "messages"
    __table_args__ = (
        db.Index("ix_messages_pair_created", "sender_id", "receiver_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sender_id = db.Column(db.Integer, db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    receiver_id = db.Column(db.Integer, db.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    content = db.Column(db.Text, nullable=False)
    is_read = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "sender_id": self.sender_id,
            "receiver_id": self.receiver_id,
            "content": self.content,
            "is_read": self.is_read,
            "created_at": to_utc_z(self.created_at),
        }
