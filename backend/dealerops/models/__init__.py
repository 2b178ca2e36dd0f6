from .auth import Profile, Role, SessionToken, AuditLog
from .vehicles import (
    Vehicle, ArbRecord, VehicleExpense, VehicleNote, VehicleImage,
    VehicleDispatch, VehicleAssessment, TimelineEntry,
    VehicleStatus, ArbType, ArbOutcome, MISSING_TITLE_STATUSES,
)
from .communications import Task, Event, Message, TaskStatus, TaskCategory, EventStatus
from .settings import DropdownSetting

__all__ = [
    'Profile', 'Role', 'SessionToken', 'AuditLog',
    'Vehicle', 'ArbRecord', 'VehicleExpense', 'VehicleNote', 'VehicleImage',
    'VehicleDispatch', 'VehicleAssessment', 'TimelineEntry',
    'VehicleStatus', 'ArbType', 'ArbOutcome', 'MISSING_TITLE_STATUSES',
    'Task', 'Event', 'Message', 'TaskStatus', 'TaskCategory', 'EventStatus',
    'DropdownSetting',
]
