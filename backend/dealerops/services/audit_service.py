# Overview: Service-layer operations for the admin audit trail.

"""
Audit Logging

WHY: Immutable record of administrative actions (user edits, status
changes, impersonation, password resets) for accountability.

Entries are added to the caller's transaction; they commit together with
the change they describe.
"""

from __future__ import annotations

from ..extensions import db
from ..models import AuditLog


def log_action(
    *,
    actor_id: int | None,
    action: str,
    target_type: str | None = None,
    target_id: int | None = None,
    details: dict | None = None,
    ip_address: str | None = None,
) -> AuditLog:
    """
    Append an audit entry to the current session (caller commits).

    action examples:
    - update_user
    - activate_user / deactivate_user
    - impersonate_user / restore_admin
    - reset_password
    - assign_role
    - delete_user
    """
    entry = AuditLog(
        actor_id=actor_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        details=details,
        ip_address=ip_address,
    )
    db.session.add(entry)
    return entry


def list_audit_logs(
    *,
    page: int = 1,
    limit: int = 50,
    action: str | None = None,
    actor_id: int | None = None,
) -> dict:
    page = max(page or 1, 1)
    limit = min(max(limit or 50, 1), 200)

    query = db.session.query(AuditLog)
    if action:
        query = query.filter(AuditLog.action == action)
    if actor_id:
        query = query.filter(AuditLog.actor_id == actor_id)

    total = query.count()
    rows = (
        query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "data": [r.to_dict() for r in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit,
        },
    }
