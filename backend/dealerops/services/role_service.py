# Overview: Service-layer operations for roles; encapsulates RBAC role management.

"""
Role Management

A role is a name plus a full permission object. Whatever the client sends is
merged over the all-false template, so stored roles always carry all eight
modules and nothing else.

SYSTEM ROLES: roles flagged is_system_role (the Admin role) keep their name
and cannot be deleted.
"""

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Profile, Role
from ..permissions import normalize_permissions
from ..validation import ConflictError, NotFoundError, ValidationError


def get_role(role_id: int) -> Role:
    role = db.session.get(Role, role_id)
    if not role:
        raise NotFoundError("Role not found")
    return role


def list_roles() -> list[Role]:
    return db.session.query(Role).order_by(Role.name.asc()).all()


def _name_taken(name: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(Role.id).filter(func.lower(Role.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Role.id != exclude_id)
    return query.first() is not None


def create_role(*, payload: dict) -> Role:
    name = (payload.get("name") or "").strip()
    permissions = payload.get("permissions")
    if not name or not permissions:
        raise ValidationError("Name and permissions are required")
    if not isinstance(permissions, dict):
        raise ValidationError("permissions must be an object")
    if _name_taken(name):
        raise ConflictError("Role name already exists")

    role = Role(
        name=name,
        description=(payload.get("description") or "").strip() or None,
        is_system_role=False,
        permissions=normalize_permissions(permissions),
    )
    db.session.add(role)
    db.session.commit()
    return role


def update_role(*, role_id: int, payload: dict) -> Role:
    """
    Update name, description or permissions.

    A duplicate name is a 400 here (the create endpoint answers 409).
    """
    role = get_role(role_id)

    if "name" in payload:
        name = (payload.get("name") or "").strip()
        if not name:
            raise ValidationError("Role name cannot be blank")
        if role.is_system_role and name != role.name:
            raise ValidationError("System roles cannot be renamed")
        if _name_taken(name, exclude_id=role.id):
            raise ValidationError("Role with this name already exists")
        role.name = name

    if "description" in payload:
        role.description = (payload.get("description") or "").strip() or None

    if "permissions" in payload:
        permissions = payload.get("permissions")
        if not isinstance(permissions, dict):
            raise ValidationError("permissions must be an object")
        role.permissions = normalize_permissions(permissions)

    db.session.commit()
    return role


def delete_role(*, role_id: int) -> None:
    role = get_role(role_id)
    if role.is_system_role:
        raise ValidationError("System roles cannot be deleted")

    in_use = db.session.query(Profile.id).filter(Profile.role_id == role.id).first()
    if in_use:
        raise ValidationError("Cannot delete role that is assigned to users. Please reassign users first.")

    db.session.delete(role)
    db.session.commit()
