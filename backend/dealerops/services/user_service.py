# Overview: Service-layer operations for user administration; encapsulates profile management and impersonation.

"""
User Administration

ADMIN PROTECTION: admin profiles (legacy role "admin" or the Admin role)
cannot be modified, deactivated, impersonated, re-roled or deleted through
these operations. The only exception is an admin resetting their own
password.

AUDIT: every state-changing operation appends an audit_logs row in the same
transaction as the change.

IMPERSONATION: an admin gets a session for the target profile whose
impersonator_profile_id records the admin. Restoring revokes that session
and issues a fresh admin session.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Message, Profile, Role, SessionToken
from ..permissions import is_admin
from ..validation import ConflictError, NotFoundError, ValidationError
from . import audit_service, auth_service, session_service
from .permission_service import PermissionDeniedError


EDITABLE_ROLES = ("seller", "transporter")
PROFILE_STATUSES = ("active", "inactive")


def get_profile(profile_id: int) -> Profile:
    profile = db.session.get(Profile, profile_id)
    if not profile:
        raise NotFoundError("User not found")
    return profile


def list_profiles() -> list[Profile]:
    return db.session.query(Profile).order_by(Profile.created_at.desc(), Profile.id.desc()).all()


def create_user(*, payload: dict, actor_id: int, ip_address: str | None = None) -> Profile:
    email = payload.get("email")
    password = payload.get("password")
    role = payload.get("role")
    if not email or not password or not role:
        raise ValidationError("Email, password, and role are required")

    role_id = payload.get("role_id")
    if role_id in ("", None):
        role_id = None
    else:
        try:
            role_id = int(role_id)
        except (TypeError, ValueError):
            raise ValidationError("role_id must be an integer")

    profile = auth_service.create_profile(
        email=email,
        password=password,
        role=role,
        username=payload.get("username"),
        role_id=role_id,
        commit=False,
    )
    audit_service.log_action(
        actor_id=actor_id,
        action="create_user",
        target_type="profile",
        target_id=profile.id,
        details={"email": profile.email, "role": profile.role},
        ip_address=ip_address,
    )
    db.session.commit()
    return profile


def update_user(*, profile_id: int, payload: dict, actor_id: int, ip_address: str | None = None) -> Profile:
    """Update username, email, legacy role (seller/transporter) or status."""
    target = get_profile(profile_id)
    if is_admin(target):
        raise PermissionDeniedError("Admin account cannot be modified")

    role = payload.get("role")
    if role == "admin":
        raise PermissionDeniedError("Cannot change user role to admin via this endpoint")
    if role and role not in EDITABLE_ROLES:
        raise ValidationError("Invalid role. Must be seller or transporter")

    changes = {}

    if "username" in payload:
        username = (payload.get("username") or "").strip()
        if not username:
            raise ValidationError("Username cannot be blank")
        taken = db.session.query(Profile.id).filter(Profile.username == username, Profile.id != target.id).first()
        if taken:
            raise ConflictError("Username already taken")
        changes["username"] = username

    if "email" in payload:
        email = (payload.get("email") or "").strip().lower()
        if "@" not in email:
            raise ValidationError("A valid email is required")
        taken = db.session.query(Profile.id).filter(Profile.email == email, Profile.id != target.id).first()
        if taken:
            raise ConflictError("Email already taken")
        changes["email"] = email

    if role:
        changes["role"] = role

    if "status" in payload:
        status = payload.get("status")
        if status not in PROFILE_STATUSES:
            raise ValidationError('Invalid status. Must be "active" or "inactive"')
        changes["status"] = status

    for k, v in changes.items():
        setattr(target, k, v)
    if changes.get("status") == "inactive":
        session_service.revoke_all_profile_sessions(target.id, reason="User deactivated", commit=False)

    audit_service.log_action(
        actor_id=actor_id,
        action="update_user",
        target_type="profile",
        target_id=target.id,
        details={"changes": changes},
        ip_address=ip_address,
    )
    db.session.commit()
    return target


def delete_user(*, profile_id: int, actor_id: int, ip_address: str | None = None) -> None:
    if profile_id == actor_id:
        raise ValidationError("Cannot delete your own account")
    target = get_profile(profile_id)
    if is_admin(target):
        raise PermissionDeniedError("Admin account cannot be deleted")

    db.session.query(SessionToken).filter(SessionToken.profile_id == target.id).delete(synchronize_session=False)
    db.session.query(Message).filter(
        db.or_(Message.sender_id == target.id, Message.receiver_id == target.id)
    ).delete(synchronize_session=False)

    audit_service.log_action(
        actor_id=actor_id,
        action="delete_user",
        target_type="profile",
        target_id=target.id,
        details={"email": target.email, "username": target.username},
        ip_address=ip_address,
    )
    db.session.delete(target)
    db.session.commit()


def set_status(*, profile_id: int, status: str, actor_id: int, ip_address: str | None = None) -> Profile:
    """
    Activate or deactivate a profile.

    Deactivation revokes every session of the target.
    """
    target = get_profile(profile_id)
    if is_admin(target):
        raise PermissionDeniedError("Admin account cannot be deactivated")
    if status not in PROFILE_STATUSES:
        raise ValidationError('Invalid status. Must be "active" or "inactive"')

    previous = target.status
    target.status = status
    if status == "inactive":
        session_service.revoke_all_profile_sessions(target.id, reason="User deactivated", commit=False)

    audit_service.log_action(
        actor_id=actor_id,
        action="activate_user" if status == "active" else "deactivate_user",
        target_type="profile",
        target_id=target.id,
        details={"previous_status": previous, "new_status": status},
        ip_address=ip_address,
    )
    db.session.commit()
    return target


def reset_password(
    *,
    profile_id: int,
    new_password: str | None,
    actor_id: int,
    ip_address: str | None = None,
) -> Profile:
    """
    Set a new password for the target and sign them out everywhere.

    Raises PasswordValidationError when the password is too weak.
    """
    target = get_profile(profile_id)
    if is_admin(target) and target.id != actor_id:
        raise PermissionDeniedError("Admin account cannot be modified")
    if not new_password:
        raise ValidationError("New password is required")

    auth_service.set_password(target, new_password)
    session_service.revoke_all_profile_sessions(target.id, reason="Password reset", commit=False)

    audit_service.log_action(
        actor_id=actor_id,
        action="reset_password",
        target_type="profile",
        target_id=target.id,
        ip_address=ip_address,
    )
    db.session.commit()
    return target


def assign_role(*, profile_id: int, role_id, actor_id: int, ip_address: str | None = None) -> Profile:
    if role_id in (None, ""):
        raise ValidationError("role_id is required")
    try:
        role_id = int(role_id)
    except (TypeError, ValueError):
        raise ValidationError("role_id must be an integer")

    target = get_profile(profile_id)
    if is_admin(target):
        raise PermissionDeniedError("Admin account role cannot be changed")

    role = db.session.get(Role, role_id)
    if not role:
        raise NotFoundError("Role not found")

    previous = target.role_id
    target.role_id = role.id
    audit_service.log_action(
        actor_id=actor_id,
        action="assign_role",
        target_type="profile",
        target_id=target.id,
        details={"previous_role_id": previous, "new_role_id": role.id, "role_name": role.name},
        ip_address=ip_address,
    )
    db.session.commit()
    return target


def start_impersonation(
    *,
    admin: Profile,
    profile_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[Profile, str]:
    """
    Issue a session for the target that records the impersonating admin.

    Returns (target_profile, plaintext_token).
    """
    target = get_profile(profile_id)
    if not target.is_active:
        raise ValidationError("Cannot impersonate inactive user")
    if is_admin(target):
        raise PermissionDeniedError("Cannot impersonate admin users")

    audit_service.log_action(
        actor_id=admin.id,
        action="impersonate_user",
        target_type="profile",
        target_id=target.id,
        details={"target_email": target.email},
        ip_address=ip_address,
    )
    # create_session commits, taking the audit row with it
    _, token = session_service.create_session(
        target.id,
        user_agent=user_agent,
        ip_address=ip_address,
        impersonator_profile_id=admin.id,
    )
    return target, token


def restore_admin(
    *,
    context: session_service.SessionContext,
    admin_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[Profile, str]:
    """
    End an impersonation session and hand back a fresh admin session.

    Returns (admin_profile, plaintext_token).
    """
    if not context.is_impersonating or context.impersonator.id != admin_id:
        raise ValidationError("No impersonation session found")

    admin = db.session.get(Profile, admin_id)
    if not admin:
        raise NotFoundError("Admin account not found")
    if not is_admin(admin) or not admin.is_active:
        raise PermissionDeniedError("Original admin account is no longer admin")

    session_service.mark_revoked(context.session, "Impersonation ended")
    audit_service.log_action(
        actor_id=admin.id,
        action="restore_admin_session",
        target_type="profile",
        target_id=context.profile.id,
        ip_address=ip_address,
    )
    _, token = session_service.create_session(admin.id, user_agent=user_agent, ip_address=ip_address)
    return admin, token


def impersonation_state(context: session_service.SessionContext | None) -> dict:
    if context is None or not context.is_impersonating:
        return {"isImpersonating": False}
    return {
        "isImpersonating": True,
        "adminId": context.impersonator.id,
        "adminUsername": context.impersonator.username,
    }
