# Overview: Service-layer operations for login sessions; issues, checks and revokes bearer tokens.

"""
Bearer Session Tokens

A login hands the client an opaque token; only its SHA-256 digest is kept
in session_tokens. Each request re-checks the row against two clocks:
- absolute lifetime (SESSION_ABSOLUTE_HOURS, default 24h) from login
- idle window (SESSION_IDLE_HOURS, default 2h) since the last request

IMPERSONATION: an admin may open a session on behalf of another profile.
The row keeps the admin in impersonator_profile_id so check-impersonation
can report it and restore-admin can close it.

Rows are revoked, never updated in place, on logout, deactivation and
password reset. The maintenance CLI purges old revoked or expired rows.
"""

import secrets
import hashlib
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, Profile
from dealerops.time_utils import utcnow


TOKEN_BYTES = 32


@dataclass
class SessionContext:
    """What require_auth stores on flask.g for the current request."""
    profile: Profile
    session: SessionToken
    impersonator: Profile | None = None

    @property
    def is_impersonating(self) -> bool:
        return self.impersonator is not None


def _absolute_timeout() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_ABSOLUTE_HOURS", 24))


def _idle_timeout() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_IDLE_HOURS", 2))


def generate_token() -> str:
    """64 hex chars; handed to the client once and never persisted."""
    return secrets.token_hex(TOKEN_BYTES)


def hash_token(token: str) -> str:
    # Tokens carry full entropy, so a fast digest is enough here (unlike passwords)
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def _active_row(token: str) -> SessionToken | None:
    return db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()


def create_session(
    profile_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
    impersonator_profile_id: int | None = None,
) -> tuple[SessionToken, str]:
    """
    Open a session for profile_id and return (row, plaintext token).

    Raises ValueError for an unknown or inactive profile.
    """
    profile = db.session.get(Profile, profile_id)
    if not profile:
        raise ValueError("User not found")
    if not profile.is_active:
        raise ValueError("User account is inactive")

    token = generate_token()
    issued = utcnow()

    row = SessionToken(
        profile_id=profile_id,
        impersonator_profile_id=impersonator_profile_id,
        token_hash=hash_token(token),
        created_at=issued,
        last_used_at=issued,
        expires_at=issued + _absolute_timeout(),
        user_agent=user_agent,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(row)
    db.session.commit()
    return row, token


def mark_revoked(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a bearer token to its SessionContext, or None.

    An idle session or one whose profile was deactivated is revoked on the
    spot. A live session has last_used_at bumped.
    """
    row = _active_row(token)
    if row is None:
        return None

    now = utcnow()
    if row.expires_at < now:
        return None

    if now - row.last_used_at > _idle_timeout():
        mark_revoked(row, "Idle timeout")
        db.session.commit()
        return None

    profile = row.profile
    if not profile or not profile.is_active:
        mark_revoked(row, "User account deactivated")
        db.session.commit()
        return None

    row.last_used_at = now
    db.session.commit()
    return SessionContext(profile=profile, session=row, impersonator=row.impersonator)


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """False when the token is unknown or already revoked."""
    row = _active_row(token)
    if row is None:
        return False

    mark_revoked(row, reason)
    db.session.commit()
    return True


def revoke_all_profile_sessions(profile_id: int, reason: str = "Revoke all sessions", commit: bool = True) -> int:
    """
    Sign a profile out everywhere; returns how many sessions were closed.

    Callers that bundle this with other writes pass commit=False.
    """
    rows = db.session.query(SessionToken).filter_by(profile_id=profile_id, is_revoked=False).all()
    for row in rows:
        mark_revoked(row, reason)

    if commit:
        db.session.commit()
    return len(rows)


def cleanup_expired_sessions(older_than_days: int = 30) -> int:
    """Delete revoked or expired sessions created before the retention window."""
    now = utcnow()
    cutoff = now - timedelta(days=older_than_days)

    deleted = db.session.query(SessionToken).filter(
        db.or_(SessionToken.expires_at < now, SessionToken.is_revoked.is_(True)),
        SessionToken.created_at < cutoff,
    ).delete(synchronize_session=False)

    db.session.commit()
    return deleted
