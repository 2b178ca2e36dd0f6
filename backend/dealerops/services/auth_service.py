# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

WHY: Every action must be attributable. Uses bcrypt for secure password
hashing and validates password strength.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Session tokens managed separately (see session_service.py)
- Inactive profiles never authenticate
"""

import bcrypt
import re
from flask import current_app

from ..extensions import db
from ..models import Profile, Role
from ..permissions import (
    ADMIN_ROLE_NAME,
    DEFAULT_ROLE_DESCRIPTIONS,
    DEFAULT_ROLE_PERMISSIONS,
    full_permissions,
    permissions_from_grants,
)
from ..validation import ConflictError, ValidationError
from dealerops.time_utils import utcnow


LEGACY_ROLES = ("admin", "seller", "transporter")


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    WHY: Cost factor 12 provides good security/performance balance.
    The test suite lowers BCRYPT_ROUNDS; production keeps the default.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    Malformed hashes are a failed check, not an error.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def create_profile(
    *,
    email: str,
    password: str,
    role: str = "seller",
    username: str | None = None,
    role_id: int | None = None,
    commit: bool = True,
) -> Profile:
    """
    Create new profile with bcrypt password hashing.

    username defaults to the part of the email before "@".

    Raises:
        ValidationError: bad email / legacy role / unknown role_id
        ConflictError: email or username already taken
        PasswordValidationError: password doesn't meet requirements
    """
    email = (email or "").strip().lower()
    if not email or "@" not in email:
        raise ValidationError("A valid email is required")
    if role not in LEGACY_ROLES:
        raise ValidationError("Invalid role. Must be admin, seller, or transporter")

    username = (username or email.split("@", 1)[0]).strip()
    if not username:
        raise ValidationError("Username is required")

    existing = db.session.query(Profile).filter(
        db.or_(Profile.email == email, Profile.username == username)
    ).first()
    if existing:
        raise ConflictError("A user with this email or username already exists")

    if role_id is not None and db.session.get(Role, role_id) is None:
        raise ValidationError("Role not found")

    # Hash password with bcrypt (validates strength automatically)
    password_hash = hash_password(password)

    profile = Profile(
        email=email,
        username=username,
        password_hash=password_hash,
        role=role,
        role_id=role_id,
        status="active",
    )

    db.session.add(profile)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return profile


def authenticate(identifier: str, password: str) -> Profile | None:
    """
    Authenticate with username or email and password.

    Returns the Profile if credentials are valid and the profile is active,
    None otherwise. Updates last_login_at on success.
    """
    ident = (identifier or "").strip()
    profile = db.session.query(Profile).filter(
        db.or_(Profile.username == ident, Profile.email == ident.lower()),
    ).first()

    if not profile or not profile.is_active:
        return None

    if verify_password(password, profile.password_hash):
        profile.last_login_at = utcnow()
        db.session.commit()
        return profile

    return None


def set_password(profile: Profile, new_password: str) -> None:
    """Replace a profile's password (strength-checked). Caller commits."""
    profile.password_hash = hash_password(new_password)


def create_default_roles() -> list[Role]:
    """
    Create the Admin system role plus the Seller and Transporter roles
    if they don't exist. Existing roles are left untouched.
    """
    created = []
    admin = db.session.query(Role).filter_by(name=ADMIN_ROLE_NAME).first()
    if not admin:
        admin = Role(
            name=ADMIN_ROLE_NAME,
            description=DEFAULT_ROLE_DESCRIPTIONS[ADMIN_ROLE_NAME],
            is_system_role=True,
            permissions=full_permissions(),
        )
        db.session.add(admin)
        created.append(admin)

    for name, grants in DEFAULT_ROLE_PERMISSIONS.items():
        existing = db.session.query(Role).filter_by(name=name).first()
        if not existing:
            role = Role(
                name=name,
                description=DEFAULT_ROLE_DESCRIPTIONS.get(name),
                is_system_role=False,
                permissions=permissions_from_grants(grants),
            )
            db.session.add(role)
            created.append(role)

    db.session.commit()
    return created
