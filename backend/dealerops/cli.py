# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/dealerops/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, default roles (Admin, Seller, Transporter) and users.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all profiles with role and status.
# - python -m flask users create --email admin@dealerops.local --password "Password123!" --role admin
#   Create a profile (prompts if options are omitted).
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions --retention-days 30
#   Delete expired or revoked sessions older than the retention window.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Profile, Role
from .permissions import ADMIN_ROLE_NAME
from .services.auth_service import create_profile, create_default_roles, PasswordValidationError
from .services import session_service
from .validation import ConflictError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the dealer-ops system: schema, roles and default users.

    Creates:
    - Roles: Admin (system role), Seller, Transporter
    - Users: admin@dealerops.local, seller@dealerops.local, transporter@dealerops.local
    - All passwords default to: "Password123!"

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing dealer-ops system...")

    db.create_all()

    click.echo("\nLIST Creating roles...")
    create_default_roles()
    roles = db.session.query(Role).order_by(Role.name.asc()).all()
    click.echo(f"PASS Roles available: {', '.join(r.name for r in roles)}")

    click.echo("\nUSERS Creating default users...")

    default_password = "Password123!"  # satisfies validate_password_strength

    default_users = [
        ("admin", "admin@dealerops.local", "admin", ADMIN_ROLE_NAME),
        ("seller", "seller@dealerops.local", "seller", "Seller"),
        ("transporter", "transporter@dealerops.local", "transporter", "Transporter"),
    ]

    for username, email, legacy_role, role_name in default_users:
        existing = db.session.query(Profile).filter_by(email=email).first()
        if existing:
            click.echo(f"WARN  User '{email}' already exists, skipping...")
            continue

        role = db.session.query(Role).filter_by(name=role_name).first()
        try:
            create_profile(
                email=email,
                password=default_password,
                role=legacy_role,
                username=username,
                role_id=role.id if role else None,
            )
            click.echo(f"PASS Created user: {username} ({email}) with role '{role_name}'")
        except PasswordValidationError as e:
            click.echo(f"FAIL Password validation failed for '{username}': {str(e)}")
        except (ValidationError, ConflictError) as e:
            db.session.rollback()
            click.echo(f"FAIL Failed to create user '{username}': {str(e)}")

    click.echo("\n" + "="*60)
    click.echo("DONE System Initialized Successfully!")
    click.echo("="*60)
    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    click.echo("   admin       -> admin@dealerops.local       / Password123!")
    click.echo("   seller      -> seller@dealerops.local      / Password123!")
    click.echo("   transporter -> transporter@dealerops.local / Password123!")
    click.echo("")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop every table and recreate the schema."""
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(['admin', 'seller', 'transporter']), prompt=True, help='Role')
@click.option('--username', default=None, help='Username (defaults to the email prefix)')
@with_appcontext
def create_user_cli(email, password, role, username):
    """
    Create a new profile.

    The profile is linked to the matching default role (Admin, Seller or
    Transporter) when that role exists.

    The password goes through the same strength policy as the API.
    """
    role_name = ADMIN_ROLE_NAME if role == "admin" else role.capitalize()
    linked = db.session.query(Role).filter_by(name=role_name).first()

    try:
        profile = create_profile(
            email=email,
            password=password,
            role=role,
            username=username,
            role_id=linked.id if linked else None,
        )
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        return
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL {str(e)}")
        return

    click.echo(f"PASS Created user: {profile.username} ({profile.email}) with role '{role}'")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all profiles with their roles."""
    profiles = db.session.query(Profile).order_by(Profile.id.asc()).all()

    if not profiles:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<32} {'Status':<10} {'Role'}")
    click.echo("="*100)

    for profile in profiles:
        role_str = profile.role_data.name if profile.role_data else profile.role
        click.echo(f"{profile.id:<5} {profile.username:<20} {profile.email:<32} {profile.status:<10} {role_str}")

    click.echo("="*100 + "\n")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@click.option('--retention-days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions_cli(retention_days):
    """Purge revoked or expired sessions older than --retention-days."""
    deleted = session_service.cleanup_expired_sessions(older_than_days=retention_days)
    click.echo(f"Deleted {deleted} sessions older than {retention_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(maintenance_group)
