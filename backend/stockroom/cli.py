# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/stockroom/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, a main warehouse and the default users.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with role and status.
# - python -m flask users create --name "Jane" --email jane@inventory.com --password "Password123!" --role staff
#   Create a user (prompts if options are omitted).
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions --retention-days 30
#   Delete expired/revoked sessions older than the retention window.
#
# Schema migrations come from Flask-Migrate: python -m flask db ...

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User, Warehouse
from .models.auth import ROLE_ADMIN, ROLE_LEVELS, ROLE_STAFF, ROLE_VIEWER
from .services import session_service, user_service
from .validation import ConflictError, ValidationError


DEFAULT_PASSWORD = "Password123!"

DEFAULT_USERS = (
    ("Admin", "admin@inventory.com", ROLE_ADMIN),
    ("Staff", "staff@inventory.com", ROLE_STAFF),
    ("Viewer", "viewer@inventory.com", ROLE_VIEWER),
)


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the database: tables, a main warehouse and default users.

    Creates:
    - All tables (no-op for tables that exist)
    - Warehouse "Main Warehouse" if there is none
    - Users: admin@inventory.com, staff@inventory.com, viewer@inventory.com
    - All passwords default to: "Password123!"

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing database...")
    db.create_all()

    if not db.session.query(Warehouse).first():
        db.session.add(Warehouse(name="Main Warehouse"))
        db.session.commit()
        click.echo("PASS Created warehouse: Main Warehouse")

    click.echo("\nUSERS Creating default users...")
    for name, email, role in DEFAULT_USERS:
        if db.session.query(User).filter_by(email=email).first():
            click.echo(f"SKIP {email} already exists")
            continue
        user_service.create_user({"name": name, "email": email, "password": DEFAULT_PASSWORD, "role": role})
        click.echo(f"PASS Created {role}: {email}")

    click.echo(f"\nDONE Default password for new users: {DEFAULT_PASSWORD}")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
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
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ROLE_LEVELS)), prompt=True, help='Role')
@with_appcontext
def create_user_cli(name, email, password, role):
    """
    Create a new user interactively.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = user_service.create_user({"name": name, "email": email, "password": password, "role": role})
    except (ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created user {user.email} (ID: {user.id}, role: {user.role})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their role and status."""
    users = db.session.query(User).order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<20} {'Email':<30} {'Role':<8} {'Status'}")
    click.echo("="*80)

    for user in users:
        click.echo(f"{user.id:<5} {user.name:<20} {user.email:<30} {user.role:<8} {user.status}")

    click.echo("="*80 + "\n")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@click.option('--retention-days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions_cli(retention_days):
    """Delete expired or revoked sessions older than the retention window."""
    deleted = session_service.cleanup_expired_sessions(retention_days=retention_days)
    click.echo(f"Deleted {deleted} sessions older than {retention_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(maintenance_group)
