# Overview: Flask CLI command groups for bootstrap and user inspection.

# backend/lojaroupa/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--admin-email admin@lojaroupa.local]
#   Idempotent bootstrap: creates tables and a default admin user.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with access level.
# - python -m flask users create --name "Ana" --email ana@lojaroupa.local --password "secret1" --access-level user
#   Create a user (prompts if options are omitted).

import click
from flask.cli import with_appcontext

from .errors import LedgerError
from .extensions import db
from .models import User
from .models.auth import ACCESS_LEVELS
from .services.user_service import create_user
from .validation import validate_user_fields


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--admin-name', default='Administrador', help='Default admin display name')
@click.option('--admin-email', default='admin@lojaroupa.local', help='Default admin email')
@click.option('--admin-password', default='admin123', help='Default admin password')
@with_appcontext
def init_system(admin_name, admin_email, admin_password):
    """
    Create all tables and a default admin account if none exists.

    SECURITY: Change the default password immediately in production!
    """
    click.echo("START Initializing LojaRoupa back office...")

    db.create_all()
    click.echo("PASS Tables ready")

    existing = db.session.query(User).filter_by(access_level="admin").first()
    if existing:
        click.echo(f"PASS Using existing admin: {existing.email} (ID: {existing.id})")
        return

    user = create_user(
        name=admin_name,
        email=admin_email,
        password=admin_password,
        access_level="admin",
    )
    click.echo(f"PASS Created admin user: {user.email} (ID: {user.id})")
    click.echo("SECURITY Password securely hashed with bcrypt")


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
@click.option('--access-level', type=click.Choice(ACCESS_LEVELS), default='user', show_default=True)
@with_appcontext
def create_user_cli(name, email, password, access_level):
    """Create a user with a bcrypt-hashed password."""
    result = validate_user_fields(
        {"name": name, "email": email, "password": password, "access_level": access_level},
        partial=False,
    )
    if not result.ok:
        for violation in result.violations:
            click.echo(f"FAIL {violation}")
        raise SystemExit(1)

    try:
        user = create_user(**result.data)
    except LedgerError as e:
        click.echo(f"FAIL Failed to create user: {e.message}")
        raise SystemExit(1)

    click.echo(f"PASS Created user: {user.name} ({user.email}) with access level '{user.access_level}'")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their access level."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<25} {'Email':<35} {'Access'}")
    click.echo("="*80)

    for user in users:
        click.echo(f"{user.id:<5} {user.name:<25} {user.email:<35} {user.access_level}")

    click.echo("="*80 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
