# Overview: Flask CLI command groups for bootstrap and user management.

# backend/posledger/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--store-name "My Store"]
#   Idempotent bootstrap: creates tables, the store settings row and an admin user.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
#   List all users with role and active status.
# - python -m flask users create --username cashier1 --password "Password123!" --role sales
#   Create a user (prompts if options are omitted).
# - python -m flask users set-role --username cashier1 --role accountant
#   Replace a user's role.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .permissions import VALID_ROLES, DEFAULT_ROLE
from .services.auth_service import create_user, set_role, PasswordValidationError
from .services.settings_service import get_store_settings


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--store-name', default=None, help='Store name shown on receipts')
@click.option('--admin-password', default='Password123!', help='Password for the default admin user')
@with_appcontext
def init_system(store_name, admin_password):
    """
    Initialize the ledger: schema, store settings and a default admin.

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing posledger...")

    db.create_all()
    click.echo("PASS Schema ready")

    settings = get_store_settings()
    if store_name:
        settings.store_name = store_name
    db.session.commit()
    click.echo(f"PASS Store settings: {settings.store_name} ({settings.currency}, prefix {settings.invoice_prefix})")

    if db.session.query(User).filter_by(username="admin").first():
        click.echo("WARN  User 'admin' already exists, skipping...")
    else:
        try:
            create_user(username="admin", password=admin_password, role="admin", full_name="Administrator")
            click.echo("PASS Created user: admin with role 'admin'")
        except PasswordValidationError as e:
            raise click.ClickException(f"Password validation failed for 'admin': {e}")

    click.echo("DONE posledger initialized")


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
    """User management commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', default=None, help='Email address')
@click.option('--full-name', default=None, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(sorted(VALID_ROLES)), default=DEFAULT_ROLE, show_default=True, help='Role')
@with_appcontext
def create_user_cli(username, email, full_name, password, role):
    """Create a user with one role."""
    try:
        user = create_user(
            username=username,
            password=password,
            role=role,
            email=email,
            full_name=full_name,
        )
    except (PasswordValidationError, ValueError) as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Created user: {user.username} (ID: {user.id}) with role '{user.role}'")


@users_group.command('set-role')
@click.option('--username', required=True, help='Username')
@click.option('--role', type=click.Choice(sorted(VALID_ROLES)), required=True, help='New role')
@with_appcontext
def set_role_cli(username, role):
    """Replace a user's role."""
    user = db.session.query(User).filter_by(username=username).first()
    if not user:
        raise click.ClickException(f"User not found: {username}")

    try:
        set_role(user.id, role)
    except ValueError as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS {username} now has role '{role}'")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<30} {'Active':<8} {'Role'}")
    click.echo("="*80)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.username:<20} {user.email or '-':<30} {active_str:<8} {user.role}")

    click.echo("="*80 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
