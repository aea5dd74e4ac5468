# Overview: Flask CLI command groups for bootstrap, user administration and data maintenance.

# backend/warehouse/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init
#   Create data directories, apply migrations, create the default admin if no users exist.
# - python -m flask system migrate
#   Apply pending schema migrations only.
# - python -m flask system cleanup-sessions [--retention-days 30]
#   Delete expired or revoked session tokens older than the retention window.
#
# Users:
# - python -m flask users list [--all]
# - python -m flask users create --username cashier1 --password "Password123!" --role user
# - python -m flask users reset-password --username super
# - python -m flask users deactivate --username cashier1
#
# Data:
# - python -m flask data backup
#   Copy the SQLite database into BACKUP_DIR.
# - python -m flask data export
#   Write products, categories and sales as JSON into EXPORT_DIR.
# - python -m flask data info
#   Show database path, size and row counts.

import click
from flask.cli import with_appcontext

from .models.auth import USER_ROLES
from .services import maintenance_service, migration_service, session_service, user_service
from .services.auth_service import PasswordValidationError
from .services.maintenance_service import MaintenanceError
from .validation import ConflictError, NotFoundError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the warehouse system.

    Idempotent; safe to run on every deploy.
    """
    click.echo("START Initializing warehouse system...")

    paths = maintenance_service.ensure_data_directories()
    click.echo(f"PASS Data directory: {paths['dataDir']}")

    result = migration_service.apply_migrations()
    if result["alreadyMigrated"]:
        click.echo("PASS Database schema already up to date")
    else:
        for change in result["changes"]:
            click.echo(f"PASS Applied migration {change}")

    admin = user_service.create_default_admin_if_needed()
    if admin:
        click.echo(f"PASS Created default admin: {admin.username}")
        click.echo("SECURITY Change the default admin password immediately!")
    else:
        click.echo("PASS Users already exist; default admin not created")

    click.echo("DONE Warehouse system initialized")


@system_group.command('migrate')
@with_appcontext
def migrate_cli():
    """Apply pending schema migrations."""
    try:
        result = migration_service.apply_migrations()
    except Exception as e:
        click.echo(f"FAIL Migration failed: {str(e)}")
        raise SystemExit(1)

    if result["alreadyMigrated"]:
        click.echo("PASS Database schema already up to date")
        return
    for change in result["changes"]:
        click.echo(f"PASS Applied migration {change}")


@system_group.command('cleanup-sessions')
@click.option('--retention-days', default=30, show_default=True, type=int, help='Keep dead sessions this many days')
@with_appcontext
def cleanup_sessions_cli(retention_days):
    """Delete expired or revoked session tokens."""
    deleted = session_service.cleanup_expired_sessions(retention_days=retention_days)
    click.echo(f"PASS Removed {deleted} session token(s)")


@click.group('users')
def users_group():
    """User administration commands."""


@users_group.command('list')
@click.option('--all', 'include_inactive', is_flag=True, help='Include deactivated users')
@with_appcontext
def list_users(include_inactive):
    """List users with their roles."""
    users = user_service.list_users(include_inactive=include_inactive)

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Username':<20} {'Role':<16} {'Active':<8} {'Last login'}")
    click.echo("="*80)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        last_login = str(user.last_login)[:19] if user.last_login else "-"
        click.echo(f"{user.id:<5} {user.username:<20} {user.role:<16} {active_str:<8} {last_login}")

    click.echo("="*80 + "\n")


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(USER_ROLES)), default='user', show_default=True, help='Role')
@click.option('--full-name', default=None, help='Display name')
@with_appcontext
def create_user_cli(username, password, role, full_name):
    """
    Create a new user.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = user_service.create_user(username=username, password=password, role=role, full_name=full_name)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
        return
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")
        return

    click.echo(f"PASS Created user: {user.username} with role '{user.role}' (ID: {user.id})")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('reset-password')
@click.option('--username', prompt=True, help='Username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='New password')
@with_appcontext
def reset_password_cli(username, password):
    """Set a new password and revoke the user's sessions."""
    user = user_service.get_user_by_username(username)
    if user is None:
        click.echo(f"FAIL User '{username}' not found")
        return

    try:
        user_service.change_password(user.id, password)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        return
    except NotFoundError as e:
        click.echo(f"FAIL {str(e)}")
        return

    click.echo(f"PASS Password reset for {username}; open sessions revoked")


@users_group.command('deactivate')
@click.option('--username', prompt=True, help='Username')
@with_appcontext
def deactivate_user_cli(username):
    """Deactivate (soft delete) a user."""
    user = user_service.get_user_by_username(username)
    if user is None or not user.is_active:
        click.echo(f"FAIL Active user '{username}' not found")
        return

    try:
        user_service.delete_user(user.id)
    except ConflictError as e:
        click.echo(f"FAIL {str(e)}")
        return

    click.echo(f"PASS Deactivated {username}")


@click.group('data')
def data_group():
    """Backup, export and inspection commands."""


@data_group.command('backup')
@with_appcontext
def backup_cli():
    """Back up the SQLite database."""
    try:
        result = maintenance_service.create_backup()
    except MaintenanceError as e:
        click.echo(f"WARN {str(e)}")
        return
    click.echo(f"PASS Backup written: {result['path']} ({result['size']} bytes)")


@data_group.command('export')
@with_appcontext
def export_cli():
    """Export products, categories and sales as JSON."""
    result = maintenance_service.export_data()
    counts = ", ".join(f"{count} {name}" for name, count in result["counts"].items())
    click.echo(f"PASS Exported {counts} to {result['path']}")


@data_group.command('info')
@with_appcontext
def info_cli():
    """Show database location and row counts."""
    info = maintenance_service.get_database_info()
    click.echo(f"Dialect: {info['dialect']}")
    click.echo(f"Path:    {info['path'] or '-'}")
    click.echo(f"Size:    {info['size'] if info['size'] is not None else '-'} bytes")
    for table, count in info["tables"].items():
        click.echo(f"  {table:<16} {count}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(data_group)
