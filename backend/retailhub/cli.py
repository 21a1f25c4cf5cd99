# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/retailhub/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, a default store and the default users.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with roles, stores and active status.
# - python -m flask users create --email admin@retailhub.local --name Admin --password "Password123!" --role admin --store-id 1
#   Create a user (prompts if options are omitted).
#
# Permission inspection:
# - python -m flask perms list --role manager
#   List permissions (optionally filtered by role or category).
#
# Maintenance:
# - python -m flask maintenance cleanup-audit-logs --retention-days 90
#   Delete audit rows older than the retention window.

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import RetailError
from .extensions import db
from .models import Store, User
from .permissions import Role, DEFAULT_ROLE_PERMISSIONS, PERMISSION_DEFINITIONS
from .services import maintenance_service, user_service


DEFAULT_PASSWORD = "Password123!"

DEFAULT_USERS = [
    ("admin@retailhub.local", "Administrateur", Role.ADMIN),
    ("manager@retailhub.local", "Gérant", Role.MANAGER),
    ("seller@retailhub.local", "Vendeur", Role.SELLER),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--store', 'store_name', default='Magasin Principal', help='Default store name')
@with_appcontext
def init_system(store_name):
    """
    Initialize RetailHub: schema, a default store and one user per role.

    Safe to run repeatedly; existing rows are left alone.

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing RetailHub...")
    db.create_all()

    store = db.session.query(Store).order_by(Store.id).first()
    if not store:
        store = Store(name=store_name, is_active=True)
        db.session.add(store)
        db.session.commit()
        click.echo(f"PASS Created default store: {store.name} (ID: {store.id})")
    else:
        click.echo(f"PASS Using existing store: {store.name} (ID: {store.id})")

    click.echo("\nUSERS Creating default users...")
    for email, name, role in DEFAULT_USERS:
        if db.session.query(User.id).filter(User.email == email).first():
            click.echo(f"WARN  User '{email}' already exists, skipping...")
            continue
        store_ids = [] if role is Role.ADMIN else [store.id]
        user_service.create_user_record(
            email=email,
            name=name,
            password=DEFAULT_PASSWORD,
            role=role,
            store_ids=store_ids,
        )
        db.session.commit()
        click.echo(f"PASS Created user: {email} with role '{role.value}'")

    click.echo("\n" + "="*60)
    click.echo("DONE RetailHub Initialized Successfully!")
    click.echo("="*60)
    click.echo(f"\nStore: {store.name} (ID: {store.id})")
    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    for email, _, role in DEFAULT_USERS:
        click.echo(f"   {role.value:<8} -> {email:<26} / {DEFAULT_PASSWORD}")
    click.echo("")


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


@users_group.command('list')
@with_appcontext
def list_users_cli():
    """List all users with their role, stores and status."""
    users = db.session.query(User).order_by(User.id).all()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Email':<32} {'Role':<9} {'Active':<8} {'Stores'}")
    click.echo("="*80)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        stores = ", ".join(str(s) for s in user.store_ids) or "-"
        click.echo(f"{user.id:<5} {user.email:<32} {user.role:<9} {active_str:<8} {stores}")
    click.echo("="*80 + "\n")


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice([r.value for r in Role]), prompt=True, help='Role')
@click.option('--store-id', 'store_ids', type=int, multiple=True, help='Assigned store (repeatable)')
@with_appcontext
def create_user_cli(email, name, password, role, store_ids):
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
        user = user_service.create_user_record(
            email=email,
            name=name,
            password=password,
            role=role,
            store_ids=list(store_ids),
        )
        db.session.commit()
    except RetailError as e:
        db.session.rollback()
        raise click.ClickException(e.message)

    click.echo(f"PASS Created user: {user.email} (ID: {user.id}) with role '{user.role}'")


@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('list')
@click.option('--role', type=click.Choice([r.value for r in Role]), help='Only codes this role carries')
@click.option('--category', help='Only codes in this category')
@with_appcontext
def list_perms_cli(role, category):
    """List permission codes."""
    allowed = DEFAULT_ROLE_PERMISSIONS[Role(role)] if role else None
    for code, name, _, perm_category in PERMISSION_DEFINITIONS:
        if allowed is not None and code not in allowed:
            continue
        if category and perm_category != category.upper():
            continue
        click.echo(f"{code:<28} {perm_category:<14} {name}")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-audit-logs')
@click.option('--retention-days', type=int, default=None,
              help='Defaults to the AUDIT_RETENTION_DAYS setting.')
@with_appcontext
def cleanup_audit_logs_cli(retention_days):
    """
    Cleanup old audit rows.

    Accepted range: 1 to 365.
    """
    if retention_days is None:
        retention_days = current_app.config["AUDIT_RETENTION_DAYS"]
    try:
        deleted = maintenance_service.cleanup_audit_logs(retention_days=retention_days)
    except RetailError as e:
        raise click.ClickException(e.message)
    click.echo(f"Deleted {deleted} audit rows older than {retention_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(maintenance_group)
