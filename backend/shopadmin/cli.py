# Overview: Flask CLI command groups for bootstrap, inspection, and user management.

# backend/shopadmin/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent: reconcile the permission catalog and the built-in ADMIN/USER roles.
#
# Permission / role inspection:
# - python -m flask perms list [--group orders] [--role ADMIN]
#   List catalog permissions, or the effective permissions of a role.
# - python -m flask roles list
#   List roles with status and grant counts.
#
# Users:
# - python -m flask users create --name "Jane" --email jane@example.com --password secret1 --role ADMIN
#   Create an account (prompts if options are omitted).
# - python -m flask users set-role jane@example.com WAREHOUSE
#   Move an existing account to another role.

import click
from flask.cli import with_appcontext

from .errors import ServiceError
from .extensions import db
from .models import User
from .permissions import STAFF_ROLE_KEY, get_permissions_by_group, list_permissions
from .services import auth_service, permission_service, role_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Reconcile permissions and ensure the built-in roles exist."""
    click.echo("START Initializing permissions and roles...")
    created_permissions = permission_service.reconcile_catalog()
    created_grants = permission_service.ensure_default_roles()
    click.echo(f"PASS Permissions created: {created_permissions}")
    click.echo(f"PASS Grants created: {created_grants}")
    click.echo("DONE")


@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('list')
@click.option('--group', 'group_name', help='Filter by permission group')
@click.option('--role', 'role_key', help='Show the effective permissions of a role')
@with_appcontext
def list_permissions_cli(group_name, role_key):
    """List catalog permissions, optionally filtered by group or role."""
    if role_key:
        explicit = permission_service.try_resolve_explicit_grants(role_key)
        effective = permission_service.apply_bootstrap_fallback(role_key, explicit)
        if explicit is None and not effective:
            click.echo(f"FAIL Role '{role_key}' not found")
            return
        if explicit:
            source = "explicit grants"
        else:
            source = "bootstrap fallback" if effective else "no grants"
        click.echo(f"\nEffective permissions for role {role_key} ({source}):")
        for key in sorted(effective):
            click.echo(f"  {key}")
        click.echo(f"\n Total: {len(effective)} permissions\n")
        return

    perms = get_permissions_by_group(group_name) if group_name else list_permissions()

    click.echo(f"\n{'='*80}")
    click.echo(f"{'Key':<25} {'Label':<25} {'Group'}")
    click.echo("-"*80)
    for perm in perms:
        click.echo(f"{perm.key:<25} {perm.label:<25} {perm.group}")
    click.echo(f"\n Total: {len(perms)} permissions\n")


@click.group('roles')
def roles_group():
    """Role inspection commands."""


@roles_group.command('list')
@with_appcontext
def list_roles_cli():
    """List roles with their status and number of grants."""
    roles = role_service.list_roles()
    click.echo(f"{'Key':<20} {'Name':<25} {'Status':<10} {'Grants'}")
    click.echo("-"*70)
    for role in roles:
        click.echo(f"{role.key:<20} {role.name:<25} {role.status:<10} {len(role.grants)}")


@click.group('users')
def users_group():
    """User management commands."""


@users_group.command('create')
@click.option('--name', prompt=True, help='Display name')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', 'role_key', default=STAFF_ROLE_KEY, show_default=True, help='Role key')
@with_appcontext
def create_user_cli(name, email, password, role_key):
    """Create a new user account."""
    role = role_service.get_role_by_key(role_key)
    if role is None:
        click.echo(f"FAIL Role '{role_key}' not found")
        return
    try:
        user = auth_service.create_user(name, email, password, role.key)
    except ServiceError as exc:
        click.echo(f"FAIL {exc.message}")
        return
    click.echo(f"PASS Created user {user.email} (ID: {user.id}, role: {user.role})")


@users_group.command('set-role')
@click.argument('email')
@click.argument('role_key')
@with_appcontext
def set_role_cli(email, role_key):
    """Assign ROLE_KEY to the user with EMAIL."""
    user = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if user is None:
        click.echo(f"FAIL User '{email}' not found")
        return
    try:
        auth_service.assign_role(user.id, role_key)
    except ServiceError as exc:
        click.echo(f"FAIL {exc.message}")
        return
    click.echo(f"PASS {user.email} is now {user.role}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(roles_group)
    app.cli.add_command(users_group)
