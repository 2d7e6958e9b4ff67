# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/shopledger/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# Schema:
# - python -m flask db upgrade
#   Apply migrations (Flask-Migrate).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Shops (tenants):
# - python -m flask shops create --name "Main Street Auto" --code "MAIN"
# - python -m flask shops list
#
# Users and tokens:
# - python -m flask users create --shop-id 1 --username cashier --full-name "Front Desk" --role cashier
# - python -m flask users token --username cashier [--shop-id 1]
#   Issue a bearer token (printed once; only its hash is stored).

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Shop, User
from .services import session_service


@click.group('system')
def system_group():
    """System maintenance commands."""


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

    click.echo("PASS Database reset complete. Create a shop with 'python -m flask shops create'.")


# =============================================================================
# SHOP MANAGEMENT COMMANDS
# =============================================================================

@click.group('shops')
def shops_group():
    """Shop (tenant) management commands."""


@shops_group.command('list')
@with_appcontext
def list_shops():
    """List all shops."""
    shops = db.session.query(Shop).order_by(Shop.id).all()

    if not shops:
        click.echo("No shops found.")
        return

    click.echo("\n" + "="*70)
    click.echo(f"{'ID':<5} {'Name':<30} {'Code':<15} {'Active':<8} {'Users'}")
    click.echo("="*70)

    for shop in shops:
        user_count = db.session.query(User).filter_by(shop_id=shop.id).count()
        active_str = "Yes" if shop.is_active else "No"
        click.echo(f"{shop.id:<5} {shop.name:<30} {shop.code or '-':<15} {active_str:<8} {user_count}")

    click.echo("="*70 + "\n")


@shops_group.command('create')
@click.option('--name', required=True, help='Shop name')
@click.option('--code', required=True, help='Short code (unique)')
@with_appcontext
def create_shop_cli(name, code):
    """Create a new shop (tenant)."""
    existing = db.session.query(Shop).filter_by(code=code).first()
    if existing:
        click.echo(f"FAIL Shop with code '{code}' already exists")
        return

    shop = Shop(name=name, code=code, is_active=True)
    db.session.add(shop)
    db.session.commit()

    click.echo(f"PASS Created shop: {shop.name} (ID: {shop.id}, Code: {shop.code})")


# =============================================================================
# USER MANAGEMENT COMMANDS
# =============================================================================

@click.group('users')
def users_group():
    """User bootstrap and token commands."""


@users_group.command('create')
@click.option('--shop-id', type=int, required=True, help='Shop ID')
@click.option('--username', prompt=True, help='Username')
@click.option('--full-name', default=None, help='Display name')
@click.option('--role', type=click.Choice(['admin', 'manager', 'cashier']), default='cashier', help='Role')
@with_appcontext
def create_user_cli(shop_id, username, full_name, role):
    """Create a user in a shop."""
    shop = db.session.query(Shop).filter_by(id=shop_id).first()
    if not shop:
        click.echo(f"FAIL Shop ID {shop_id} not found")
        return

    existing = db.session.query(User).filter_by(shop_id=shop_id, username=username).first()
    if existing:
        click.echo(f"FAIL User '{username}' already exists in shop {shop_id}")
        return

    user = User(shop_id=shop_id, username=username, full_name=full_name, role=role, is_active=True)
    db.session.add(user)
    db.session.commit()

    click.echo(f"PASS Created user: {user.username} (ID: {user.id}) in shop '{shop.name}'")


@users_group.command('token')
@click.option('--username', required=True, help='Username')
@click.option('--shop-id', type=int, help='Shop ID (required when the username exists in several shops)')
@with_appcontext
def issue_token_cli(username, shop_id):
    """Issue a bearer token for a user."""
    query = db.session.query(User).filter_by(username=username)
    if shop_id:
        query = query.filter_by(shop_id=shop_id)
    users = query.all()

    if not users:
        click.echo(f"FAIL User '{username}' not found")
        return
    if len(users) > 1:
        click.echo(f"FAIL User '{username}' exists in several shops; pass --shop-id")
        return

    try:
        session, token = session_service.create_session(users[0].id)
    except ValueError as e:
        click.echo(f"FAIL {e}")
        return

    click.echo(f"PASS Token for {username} (shop {session.shop_id}, expires {session.expires_at:%Y-%m-%d %H:%M} UTC):")
    click.echo(token)


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(shops_group)
    app.cli.add_command(users_group)
