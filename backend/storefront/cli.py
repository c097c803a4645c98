# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/storefront/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--email admin@admin.com --password "..." --name "Admin User"]
#   Create tables if missing and the seed admin account (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Accounts:
# - python -m flask users list [--role seller]
#   List accounts with their roles.
# - python -m flask users create-seller --email s@example.com --username seller1 --name "Sam" --password "..."
#   Create a seller account (prompts if options are omitted).
#
# Catalog:
# - python -m flask products list [--low-stock 5]
#   List products with price and stock.

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import StorefrontError
from .extensions import db
from .models import Product, User
from .permissions import ROLES
from .services import auth_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--email', default=None, help='Admin email (defaults to ADMIN_EMAIL)')
@click.option('--password', default=None, help='Admin password (prompted if omitted)')
@click.option('--name', default='Admin User', help='Admin display name')
@with_appcontext
def init_system(email, password, name):
    """
    Initialize the storefront: create tables and the seed admin account.

    Running it again leaves an existing admin untouched.
    """
    email = email or current_app.config["ADMIN_EMAIL"]

    click.echo("START Initializing storefront...")
    db.create_all()
    click.echo("PASS Tables ready")

    existing = db.session.query(User).filter(User.email == email.strip().lower()).first()
    if existing:
        click.echo(f"WARN  Account '{email}' already exists (role: {existing.role}), skipping...")
        return

    if not password:
        password = click.prompt('Admin password', hide_input=True, confirmation_prompt=True)

    try:
        user, _ = auth_service.ensure_admin(email=email, password=password, name=name)
    except StorefrontError as e:
        raise click.ClickException(e.message)

    click.echo(f"PASS Created admin: {user.email} (username: {user.username}, ID: {user.id})")
    click.echo("\nSECURITY Keep this password safe; it is the only admin account.")


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
    """Account inspection and creation."""


@users_group.command('list')
@click.option('--role', type=click.Choice(ROLES), help='Filter by role')
@with_appcontext
def list_users(role):
    """List all accounts with their roles."""
    query = db.session.query(User)
    if role:
        query = query.filter_by(role=role)

    users = query.order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Role':<10} {'Username':<20} {'Email':<35} {'Name'}")
    click.echo("="*90)

    for user in users:
        click.echo(f"{user.id:<5} {user.role:<10} {user.username or '-':<20} {user.email:<35} {user.name}")

    click.echo("="*90 + "\n")


@users_group.command('create-seller')
@click.option('--email', prompt=True, help='Email address')
@click.option('--username', prompt=True, help='Login username')
@click.option('--name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_seller(email, username, name, password):
    """Create a seller account."""
    try:
        user = auth_service.create_seller(email=email, password=password, name=name, username=username)
    except StorefrontError as e:
        raise click.ClickException(e.message)

    click.echo(f"PASS Created seller: {user.username} ({user.email}) ID: {user.id}")


@click.group('products')
def products_group():
    """Catalog inspection."""


@products_group.command('list')
@click.option('--low-stock', type=int, default=None, help='Only show products at or below this stock')
@with_appcontext
def list_products(low_stock):
    """List catalog products."""
    query = db.session.query(Product)
    if low_stock is not None:
        query = query.filter(Product.stock <= low_stock)
    products = query.order_by(Product.name.asc(), Product.id.asc()).all()

    if not products:
        click.echo("No products found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Name':<40} {'Price':>12} {'Stock':>8}")
    click.echo("="*80)
    for p in products:
        click.echo(f"{p.id:<5} {p.name[:40]:<40} {p.price_cents / 100:>12.2f} {p.stock:>8}")
    click.echo("="*80 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(products_group)
