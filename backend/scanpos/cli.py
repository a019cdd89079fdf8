# Overview: Flask CLI command groups for bootstrap, staff tokens, settings, and maintenance.

# backend/scanpos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, the shop settings row, and an admin profile.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed-products
#   Insert a handful of demo products if the catalog is empty.
#
# Staff profiles and tokens:
# - python -m flask staff create --username ama --role STAFF
# - python -m flask staff list
# - python -m flask staff deactivate --username ama
# - python -m flask staff issue-token --username ama [--ttl-hours 12]
#   Prints a bearer token once; only its hash is stored.
#
# Settings:
# - python -m flask settings scan on|off
#
# Maintenance:
# - python -m flask maintenance cancel-stale-sales --older-than-minutes 120 [--dry-run]
#   Cancel PENDING scan sales older than the given age, releasing their codes.

import click
from datetime import timedelta
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import Product, StaffProfile
from .models.auth import ROLE_ADMIN, STAFF_ROLES
from .services import catalog_service, maintenance_service, settings_service, staff_service, token_service
from .services.staff_service import StaffError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--admin-username', default='admin', show_default=True, help='Admin profile username')
@with_appcontext
def init_system(admin_username):
    """
    Initialize the shop: schema, settings row (scan off) and an admin profile.

    Safe to re-run.
    """
    click.echo("START Initializing shop...")

    db.create_all()
    click.echo("PASS Schema ready")

    if settings_service.get_shop_settings() is None:
        settings_service.set_scan_enabled(False)
        click.echo("PASS Created shop settings (customer scan disabled)")
    else:
        state = "enabled" if settings_service.is_scan_enabled() else "disabled"
        click.echo(f"PASS Using existing shop settings (customer scan {state})")

    admin = staff_service.get_staff_by_username(admin_username)
    if admin is None:
        admin = staff_service.create_staff(admin_username, role=ROLE_ADMIN, display_name="Administrator")
        click.echo(f"PASS Created admin profile: {admin.username} (ID: {admin.id})")
    else:
        click.echo(f"PASS Using existing admin profile: {admin.username} (ID: {admin.id})")

    click.echo("DONE Run 'python -m flask staff issue-token --username "
               f"{admin.username}' to get a token.")


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


DEMO_PRODUCTS = [
    ("WATER-500", "Bottled Water 500ml", 300),
    ("BREAD-LOAF", "Sliced Bread", 1500),
    ("MILK-1L", "Fresh Milk 1L", 1250),
    ("RICE-5KG", "Rice 5kg", 9500),
]


@system_group.command('seed-products')
@with_appcontext
def seed_products():
    """Insert demo products when the catalog is empty."""
    if db.session.query(Product).count():
        click.echo("SKIP Catalog already has products.")
        return

    for sku, name, price_cents in DEMO_PRODUCTS:
        product = catalog_service.create_product(name, price_cents, sku=sku)
        click.echo(f"PASS {product.id:<5} {product.sku:<12} {product.name:<24} {product.price_cents}")


@click.group('staff')
def staff_group():
    """Staff profile and token commands."""


@staff_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--role', type=click.Choice(list(STAFF_ROLES), case_sensitive=False), default='STAFF', show_default=True)
@click.option('--display-name', default=None, help='Name shown on receipts')
@with_appcontext
def create_staff_cli(username, role, display_name):
    """Create a staff profile."""
    try:
        staff = staff_service.create_staff(username, role=role, display_name=display_name)
    except StaffError as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Created {staff.role} {staff.username} (ID: {staff.id}, "
               f"login: {staff_service.staff_email_from_username(staff.username)})")


@staff_group.command('list')
@with_appcontext
def list_staff():
    """List staff profiles."""
    staff_members = db.session.query(StaffProfile).order_by(StaffProfile.id).all()

    if not staff_members:
        click.echo("No staff found.")
        return

    click.echo("\n" + "="*70)
    click.echo(f"{'ID':<5} {'Username':<20} {'Role':<8} {'Active':<8} {'Name'}")
    click.echo("="*70)

    for staff in staff_members:
        active_str = "Yes" if staff.is_active else "No"
        click.echo(f"{staff.id:<5} {staff.username:<20} {staff.role:<8} {active_str:<8} {staff.display_name or ''}")

    click.echo("="*70 + "\n")


@staff_group.command('deactivate')
@click.option('--username', required=True)
@with_appcontext
def deactivate_staff(username):
    """Deactivate a profile and revoke its tokens."""
    staff = staff_service.get_staff_by_username(username)
    if not staff:
        raise click.ClickException(f"Unknown staff username: {username}")

    staff_service.set_active(staff.id, False)
    revoked = token_service.revoke_all_for_staff(staff.id)
    click.echo(f"PASS Deactivated {staff.username}; revoked {revoked} token(s).")


@staff_group.command('issue-token')
@click.option('--username', required=True)
@click.option('--ttl-hours', type=int, default=None, help='Defaults to ACCESS_TOKEN_TTL_HOURS')
@with_appcontext
def issue_token_cli(username, ttl_hours):
    """Issue a bearer token for a staff member (printed once)."""
    staff = staff_service.get_staff_by_username(username)
    if not staff:
        raise click.ClickException(f"Unknown staff username: {username}")

    hours = ttl_hours or current_app.config.get("ACCESS_TOKEN_TTL_HOURS", 12)
    try:
        record, plaintext = token_service.issue_token(staff.id, ttl=timedelta(hours=hours))
    except ValueError as e:
        raise click.ClickException(str(e))

    click.echo(f"Token for {staff.username} (expires {record.expires_at.isoformat()}Z):")
    click.echo(plaintext)


@click.group('settings')
def settings_group():
    """Shop settings commands."""


@settings_group.command('scan')
@click.argument('state', type=click.Choice(['on', 'off'], case_sensitive=False))
@with_appcontext
def scan_setting_cli(state):
    """Turn customer self-checkout on or off."""
    settings = settings_service.set_scan_enabled(state.lower() == 'on')
    click.echo(f"Customer scan {'enabled' if settings.enable_customer_scan else 'disabled'}.")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cancel-stale-sales')
@click.option('--older-than-minutes', type=click.IntRange(min=1), required=True,
              help='Age after which a PENDING scan sale is considered abandoned')
@click.option('--dry-run', is_flag=True, help='Only report how many would be cancelled')
@with_appcontext
def cancel_stale_sales_cli(older_than_minutes, dry_run):
    """
    Cancel abandoned PENDING scan sales so their codes can be reused.

    There is no default age on purpose; pick one that matches how long
    customers may take to reach the counter.
    """
    if dry_run:
        count = maintenance_service.count_stale_pending_sales(older_than_minutes=older_than_minutes)
        click.echo(f"{count} PENDING scan sale(s) older than {older_than_minutes} minutes would be cancelled.")
        return

    cancelled = maintenance_service.cancel_stale_pending_sales(older_than_minutes=older_than_minutes)
    current_app.logger.info("Cancelled %s stale pending sales (older than %s min)", cancelled, older_than_minutes)
    click.echo(f"Cancelled {cancelled} PENDING scan sale(s) older than {older_than_minutes} minutes.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(staff_group)
    app.cli.add_command(settings_group)
    app.cli.add_command(maintenance_group)
