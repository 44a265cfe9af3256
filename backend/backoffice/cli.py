# Overview: Flask CLI command groups for bootstrap, data resets, invoices, and maintenance.

# backend/backoffice/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Admin credential:
# - python -m flask admin hash-password
#   Prompt for a password and print the bcrypt hash for ADMIN_PASSWORD_HASH.
#
# Stored records:
# - python -m flask data reset --yes [--collection sales]
#   Clear products, sales, quotations or everything (default: all).
#
# Invoices:
# - python -m flask invoices render <sale_id> --out invoice.pdf
#   Render a sale's invoice PDF to a file.
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions --older-than-days 30
#   Delete expired/inactive admin sessions older than the retention window.

import click
from flask.cli import with_appcontext

from .extensions import db
from .services.auth_service import hash_password
from .services import reporting_service, session_service
from .services.business_profile import current_business_info
from .services.invoice_layout import invoice_filename
from .services.invoice_pdf import current_invoice_fonts, render_invoice_pdf
from .services.products_service import reset_products
from .services.quotations_service import reset_quotations
from .services.sales_service import get_sale, reset_sales


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA, sessions and audit history included!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('admin')
def admin_group():
    """Admin credential commands."""


@admin_group.command('hash-password')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
def hash_password_cli(password):
    """Print a bcrypt hash suitable for ADMIN_PASSWORD_HASH."""
    if not password:
        raise click.BadParameter("Password cannot be empty", param_hint="--password")
    click.echo(hash_password(password))


@click.group('data')
def data_group():
    """Stored record commands."""


_RESETTERS = {
    'products': reset_products,
    'sales': reset_sales,
    'quotations': reset_quotations,
    'all': reporting_service.reset_all,
}


@data_group.command('reset')
@click.option('--collection', type=click.Choice(list(_RESETTERS)), default='all', show_default=True)
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_data(collection, yes):
    """
    Clear stored records.

    Only --collection all clears the monthly invoice counters.
    """
    if not yes:
        click.confirm(f"WARN This will DELETE stored {collection} records. Are you sure?", abort=True)

    _RESETTERS[collection]()
    click.echo(f"PASS Cleared {collection}.")


@click.group('invoices')
def invoices_group():
    """Invoice commands."""


@invoices_group.command('render')
@click.argument('sale_id')
@click.option('--out', 'out_path', type=click.Path(dir_okay=False, writable=True), default=None,
              help='Output file (default: Invoice_<number>.pdf)')
@with_appcontext
def render_invoice(sale_id, out_path):
    """Render the invoice PDF for a sale."""
    sale = get_sale(sale_id)
    if sale is None:
        raise click.ClickException(f"Sale {sale_id} not found")

    pdf_bytes = render_invoice_pdf(sale, current_business_info(), current_invoice_fonts())
    out_path = out_path or invoice_filename(sale)
    with open(out_path, "wb") as fh:
        fh.write(pdf_bytes)
    click.echo(f"PASS Wrote {out_path} ({len(pdf_bytes)} bytes)")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-sessions')
@click.option('--older-than-days', type=int, default=30, show_default=True)
@with_appcontext
def cleanup_sessions_cli(older_than_days):
    """Delete expired or inactive admin sessions."""
    deleted = session_service.cleanup_expired_sessions(older_than_days=older_than_days)
    click.echo(f"Deleted {deleted} sessions older than {older_than_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(admin_group)
    app.cli.add_command(data_group)
    app.cli.add_command(invoices_group)
    app.cli.add_command(maintenance_group)
