# rentals/cli.py
from datetime import datetime

import click
from flask.cli import AppGroup, with_appcontext

from rentals.billing.auto_invoice import generate_monthly_invoices
from rentals.billing.ledger import reconcile_invoice
from rentals.billing.status import refresh_all
from rentals.extensions import db
from rentals.models import Invoice, User
from rentals.models.auth import ROLES
from rentals.models.billing import reference_date

rentals_cli = AppGroup("rentals", help="Billing and housekeeping jobs.")


def _parse_day(value):
    if not value:
        return None
    return datetime.strptime(value, "%Y-%m-%d").date()


@click.command("user-create")
@click.argument("email")
@click.argument("password")
@click.option("--name", default="Admin")
@click.option("--role", default="admin", type=click.Choice(ROLES))
@with_appcontext
def user_create(email, password, name, role):
    """Create a user with the given credentials."""
    email = email.strip().lower()
    if User.query.filter_by(email=email).first():
        click.echo(f"User already exists: {email}")
        return
    u = User(name=name, email=email, role=role)
    u.set_password(password)
    db.session.add(u)
    db.session.commit()
    click.echo(f"Created user: {email}")


@rentals_cli.command("auto-invoice")
@click.option("--date", "day", default=None, help="Run as if today were YYYY-MM-DD.")
def auto_invoice_cmd(day):
    """Create this month's invoices for every running contract."""
    result = generate_monthly_invoices(_parse_day(day))
    click.echo(f"Created {result.created_count} of {result.total_active_contracts} invoice(s)")
    for err in result.errors:
        click.echo(f"  - {err}", err=True)


@rentals_cli.command("refresh-status")
@click.option("--date", "day", default=None, help="Reference date YYYY-MM-DD.")
def refresh_status_cmd(day):
    """Recompute cached room and tenant statuses."""
    counts = refresh_all(_parse_day(day))
    db.session.commit()
    click.echo(f"Refreshed {counts['rooms']} room(s) and {counts['tenants']} tenant(s)")


@rentals_cli.command("reconcile")
@click.option("--fix", is_flag=True, help="Overwrite paid amounts with the sum of payments.")
@click.option("--date", "day", default=None, help="Settle fixed invoices as of YYYY-MM-DD.")
def reconcile_cmd(fix, day):
    """Check every invoice's paid amount against its payments."""
    today = _parse_day(day)
    mismatches = 0
    with reference_date(today):
        for invoice in Invoice.query.order_by(Invoice.id).all():
            recorded, actual = reconcile_invoice(invoice, fix=fix, today=today)
            if recorded != actual:
                mismatches += 1
                click.echo(f"{invoice.code}: paid={recorded} payments={actual}")
        if fix and mismatches:
            db.session.commit()
    click.echo(f"{mismatches} mismatch(es){' fixed' if fix and mismatches else ''}")


def register_cli(app):
    app.cli.add_command(user_create)
    app.cli.add_command(rentals_cli)
