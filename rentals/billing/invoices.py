# rentals/billing/invoices.py
import calendar
import random
from datetime import date

from flask import current_app
from sqlalchemy import and_, or_

from rentals.billing.calculator import calculate_invoice
from rentals.errors import NotFoundError, ValidationError
from rentals.extensions import db
from rentals.models import Contract, Invoice
from rentals.models.billing import reference_date


def due_date_for(payment_day: int, month: int, year: int) -> date:
    """The contract's payment day inside (month, year), clamped to the last day."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(max(int(payment_day or 1), 1), last_day))


def generate_invoice_code(today=None) -> str:
    """HD<YYYYMMDD><3 digits>, retried until unused."""
    today = today or date.today()
    prefix = f"HD{today:%Y%m%d}"
    while True:
        code = f"{prefix}{random.randint(0, 999):03d}"
        if not Invoice.query.filter_by(code=code).first():
            return code


def previous_invoice(contract_id: int, month: int, year: int):
    return (
        Invoice.query
        .filter(Invoice.contract_id == contract_id)
        .filter(or_(Invoice.year < year, and_(Invoice.year == year, Invoice.month < month)))
        .order_by(Invoice.year.desc(), Invoice.month.desc())
        .first()
    )


def latest_reading(contract: Contract, month: int, year: int) -> dict:
    """Starting meter values for the invoice of (month, year)."""
    last = previous_invoice(contract.id, month, year)
    if last is not None:
        return {
            "electricity_start": last.electricity_end or 0,
            "water_start": last.water_end or 0,
            "is_first_invoice": False,
            "last_invoice_period": f"{last.month}/{last.year}",
        }
    return {
        "electricity_start": contract.electricity_start or 0,
        "water_start": contract.water_start or 0,
        "is_first_invoice": True,
        "last_invoice_period": None,
    }


def _get_contract(contract_id) -> Contract:
    contract = db.session.get(Contract, contract_id)
    if contract is None:
        raise NotFoundError("Contract not found")
    return contract


def _apply_totals(invoice: Invoice, contract: Contract) -> None:
    totals = calculate_invoice(
        rent=invoice.rent,
        electricity_rate=contract.electricity_rate,
        water_rate=contract.water_rate,
        electricity_start=invoice.electricity_start,
        electricity_end=invoice.electricity_end,
        water_start=invoice.water_start,
        water_end=invoice.water_end,
        service_fees=invoice.service_fees,
    )
    for warning in totals.warnings:
        current_app.logger.warning("invoice %s: %s", invoice.code, warning)

    invoice.electricity_rate = contract.electricity_rate
    invoice.water_rate = contract.water_rate
    invoice.electricity_usage = totals.electricity_usage
    invoice.water_usage = totals.water_usage
    invoice.electricity_cost = totals.electricity_cost
    invoice.water_cost = totals.water_cost
    invoice.total = totals.total


def create_invoice(data: dict, today=None) -> Invoice:
    today = today or date.today()
    contract = _get_contract(data["contract_id"])
    month, year = data["month"], data["year"]

    if Invoice.query.filter_by(contract_id=contract.id, month=month, year=year).first():
        raise ValidationError(f"An invoice for {month}/{year} already exists for this contract")

    code = (data.get("code") or "").strip().upper()
    if not code or Invoice.query.filter_by(code=code).first():
        code = generate_invoice_code(today)

    start = latest_reading(contract, month, year)
    elec_start = data.get("electricity_start")
    water_start = data.get("water_start")
    if elec_start is None:
        elec_start = start["electricity_start"]
    if water_start is None:
        water_start = start["water_start"]

    elec_end = data.get("electricity_end")
    water_end = data.get("water_end")

    fees = data.get("service_fees")
    if fees is None:
        fees = list(contract.service_fees or [])

    rent = data.get("rent")
    invoice = Invoice(
        code=code,
        contract_id=contract.id,
        room_id=contract.room_id,
        tenant_id=contract.representative_id,
        month=month,
        year=year,
        rent=contract.rent if rent is None else rent,
        electricity_start=elec_start,
        electricity_end=elec_start if elec_end is None else elec_end,
        water_start=water_start,
        water_end=water_start if water_end is None else water_end,
        service_fees=fees,
        paid=0,
        due_date=data.get("due_date") or due_date_for(contract.payment_day, month, year),
        note=data.get("note"),
    )
    _apply_totals(invoice, contract)

    with reference_date(today):
        db.session.add(invoice)
        db.session.commit()
    current_app.logger.info("invoice %s created for contract %s (%s)", invoice.code, contract.code, invoice.total)
    return invoice


def update_invoice(invoice: Invoice, data: dict) -> Invoice:
    """
    Recompute an invoice from edited readings, fees or rent.

    ``paid`` belongs to the payment ledger and ``status`` is derived, so both
    are ignored here.
    """
    contract = _get_contract(data.get("contract_id") or invoice.contract_id)
    if contract.id != invoice.contract_id:
        invoice.contract_id = contract.id
        invoice.room_id = contract.room_id
        invoice.tenant_id = contract.representative_id

    old_period = (invoice.month, invoice.year)
    for field in (
        "rent", "electricity_start", "electricity_end", "water_start", "water_end",
        "service_fees", "due_date", "note", "month", "year",
    ):
        if data.get(field) is not None:
            setattr(invoice, field, data[field])
    # a moved period without an explicit due date gets that period's due date
    if (invoice.month, invoice.year) != old_period and data.get("due_date") is None:
        invoice.due_date = due_date_for(contract.payment_day, invoice.month, invoice.year)

    code = (data.get("code") or "").strip().upper()
    with db.session.no_autoflush:
        if code and code != invoice.code:
            if Invoice.query.filter(Invoice.code == code, Invoice.id != invoice.id).first():
                raise ValidationError(f"Invoice code {code} is already in use")
            invoice.code = code

        clash = Invoice.query.filter(
            Invoice.contract_id == invoice.contract_id,
            Invoice.month == invoice.month,
            Invoice.year == invoice.year,
            Invoice.id != invoice.id,
        ).first()
    if clash:
        raise ValidationError(f"An invoice for {invoice.month}/{invoice.year} already exists for this contract")

    _apply_totals(invoice, contract)
    if invoice.total < (invoice.paid or 0):
        raise ValidationError("Invoice total cannot be lower than the amount already paid")

    db.session.commit()
    return invoice


def delete_invoice(invoice: Invoice) -> None:
    # payments go with it (cascade)
    db.session.delete(invoice)
    db.session.commit()
    current_app.logger.info("invoice %s deleted", invoice.code)
