# rentals/billing/auto_invoice.py
from dataclasses import dataclass, field
from datetime import date

from dateutil.relativedelta import relativedelta
from flask import current_app
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from rentals.billing.calculator import calculate_invoice
from rentals.billing.invoices import due_date_for
from rentals.errors import InfrastructureError, RentalsError
from rentals.extensions import db
from rentals.models import Contract, Invoice, MeterReading
from rentals.models.billing import reference_date


@dataclass
class AutoInvoiceResult:
    created_count: int = 0
    total_active_contracts: int = 0
    errors: list = field(default_factory=list)

    def to_dict(self):
        return {
            "created_count": self.created_count,
            "total_active_contracts": self.total_active_contracts,
            "errors": list(self.errors),
        }


def active_contracts_query(today: date):
    return Contract.query.filter(
        Contract.status == "active",
        Contract.start_date <= today,
        Contract.end_date >= today,
    )


def auto_due_date(payment_day: int, today: date) -> date:
    """Payment day of the current month, or of next month when already past."""
    due = due_date_for(payment_day, today.month, today.year)
    if due < today:
        nxt = today + relativedelta(months=1)
        due = due_date_for(payment_day, nxt.month, nxt.year)
    return due


def _build_invoice(contract: Contract, reading: MeterReading, today: date) -> Invoice:
    month, year = today.month, today.year
    room = contract.room

    first_period = contract.start_date.month == month and contract.start_date.year == year
    if first_period:
        elec_start = contract.electricity_start or 0
        water_start = contract.water_start or 0
    else:
        elec_start = reading.electricity_old
        water_start = reading.water_old

    totals = calculate_invoice(
        rent=contract.rent,
        electricity_rate=contract.electricity_rate,
        water_rate=contract.water_rate,
        electricity_start=elec_start,
        electricity_end=reading.electricity_new,
        water_start=water_start,
        water_end=reading.water_new,
        service_fees=contract.service_fees,
    )
    for warning in totals.warnings:
        current_app.logger.warning("auto-invoice room %s %s/%s: %s", room.code, month, year, warning)

    return Invoice(
        code=f"HD{year}{month:02d}{room.code}",
        contract_id=contract.id,
        room_id=room.id,
        tenant_id=contract.representative_id,
        month=month,
        year=year,
        rent=contract.rent,
        electricity_start=elec_start,
        electricity_end=reading.electricity_new,
        electricity_usage=totals.electricity_usage,
        electricity_rate=contract.electricity_rate,
        electricity_cost=totals.electricity_cost,
        water_start=water_start,
        water_end=reading.water_new,
        water_usage=totals.water_usage,
        water_rate=contract.water_rate,
        water_cost=totals.water_cost,
        service_fees=list(contract.service_fees or []),
        total=totals.total,
        paid=0,
        remaining=totals.total,
        status="unpaid",
        due_date=auto_due_date(contract.payment_day, today),
    )


def generate_monthly_invoices(today=None) -> AutoInvoiceResult:
    """
    Create this month's invoice for every contract running today.

    Contracts already invoiced are skipped. A contract whose room has no
    meter reading for the month, or whose invoice fails to save, is reported
    in ``errors`` and the batch carries on. A database outage aborts the run
    with InfrastructureError.
    """
    today = today or date.today()
    month, year = today.month, today.year

    contracts = active_contracts_query(today).all()
    result = AutoInvoiceResult(total_active_contracts=len(contracts))

    with reference_date(today):
        for contract in contracts:
            if Invoice.query.filter_by(contract_id=contract.id, month=month, year=year).first():
                continue

            reading = MeterReading.query.filter_by(room_id=contract.room_id, month=month, year=year).first()
            if reading is None:
                result.errors.append(f"No meter reading for room {contract.room.code} for {month}/{year}")
                continue

            try:
                with db.session.begin_nested():
                    db.session.add(_build_invoice(contract, reading, today))
            except OperationalError as exc:
                db.session.rollback()
                raise InfrastructureError() from exc
            except (SQLAlchemyError, RentalsError) as exc:
                current_app.logger.exception("auto-invoice failed for contract %s", contract.code)
                result.errors.append(f"Could not create invoice for contract {contract.code}: {exc}")
                continue

            result.created_count += 1

        db.session.commit()
    current_app.logger.info(
        "auto-invoice %s/%s: %s created, %s active contracts, %s errors",
        month, year, result.created_count, result.total_active_contracts, len(result.errors),
    )
    return result


def auto_invoice_preconditions(today=None) -> dict:
    today = today or date.today()
    month, year = today.month, today.year

    contracts = active_contracts_query(today).all()
    read_rooms = {
        r.room_id
        for r in MeterReading.query.filter_by(month=month, year=year).all()
    }
    missing = sum(1 for c in contracts if c.room_id not in read_rooms)

    return {
        "current_month": month,
        "current_year": year,
        "active_contracts_count": len(contracts),
        "existing_invoices_count": Invoice.query.filter_by(month=month, year=year).count(),
        "contracts_without_readings_count": missing,
        "can_run": len(contracts) > 0 and missing == 0,
    }
