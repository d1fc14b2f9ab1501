# rentals/billing/calculator.py
# Pure helpers: no database, no Flask. Amounts are integer đồng.
from dataclasses import dataclass, field


@dataclass
class InvoiceTotals:
    electricity_usage: int
    water_usage: int
    electricity_cost: int
    water_cost: int
    fees_total: int
    total: int
    warnings: list = field(default_factory=list)


def compute_usage(start, end) -> int:
    """Meter delta, never negative."""
    delta = int(end or 0) - int(start or 0)
    return delta if delta > 0 else 0


def sum_fees(service_fees) -> int:
    total = 0
    for fee in service_fees or []:
        price = fee.get("price") if isinstance(fee, dict) else getattr(fee, "price", 0)
        total += int(price or 0)
    return total


def calculate_invoice(
    *,
    rent: int,
    electricity_rate: int,
    water_rate: int,
    electricity_start: int,
    electricity_end: int,
    water_start: int,
    water_end: int,
    service_fees=None,
) -> InvoiceTotals:
    """
    Usage, cost and total for one billing period.

    A meter that reads lower than its start value (rollover or a typo) is
    billed at zero usage and reported in ``warnings`` so the caller can log it.
    """
    warnings = []
    if int(electricity_end or 0) < int(electricity_start or 0):
        warnings.append(f"electricity meter went backwards ({electricity_start} -> {electricity_end})")
    if int(water_end or 0) < int(water_start or 0):
        warnings.append(f"water meter went backwards ({water_start} -> {water_end})")

    elec_usage = compute_usage(electricity_start, electricity_end)
    water_usage = compute_usage(water_start, water_end)

    elec_cost = elec_usage * int(electricity_rate or 0)
    water_cost = water_usage * int(water_rate or 0)
    fees_total = sum_fees(service_fees)

    return InvoiceTotals(
        electricity_usage=elec_usage,
        water_usage=water_usage,
        electricity_cost=elec_cost,
        water_cost=water_cost,
        fees_total=fees_total,
        total=int(rent or 0) + elec_cost + water_cost + fees_total,
        warnings=warnings,
    )
