"""
Order totals and numbering.

A line costs ``price * quantity`` plus the price of each chosen customization
(customizations are charged once per line, not per unit). Tax and service
charge are percentages of the subtotal, each rounded to cents before they are
added, so the stored total is always the sum of the printed receipt lines. It
can differ by a cent from rounding ``subtotal * 1.15`` in one step.
"""

from datetime import date
from typing import Iterable, Optional

import config


def line_subtotal(price: float, quantity: int, customizations: Iterable = ()) -> float:
    extra = sum(c.price for c in customizations)
    return round(price * quantity + extra, 2)


def order_totals(subtotal: float, tax_rate: float = None, service_rate: float = None) -> dict:
    tax_rate = config.TAX_RATE if tax_rate is None else tax_rate
    service_rate = config.SERVICE_CHARGE_RATE if service_rate is None else service_rate
    tax = round(subtotal * tax_rate, 2)
    service_charge = round(subtotal * service_rate, 2)
    return {
        "subtotal": round(subtotal, 2),
        "tax": tax,
        "service_charge": service_charge,
        "total": round(subtotal + tax + service_charge, 2),
    }


def order_number_prefix(day: Optional[date] = None) -> str:
    return f"{(day or date.today()):%y%m%d}"


def next_order_number(latest: Optional[str], day: Optional[date] = None) -> str:
    """YYMMDD followed by a three digit sequence that restarts every day."""
    prefix = order_number_prefix(day)
    sequence = 1
    if latest and latest.startswith(prefix):
        sequence = int(latest[-3:]) + 1
    return f"{prefix}{sequence:03d}"
