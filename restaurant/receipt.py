"""Plain-text receipts for the thermal printer (48 columns)."""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

RULE = "-" * 48

HEADER = [
    "                RESTAURANT MANAGEMENT                ",
    "                123 Restaurant Street                ",
    "                   City, Country                    ",
    "                Tel: (123) 456-7890                 ",
]

FOOTER = [
    "",
    "            Thank you for dining with us!",
    "                Please come again",
    RULE,
]


def _item_line(item: Dict[str, Any]) -> str:
    menu_item = item.get("menu_item")
    name = menu_item.get("name") if isinstance(menu_item, dict) else None
    if not name:
        raise ValueError("Menu item name is missing")
    quantity = item["quantity"]
    subtotal = item["subtotal"]
    return f"{name:<22}{quantity:>5}{subtotal / quantity:>7.2f}{subtotal:>8.2f}"


def generate_receipt(order: Dict[str, Any], printed_at: Optional[datetime] = None) -> str:
    """Render an order whose ``menu_item`` and ``waiter`` references are populated."""
    printed_at = printed_at or datetime.now()
    waiter = order.get("waiter")
    waiter_name = waiter.get("name") if isinstance(waiter, dict) else None

    lines = HEADER + [
        RULE,
        f"Order #: {order['order_number']}",
        f"Date: {printed_at:%Y-%m-%d %H:%M:%S}",
        f"Table: {order['table']}",
        f"Waiter: {waiter_name or 'Unknown'}",
        RULE,
        "ITEM                  QTY   PRICE   TOTAL",
        RULE,
    ]
    lines += [_item_line(item) for item in order["items"]]
    lines += [
        RULE,
        f"Subtotal:{order['subtotal']:>32.2f}",
        f"Tax:{order['tax']:>37.2f}",
        f"Service Charge:{order['service_charge']:>27.2f}",
        RULE,
        f"TOTAL:{order['total']:>35.2f}",
        RULE,
        "",
        f"                Payment Method: {order.get('payment_method') or 'N/A'}",
        f"                Payment Status: {'PAID' if order.get('payment_status') else 'UNPAID'}",
    ]
    logger.debug("Receipt rendered for order %s", order["order_number"])
    return "\n".join(lines + FOOTER)
