"""
Orders

Placing an order checks stock per part across all lines, stores the order with a price
snapshot per line and then decrements stock. The sequence is not
transactional: two concurrent orders can both pass the stock check.
"""

import logging
import random
from collections import defaultdict
from datetime import date, datetime, time
from typing import Any, Callable, Dict, Iterable, List, Optional

from bson import ObjectId
from fastapi import APIRouter, Depends, HTTPException

from database import create_document, get_document, get_documents, serialize, update_document

from .deps import current_user, get_db
from .parts import populate_categories
from .schemas import Order, OrderItem, OrderPayload, OrderStatus, OrderStatusPayload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"], dependencies=[Depends(current_user)])


def generate_order_number(taken: Callable[[str], bool], today: Optional[date] = None) -> str:
    """ORD-YYMMDD-NNNN with a random suffix, redrawn while ``taken`` says it exists."""
    today = today or date.today()
    while True:
        number = f"ORD-{today:%y%m%d}-{random.randint(0, 9998):04d}"
        if not taken(number):
            return number


def order_total(items: Iterable[OrderItem]) -> float:
    return round(sum(item.price * item.quantity for item in items), 2)


def sales_summary(orders: List[Dict[str, Any]]) -> Dict[str, Any]:
    total_sales = 0.0
    by_method = defaultdict(float)
    for o in orders:
        total_sales += o["total_amount"]
        by_method[o.get("payment_method") or "UNPAID"] += o["total_amount"]
    return {"total_sales": round(total_sales, 2), "sales_by_payment_method": dict(by_method)}


def populate_order_parts(db, orders: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    ids = {item["part"] for o in orders for item in o.get("items", []) if ObjectId.is_valid(item["part"])}
    parts = populate_categories(db, list(db["part"].find({"_id": {"$in": [ObjectId(i) for i in ids]}})))
    by_id = {str(p["_id"]): p for p in parts}
    for o in orders:
        for item in o.get("items", []):
            item["part"] = by_id.get(item["part"], item["part"])
    return orders


def _adjust_stock(db, items: Iterable[Dict[str, Any]], sign: int):
    for item in items:
        db["part"].update_one(
            {"_id": ObjectId(item["part"])},
            {"$inc": {"quantity": sign * item["quantity"]}},
        )
        logger.info("Stock of part %s changed by %d", item["part"], sign * item["quantity"])


@router.get("")
def list_orders(db=Depends(get_db)):
    orders = get_documents(db, "order", sort=[("created_at", -1)])
    return serialize(populate_order_parts(db, orders))


@router.post("", status_code=201)
def create_order(payload: OrderPayload, db=Depends(get_db)):
    logger.info("Creating order with %d item(s)", len(payload.items or []))
    if not payload.items:
        raise HTTPException(status_code=400, detail="Order must contain at least one item")

    requested = defaultdict(int)
    for item in payload.items:
        requested[item.part] += item.quantity

    parts = {}
    for part_id, quantity in requested.items():
        part = None
        if ObjectId.is_valid(part_id):
            part = db["part"].find_one({"_id": ObjectId(part_id)})
        if not part:
            logger.warning("Order rejected: part %s not found", part_id)
            raise HTTPException(status_code=404, detail=f"Part {part_id} not found")
        if part["quantity"] < quantity:
            logger.warning(
                "Order rejected: insufficient stock for %s (requested %d, available %d)",
                part["name"], quantity, part["quantity"],
            )
            raise HTTPException(
                status_code=400,
                detail=f"Insufficient stock for part {part['name']}. Available: {part['quantity']}",
            )
        parts[part_id] = part

    lines = [OrderItem(part=item.part, quantity=item.quantity, price=parts[item.part]["price"])
             for item in payload.items]

    order = Order(
        order_number=generate_order_number(lambda n: db["order"].find_one({"order_number": n}) is not None),
        items=lines,
        total_amount=order_total(lines),
        payment_method=payload.payment_method,
        customer_name=payload.customer_name,
        customer_phone=payload.customer_phone,
    )
    order_id = create_document(db, "order", order)
    _adjust_stock(db, order.model_dump()["items"], -1)
    logger.info("Order %s created, total %.2f", order.order_number, order.total_amount)
    return serialize(get_document(db, "order", order_id))


@router.get("/report")
def sales_report(start_date: Optional[date] = None, end_date: Optional[date] = None, db=Depends(get_db)):
    query: Dict[str, Any] = {"status": OrderStatus.COMPLETED.value}
    if start_date and end_date:
        query["created_at"] = {
            "$gte": datetime.combine(start_date, time.min),
            "$lte": datetime.combine(end_date, time.max),
        }
    orders = get_documents(db, "order", query, sort=[("created_at", -1)])
    report = sales_summary(orders)
    report["orders"] = serialize(populate_order_parts(db, orders))
    return report


@router.get("/{order_id}")
def get_order(order_id: str, db=Depends(get_db)):
    order = get_document(db, "order", order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return serialize(populate_order_parts(db, [order])[0])


@router.put("/{order_id}")
def update_order_status(order_id: str, payload: OrderStatusPayload, db=Depends(get_db)):
    current = get_document(db, "order", order_id)
    if not current:
        raise HTTPException(status_code=404, detail="Order not found")
    # a cancelled order has already returned its stock
    was_cancelled = current["status"] == OrderStatus.CANCELLED.value
    if was_cancelled and payload.status != OrderStatus.CANCELLED:
        raise HTTPException(status_code=400, detail="Cancelled orders cannot be reopened")

    changes: Dict[str, Any] = {"status": payload.status.value}
    if payload.payment_method:
        changes["payment_method"] = payload.payment_method.value
    order = update_document(db, "order", order_id, changes)

    if payload.status == OrderStatus.CANCELLED and not was_cancelled:
        logger.info("Restoring stock for cancelled order %s", order["order_number"])
        _adjust_stock(db, order["items"], 1)

    return serialize(populate_order_parts(db, [order])[0])
