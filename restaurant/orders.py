"""
Orders

Placing an order validates the table, prices every line from the menu,
stores the order and then marks the table occupied. These are separate
writes with no transaction around them.
"""

import logging
import re
from typing import Any, Dict, List, Tuple

from bson import ObjectId
from fastapi import APIRouter, Depends, HTTPException

from database import create_document, get_document, get_documents, serialize, update_document

from .deps import current_user, get_db, listing, staff_for_orders, success
from .pricing import line_subtotal, next_order_number, order_number_prefix, order_totals
from .receipt import generate_receipt
from .schemas import (
    ChosenCustomization,
    Order,
    OrderItem,
    OrderItemPayload,
    OrderPayload,
    OrderStatus,
    OrderStatusPayload,
    OrderTablePayload,
    OrderUpdate,
    PaymentPayload,
    TableStatus,
)
from .tables import occupy_table, release_table

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"], dependencies=[Depends(current_user)])

NOT_FOUND = "No order found with that ID"
CLOSED = (OrderStatus.COMPLETED.value, OrderStatus.CANCELLED.value)


def menu_customizations(menu_item: Dict[str, Any], chosen: List[ChosenCustomization]) -> List[ChosenCustomization]:
    """Resolve chosen options against the menu item, charging the menu's price."""
    offered = {
        (group["name"], option["name"]): option["price"]
        for group in menu_item.get("customizations", [])
        for option in group.get("options", [])
    }
    resolved = []
    for c in chosen:
        if (c.name, c.option) not in offered:
            raise HTTPException(
                status_code=400,
                detail=f"{menu_item['name']} has no {c.name} option {c.option}",
            )
        resolved.append(ChosenCustomization(name=c.name, option=c.option, price=offered[(c.name, c.option)]))
    return resolved


def price_items(db, items: List[OrderItemPayload]) -> Tuple[List[OrderItem], float]:
    lines = []
    subtotal = 0.0
    for item in items:
        menu_item = None
        if ObjectId.is_valid(item.menu_item):
            menu_item = db["menu_item"].find_one({"_id": ObjectId(item.menu_item)})
        if not menu_item:
            logger.warning("Menu item %s not found", item.menu_item)
            raise HTTPException(status_code=404, detail="Menu item not found")
        if not menu_item.get("available", True):
            raise HTTPException(status_code=400, detail=f"{menu_item['name']} is not available")
        customizations = menu_customizations(menu_item, item.customizations)
        line = OrderItem(
            menu_item=item.menu_item,
            quantity=item.quantity,
            customizations=customizations,
            subtotal=line_subtotal(menu_item["price"], item.quantity, customizations),
        )
        subtotal += line.subtotal
        lines.append(line)
    return lines, subtotal


def populate_orders(db, orders: List[Dict[str, Any]], menu_fields=("name", "price", "category")):
    waiter_ids = {o.get("waiter") for o in orders if ObjectId.is_valid(o.get("waiter") or "")}
    item_ids = {i["menu_item"] for o in orders for i in o.get("items", []) if ObjectId.is_valid(i["menu_item"])}
    waiters = {
        str(u["_id"]): {"_id": u["_id"], "name": u["name"], "role": u.get("role")}
        for u in db["user"].find({"_id": {"$in": [ObjectId(i) for i in waiter_ids]}})
    }
    menu = {
        str(m["_id"]): {"_id": m["_id"], **{f: m.get(f) for f in menu_fields}}
        for m in db["menu_item"].find({"_id": {"$in": [ObjectId(i) for i in item_ids]}})
    }
    for o in orders:
        o["waiter"] = waiters.get(o.get("waiter"), o.get("waiter"))
        for item in o.get("items", []):
            item["menu_item"] = menu.get(item["menu_item"], item["menu_item"])
    return orders


def _load(db, order_id: str) -> Dict[str, Any]:
    order = get_document(db, "order", order_id)
    if not order:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return order


def _respond(db, order: Dict[str, Any]) -> dict:
    return success(order=serialize(populate_orders(db, [order])[0]))


def _latest_order_number(db) -> str:
    prefix = order_number_prefix()
    latest = list(
        db["order"].find({"order_number": {"$regex": f"^{prefix}"}}).sort("order_number", -1).limit(1)
    )
    return latest[0]["order_number"] if latest else None


@router.get("")
def list_orders(db=Depends(get_db)):
    orders = get_documents(db, "order", sort=[("created_at", -1)])
    return listing("orders", serialize(populate_orders(db, orders)))


@router.get("/mine")
def my_orders(user: dict = Depends(current_user), db=Depends(get_db)):
    orders = get_documents(db, "order", {"waiter": str(user["_id"])}, sort=[("created_at", -1)])
    return listing("orders", serialize(populate_orders(db, orders)))


@router.get("/table/{table_number}")
def orders_by_table(table_number: str, db=Depends(get_db)):
    if not re.fullmatch(r"\d+", table_number):
        raise HTTPException(status_code=400, detail="Invalid table number")
    orders = get_documents(db, "order", {"table": int(table_number)}, sort=[("created_at", -1)])
    return listing("orders", serialize(populate_orders(db, orders)))


@router.get("/waiter/{waiter_id}")
def orders_by_waiter(waiter_id: str, db=Depends(get_db)):
    orders = get_documents(db, "order", {"waiter": waiter_id}, sort=[("created_at", -1)])
    return listing("orders", serialize(populate_orders(db, orders)))


@router.get("/{order_id}")
def get_order(order_id: str, db=Depends(get_db)):
    return _respond(db, _load(db, order_id))


@router.get("/{order_id}/receipt")
def order_receipt(order_id: str, db=Depends(get_db)):
    order = populate_orders(db, [_load(db, order_id)])[0]
    try:
        receipt = generate_receipt(order)
    except (KeyError, TypeError, ValueError, ZeroDivisionError):
        logger.exception("Receipt generation failed for order %s", order.get("order_number"))
        raise HTTPException(status_code=500, detail="Failed to generate receipt")
    return success(receipt=receipt)


@router.post("", status_code=201)
def create_order(payload: OrderPayload, user: dict = Depends(staff_for_orders), db=Depends(get_db)):
    logger.info("Create order for table %s by %s", payload.table, user.get("email"))
    if not payload.table or not payload.items:
        raise HTTPException(status_code=400, detail="Please provide table and at least one item")

    table = db["table"].find_one({"table_number": payload.table})
    if not table:
        raise HTTPException(status_code=404, detail=f"Table {payload.table} not found")
    if table["status"] != TableStatus.AVAILABLE.value:
        raise HTTPException(status_code=400, detail=f"Table {payload.table} is not available")

    lines, subtotal = price_items(db, payload.items)
    totals = order_totals(subtotal)
    waiter = payload.waiter or str(user["_id"])

    order = Order(
        order_number=next_order_number(_latest_order_number(db)),
        table=payload.table,
        waiter=waiter,
        items=lines,
        notes=payload.notes,
        **totals,
    )
    order_id = create_document(db, "order", order)
    occupy_table(db, payload.table, waiter, order.order_number)
    logger.info("Order %s created: %s", order.order_number, totals)
    return _respond(db, get_document(db, "order", order_id))


@router.patch("/{order_id}", dependencies=[Depends(staff_for_orders)])
def update_order(order_id: str, payload: OrderUpdate, db=Depends(get_db)):
    order = _load(db, order_id)
    if order["payment_status"] or order["status"] != OrderStatus.PENDING.value:
        raise HTTPException(status_code=400, detail="Only unpaid pending orders can be edited")

    changes: Dict[str, Any] = {}
    if payload.notes is not None:
        changes["notes"] = payload.notes
    if payload.items is not None:
        if not payload.items:
            raise HTTPException(status_code=400, detail="Please provide at least one item")
        lines, subtotal = price_items(db, payload.items)
        changes["items"] = [line.model_dump(mode="json") for line in lines]
        changes.update(order_totals(subtotal))
    if changes:
        order = update_document(db, "order", order_id, changes)
    return _respond(db, order)


@router.patch("/{order_id}/status", dependencies=[Depends(staff_for_orders)])
def update_order_status(order_id: str, payload: OrderStatusPayload, db=Depends(get_db)):
    order = _load(db, order_id)
    if order["status"] in CLOSED:
        raise HTTPException(status_code=400, detail=f"Order is already {order['status']}")
    if payload.status == OrderStatus.COMPLETED and not order["payment_status"]:
        raise HTTPException(status_code=400, detail="Cannot complete order before payment")

    order = update_document(db, "order", order_id, {"status": payload.status.value})
    if payload.status == OrderStatus.COMPLETED:
        release_table(db, order["table"], TableStatus.CLEANING, order["order_number"])
    elif payload.status == OrderStatus.CANCELLED:
        release_table(db, order["table"], TableStatus.AVAILABLE, order["order_number"])
    return _respond(db, order)


@router.patch("/{order_id}/payment", dependencies=[Depends(staff_for_orders)])
def process_payment(order_id: str, payload: PaymentPayload, db=Depends(get_db)):
    order = _load(db, order_id)
    if order["payment_status"]:
        raise HTTPException(status_code=400, detail="Order has already been paid")
    if order["status"] == OrderStatus.CANCELLED.value:
        raise HTTPException(status_code=400, detail="Cannot pay for a cancelled order")

    order = update_document(db, "order", order_id, {
        "payment_method": payload.payment_method.value,
        "payment_status": True,
        "status": OrderStatus.COMPLETED.value,
    })
    release_table(db, order["table"], TableStatus.CLEANING, order["order_number"])
    logger.info("Order %s paid by %s", order["order_number"], payload.payment_method.value)
    return _respond(db, order)


@router.patch("/{order_id}/table", dependencies=[Depends(staff_for_orders)])
def move_order(order_id: str, payload: OrderTablePayload, db=Depends(get_db)):
    order = _load(db, order_id)
    if order["status"] in CLOSED:
        raise HTTPException(status_code=400, detail=f"Order is already {order['status']}")
    if payload.table == order["table"]:
        return _respond(db, order)

    target = db["table"].find_one({"table_number": payload.table})
    if not target:
        raise HTTPException(status_code=404, detail=f"Table {payload.table} not found")
    if target["status"] != TableStatus.AVAILABLE.value:
        raise HTTPException(status_code=400, detail=f"Table {payload.table} is not available")

    release_table(db, order["table"], TableStatus.AVAILABLE, order["order_number"])
    order = update_document(db, "order", order_id, {"table": payload.table})
    occupy_table(db, payload.table, order["waiter"], order["order_number"])
    return _respond(db, order)
