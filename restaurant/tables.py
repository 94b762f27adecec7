"""
Tables

A table cycles AVAILABLE -> OCCUPIED -> CLEANING -> AVAILABLE. OCCUPIED is
only ever set by placing an order; orders hand the table back through
``release_table`` when they are paid, completed or cancelled.
"""

import logging
from typing import Optional

from bson import ObjectId
from fastapi import APIRouter, Depends, HTTPException, Response

from database import (
    create_document,
    delete_document,
    get_document,
    get_documents,
    serialize,
    update_document,
    utcnow,
)

from .deps import current_user, get_db, listing, staff_for_tables, success
from .schemas import AssignWaiterPayload, Table, TableStatus, TableStatusPayload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tables", tags=["tables"], dependencies=[Depends(current_user)])

NOT_FOUND = "No table found with that ID"
IN_USE = "Table has an open order; complete or cancel it first"


def occupy_table(db, table_number: int, waiter_id: str, order_number: str):
    db["table"].update_one(
        {"table_number": table_number},
        {"$set": {
            "status": TableStatus.OCCUPIED.value,
            "current_waiter": waiter_id,
            "current_order": order_number,
            "updated_at": utcnow(),
        }},
    )
    logger.info("Table %s occupied by order %s", table_number, order_number)


def release_table(db, table_number: int, status: TableStatus, order_number: Optional[str] = None):
    """Free a table, optionally only if it still holds ``order_number``."""
    query = {"table_number": table_number}
    if order_number:
        query["current_order"] = order_number
    changes = {
        "status": status.value,
        "current_waiter": None,
        "current_order": None,
        "updated_at": utcnow(),
    }
    if status == TableStatus.CLEANING:
        changes["last_cleaned"] = utcnow()
    result = db["table"].update_one(query, {"$set": changes})
    if result.modified_count:
        logger.info("Table %s is now %s", table_number, status.value)


def populate_waiters(db, tables):
    ids = {t.get("current_waiter") for t in tables if ObjectId.is_valid(t.get("current_waiter") or "")}
    waiters = {
        str(u["_id"]): {"_id": u["_id"], "name": u["name"], "role": u["role"]}
        for u in db["user"].find({"_id": {"$in": [ObjectId(i) for i in ids]}})
    }
    for t in tables:
        if t.get("current_waiter"):
            t["current_waiter"] = waiters.get(t["current_waiter"], t["current_waiter"])
    return tables


@router.get("")
def list_tables(db=Depends(get_db)):
    tables = get_documents(db, "table", sort=[("table_number", 1)])
    return listing("tables", serialize(populate_waiters(db, tables)))


@router.get("/available")
def list_available_tables(db=Depends(get_db)):
    tables = get_documents(db, "table", {"status": TableStatus.AVAILABLE.value}, sort=[("table_number", 1)])
    return listing("tables", serialize(tables))


@router.get("/{table_id}")
def get_table(table_id: str, db=Depends(get_db)):
    table = get_document(db, "table", table_id)
    if not table:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return success(table=serialize(populate_waiters(db, [table])[0]))


@router.post("", status_code=201, dependencies=[Depends(staff_for_tables)])
def create_table(payload: Table, db=Depends(get_db)):
    if payload.status == TableStatus.OCCUPIED:
        raise HTTPException(status_code=400, detail="A table can only become occupied through an order")
    if db["table"].find_one({"table_number": payload.table_number}):
        raise HTTPException(status_code=400, detail=f"Table {payload.table_number} already exists")
    doc = payload.model_dump(mode="json")
    doc.update(current_waiter=None, current_order=None, last_cleaned=utcnow())
    table_id = create_document(db, "table", doc)
    return success(table=serialize(get_document(db, "table", table_id)))


@router.patch("/{table_id}/status", dependencies=[Depends(staff_for_tables)])
def update_table_status(table_id: str, payload: TableStatusPayload, db=Depends(get_db)):
    table = get_document(db, "table", table_id)
    if not table:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    if payload.status == TableStatus.OCCUPIED:
        raise HTTPException(status_code=400, detail="A table can only become occupied through an order")
    if table["status"] == TableStatus.OCCUPIED.value:
        raise HTTPException(status_code=400, detail=IN_USE)

    changes = {"status": payload.status.value}
    if payload.status == TableStatus.CLEANING:
        changes["last_cleaned"] = utcnow()
    if payload.status == TableStatus.AVAILABLE:
        changes["current_waiter"] = None
        changes["current_order"] = None
    table = update_document(db, "table", table_id, changes)
    logger.info("Table %s status set to %s", table["table_number"], payload.status.value)
    return success(table=serialize(table))


@router.patch("/{table_id}/waiter", dependencies=[Depends(staff_for_tables)])
def assign_waiter(table_id: str, payload: AssignWaiterPayload, db=Depends(get_db)):
    if payload.waiter_id:
        waiter = None
        if ObjectId.is_valid(payload.waiter_id):
            waiter = db["user"].find_one({"_id": ObjectId(payload.waiter_id)})
        if not waiter:
            raise HTTPException(status_code=404, detail="No user found with that ID")
    table = update_document(db, "table", table_id, {"current_waiter": payload.waiter_id})
    if not table:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    logger.info("Waiter %s assigned to table %s", payload.waiter_id, table["table_number"])
    return success(table=serialize(populate_waiters(db, [table])[0]))


@router.delete("/{table_id}", status_code=204, dependencies=[Depends(staff_for_tables)])
def delete_table(table_id: str, db=Depends(get_db)):
    table = get_document(db, "table", table_id)
    if not table:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    if table["status"] == TableStatus.OCCUPIED.value:
        raise HTTPException(status_code=400, detail=IN_USE)
    delete_document(db, "table", table_id)
    return Response(status_code=204)
