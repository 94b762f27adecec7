import re
from typing import Any, Dict, List

from bson import ObjectId
from fastapi import APIRouter, Depends, HTTPException

from database import (
    create_document,
    delete_document,
    get_document,
    get_documents,
    serialize,
    update_document,
)

from .deps import current_user, get_db
from .schemas import Part, PartUpdate

router = APIRouter(prefix="/api/parts", tags=["parts"], dependencies=[Depends(current_user)])


def populate_categories(db, parts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Replace each part's category id with the category document."""
    ids = {p.get("category") for p in parts if ObjectId.is_valid(p.get("category") or "")}
    categories = {
        str(c["_id"]): c
        for c in db["category"].find({"_id": {"$in": [ObjectId(i) for i in ids]}})
    }
    for p in parts:
        p["category"] = categories.get(p.get("category"), p.get("category"))
    return parts


def is_low_stock(part: Dict[str, Any]) -> bool:
    return part.get("quantity", 0) <= part.get("min_quantity", 5)


def _check_category(db, category_id: str):
    if not ObjectId.is_valid(category_id) or not db["category"].find_one({"_id": ObjectId(category_id)}):
        raise HTTPException(status_code=404, detail="Category not found")


def _check_part_number(db, part_number: str, part_id: str = None):
    clash = db["part"].find_one({"part_number": part_number})
    if clash and str(clash["_id"]) != part_id:
        raise HTTPException(status_code=400, detail=f"Part number {part_number} already exists")


@router.get("")
def list_parts(db=Depends(get_db)):
    return serialize(populate_categories(db, get_documents(db, "part", sort=[("name", 1)])))


@router.post("", status_code=201)
def create_part(payload: Part, db=Depends(get_db)):
    _check_category(db, payload.category)
    _check_part_number(db, payload.part_number)
    part_id = create_document(db, "part", payload)
    return serialize(get_document(db, "part", part_id))


@router.get("/search")
def search_parts(query: str = "", db=Depends(get_db)):
    query = query.strip()
    if not query:
        return []
    regex = {"$regex": re.escape(query), "$options": "i"}
    parts = get_documents(db, "part", {"$or": [
        {"name": regex}, {"description": regex}, {"part_number": regex}
    ]}, sort=[("name", 1)])
    return serialize(populate_categories(db, parts))


@router.get("/low-stock")
def low_stock_parts(db=Depends(get_db)):
    parts = [p for p in get_documents(db, "part", sort=[("quantity", 1)]) if is_low_stock(p)]
    return serialize(populate_categories(db, parts))


@router.get("/{part_id}")
def get_part(part_id: str, db=Depends(get_db)):
    part = get_document(db, "part", part_id)
    if not part:
        raise HTTPException(status_code=404, detail="Part not found")
    return serialize(populate_categories(db, [part])[0])


@router.put("/{part_id}")
def update_part(part_id: str, payload: PartUpdate, db=Depends(get_db)):
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "category" in changes:
        _check_category(db, changes["category"])
    if "part_number" in changes:
        _check_part_number(db, changes["part_number"], part_id)
    part = update_document(db, "part", part_id, changes)
    if not part:
        raise HTTPException(status_code=404, detail="Part not found")
    return serialize(part)


@router.delete("/{part_id}")
def delete_part(part_id: str, db=Depends(get_db)):
    if not delete_document(db, "part", part_id):
        raise HTTPException(status_code=404, detail="Part not found")
    return {"message": "Part removed"}
