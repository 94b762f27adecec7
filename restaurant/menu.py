import re

from fastapi import APIRouter, Depends, HTTPException, Response

from database import (
    create_document,
    delete_document,
    get_document,
    get_documents,
    serialize,
    update_document,
)

from .deps import admin_only, current_user, get_db, listing, success
from .schemas import MenuItem, MenuItemUpdate

router = APIRouter(prefix="/api/menu", tags=["menu"], dependencies=[Depends(current_user)])

NOT_FOUND = "No menu item found with that ID"


def _check_name(db, name: str, item_id: str = None):
    clash = db["menu_item"].find_one({"name": name})
    if clash and str(clash["_id"]) != item_id:
        raise HTTPException(status_code=400, detail=f"Menu item {name} already exists")


@router.get("")
def list_menu_items(category: str = None, available: bool = None, db=Depends(get_db)):
    query = {}
    if category:
        query["category"] = category
    if available is not None:
        query["available"] = available
    items = get_documents(db, "menu_item", query, sort=[("category", 1), ("name", 1)])
    return listing("menu_items", serialize(items))


@router.get("/search")
def search_menu_items(query: str = "", db=Depends(get_db)):
    query = query.strip()
    items = []
    if query:
        regex = {"$regex": re.escape(query), "$options": "i"}
        items = get_documents(db, "menu_item", {"$or": [{"name": regex}, {"category": regex}]})
    return listing("menu_items", serialize(items))


@router.get("/category/{category}")
def menu_items_by_category(category: str, db=Depends(get_db)):
    return listing("menu_items", serialize(get_documents(db, "menu_item", {"category": category})))


@router.get("/{item_id}")
def get_menu_item(item_id: str, db=Depends(get_db)):
    item = get_document(db, "menu_item", item_id)
    if not item:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return success(menu_item=serialize(item))


@router.post("", status_code=201, dependencies=[Depends(admin_only)])
def create_menu_item(payload: MenuItem, db=Depends(get_db)):
    _check_name(db, payload.name)
    item_id = create_document(db, "menu_item", payload)
    return success(menu_item=serialize(get_document(db, "menu_item", item_id)))


@router.patch("/{item_id}", dependencies=[Depends(admin_only)])
def update_menu_item(item_id: str, payload: MenuItemUpdate, db=Depends(get_db)):
    changes = payload.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    if "name" in changes:
        _check_name(db, changes["name"], item_id)
    item = update_document(db, "menu_item", item_id, changes)
    if not item:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return success(menu_item=serialize(item))


@router.delete("/{item_id}", status_code=204, dependencies=[Depends(admin_only)])
def delete_menu_item(item_id: str, db=Depends(get_db)):
    if not delete_document(db, "menu_item", item_id):
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return Response(status_code=204)
