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
from .schemas import Category, CategoryUpdate

router = APIRouter(prefix="/api/categories", tags=["categories"], dependencies=[Depends(current_user)])


@router.get("")
def list_categories(db=Depends(get_db)):
    return serialize(get_documents(db, "category", sort=[("name", 1)]))


@router.post("", status_code=201)
def create_category(payload: Category, db=Depends(get_db)):
    if db["category"].find_one({"name": payload.name}):
        raise HTTPException(status_code=400, detail="Category already exists")
    category_id = create_document(db, "category", payload)
    return serialize(get_document(db, "category", category_id))


@router.get("/{category_id}")
def get_category(category_id: str, db=Depends(get_db)):
    category = get_document(db, "category", category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return serialize(category)


@router.put("/{category_id}")
def update_category(category_id: str, payload: CategoryUpdate, db=Depends(get_db)):
    changes = payload.model_dump(exclude_unset=True)
    if "name" in changes:
        clash = db["category"].find_one({"name": changes["name"]})
        if clash and str(clash["_id"]) != category_id:
            raise HTTPException(status_code=400, detail="Category already exists")
    category = update_document(db, "category", category_id, changes)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return serialize(category)


@router.delete("/{category_id}")
def delete_category(category_id: str, db=Depends(get_db)):
    if not delete_document(db, "category", category_id):
        raise HTTPException(status_code=404, detail="Category not found")
    return {"message": "Category removed"}
