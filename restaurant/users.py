import logging

from fastapi import APIRouter, Depends, HTTPException, Response

from database import delete_document, get_document, get_documents, serialize, update_document

from .deps import admin_only, current_user, get_db, success
from .schemas import UserRole, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])

NOT_FOUND = "No user found with that ID"


def available_waiters(waiters, tables):
    """Active waiters not currently assigned to any table."""
    assigned = {t.get("current_waiter") for t in tables if t.get("current_waiter")}
    return [w for w in waiters if w.get("active", True) and str(w["_id"]) not in assigned]


@router.get("/waiters/available", dependencies=[Depends(current_user)])
def get_available_waiters(db=Depends(get_db)):
    waiters = get_documents(db, "user", {"role": UserRole.WAITER.value, "active": True}, sort=[("name", 1)])
    tables = get_documents(db, "table", {"current_waiter": {"$ne": None}})
    users = available_waiters(waiters, tables)
    logger.debug("Available waiters: %d of %d", len(users), len(waiters))
    return success(users=serialize(users))


@router.get("", dependencies=[Depends(admin_only)])
def list_users(db=Depends(get_db)):
    return success(users=serialize(get_documents(db, "user", sort=[("name", 1)])))


@router.get("/{user_id}", dependencies=[Depends(admin_only)])
def get_user(user_id: str, db=Depends(get_db)):
    user = get_document(db, "user", user_id)
    if not user:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return success(user=serialize(user))


@router.patch("/{user_id}", dependencies=[Depends(admin_only)])
def update_user(user_id: str, payload: UserUpdate, db=Depends(get_db)):
    changes = payload.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    if "email" in changes:
        clash = db["user"].find_one({"email": changes["email"]})
        if clash and str(clash["_id"]) != user_id:
            raise HTTPException(status_code=400, detail="Email already exists")
    user = update_document(db, "user", user_id, changes)
    if not user:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return success(user=serialize(user))


@router.delete("/{user_id}", status_code=204, dependencies=[Depends(admin_only)])
def delete_user(user_id: str, db=Depends(get_db)):
    if not delete_document(db, "user", user_id):
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return Response(status_code=204)
