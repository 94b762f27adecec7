import logging

from bson import ObjectId
from fastapi import Depends, HTTPException

import config
from database import get_database
from security import bearer_token, decode_access_token, restrict_to

from .schemas import UserRole

logger = logging.getLogger(__name__)


def get_db():
    return get_database(config.RESTAURANT_DATABASE_NAME)


def current_user(
    token: str = Depends(bearer_token("You are not logged in. Please log in to get access.")),
    db=Depends(get_db),
) -> dict:
    user_id = decode_access_token(token, "Invalid token. Please log in again.")
    user = None
    if ObjectId.is_valid(user_id):
        user = db["user"].find_one({"_id": ObjectId(user_id)}, {"password": 0})
    if not user:
        logger.info("Authentication failed: user %s not found", user_id)
        raise HTTPException(status_code=401, detail="The user belonging to this token no longer exists.")
    return user


def success(**data) -> dict:
    """Response envelope used by every endpoint."""
    return {"status": "success", "data": data}


def listing(key: str, items: list) -> dict:
    return {"status": "success", "results": len(items), "data": {key: items}}


admin_only = restrict_to(current_user, [UserRole.ADMIN])
admin_or_manager = restrict_to(current_user, [UserRole.ADMIN, UserRole.MANAGER])
staff_for_orders = restrict_to(current_user, [UserRole.WAITER, UserRole.ADMIN])
staff_for_tables = restrict_to(current_user, [UserRole.MANAGER, UserRole.ADMIN])
