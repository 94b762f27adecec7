import logging

from bson import ObjectId
from fastapi import Depends, HTTPException

import config
from database import get_database
from security import bearer_token, decode_access_token

logger = logging.getLogger(__name__)


def get_db():
    return get_database(config.CARPARTS_DATABASE_NAME)


def current_user(token: str = Depends(bearer_token()), db=Depends(get_db)) -> dict:
    user_id = decode_access_token(token)
    user = None
    if ObjectId.is_valid(user_id):
        user = db["user"].find_one({"_id": ObjectId(user_id)}, {"password": 0})
    if not user:
        logger.info("Token for unknown user %s", user_id)
        raise HTTPException(status_code=401, detail="Not authorized, user not found")
    return user
