import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException

import config
from database import create_document, serialize
from security import create_access_token, hash_password, verify_password

from .deps import current_user, get_db
from .schemas import LoginPayload, RegisterPayload, User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _token_response(user_id: str, username: str, email: str) -> dict:
    token = create_access_token(user_id, timedelta(days=config.CARPARTS_TOKEN_DAYS))
    return {"_id": user_id, "username": username, "email": email, "token": token}


@router.post("/register", status_code=201)
def register(payload: RegisterPayload, db=Depends(get_db)):
    exists = db["user"].find_one({"$or": [{"email": payload.email}, {"username": payload.username}]})
    if exists:
        raise HTTPException(status_code=400, detail="User already exists")

    user = User(username=payload.username, email=payload.email, password=hash_password(payload.password))
    user_id = create_document(db, "user", user)
    logger.info("Registered user %s", payload.username)
    return _token_response(user_id, user.username, user.email)


@router.post("/login")
def login(payload: LoginPayload, db=Depends(get_db)):
    user = db["user"].find_one({"username": payload.username})
    if not user or not verify_password(payload.password, user.get("password")):
        logger.info("Failed login for %s", payload.username)
        raise HTTPException(status_code=401, detail="Invalid username or password")
    return _token_response(str(user["_id"]), user["username"], user["email"])


@router.get("/profile")
def profile(user: dict = Depends(current_user)):
    return serialize(user)
