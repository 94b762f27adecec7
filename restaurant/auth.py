import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException

import config
from database import create_document, get_document, serialize, utcnow
from security import create_access_token, hash_password, verify_password

from .deps import current_user, get_db, success
from .schemas import LoginPayload, RegisterPayload, User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _send_token(user: dict) -> dict:
    token = create_access_token(str(user["_id"]), timedelta(days=config.RESTAURANT_TOKEN_DAYS))
    return {"status": "success", "token": token, "data": {"user": serialize(user)}}


@router.post("/register", status_code=201)
def register(payload: RegisterPayload, db=Depends(get_db)):
    if db["user"].find_one({"email": payload.email}):
        raise HTTPException(status_code=400, detail="Email already exists")
    user = User(
        name=payload.name,
        email=payload.email,
        password=hash_password(payload.password),
        role=payload.role,
    )
    user_id = create_document(db, "user", user)
    logger.info("Registered %s as %s", payload.email, payload.role.value)
    return _send_token(get_document(db, "user", user_id))


@router.post("/login")
def login(payload: LoginPayload, db=Depends(get_db)):
    if not payload.email or not payload.password:
        raise HTTPException(status_code=400, detail="Please provide email and password!")

    user = db["user"].find_one({"email": payload.email})
    if not user or not verify_password(payload.password, user.get("password")):
        logger.info("Failed login for %s", payload.email)
        raise HTTPException(status_code=401, detail="Incorrect email or password")

    user["last_login"] = utcnow()
    db["user"].update_one({"_id": user["_id"]}, {"$set": {"last_login": user["last_login"]}})
    return _send_token(user)


@router.get("/me")
def me(user: dict = Depends(current_user)):
    return success(user=serialize(user))
