"""
Authentication helpers shared by both apps: bcrypt password hashes, JWT
bearer tokens and role checks.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

import bcrypt
import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

import config

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

NO_TOKEN_MESSAGE = "Not authorized, no token"
BAD_TOKEN_MESSAGE = "Not authorized, token failed"


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(user_id: str, expires_in: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {"id": user_id, "iat": now, "exp": now + expires_in}
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str, failure_message: str = BAD_TOKEN_MESSAGE) -> str:
    """Return the user id carried by ``token`` or raise a 401."""
    try:
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except jwt.InvalidTokenError as e:
        logger.info("Token rejected: %s", e)
        raise HTTPException(status_code=401, detail=failure_message)
    user_id = payload.get("id")
    if not user_id:
        raise HTTPException(status_code=401, detail=failure_message)
    return user_id


def bearer_token(missing_message: str = NO_TOKEN_MESSAGE) -> Callable:
    """Dependency factory pulling the raw token out of ``Authorization: Bearer``."""

    def dependency(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> str:
        if credentials is None or not credentials.credentials:
            logger.info("Authentication failed: no token provided")
            raise HTTPException(status_code=401, detail=missing_message)
        return credentials.credentials

    return dependency


def restrict_to(current_user: Callable, roles: Iterable[str]) -> Callable:
    """Dependency factory allowing only users whose ``role`` is in ``roles``."""
    allowed = [getattr(r, "value", r) for r in roles]

    def dependency(user: dict = Depends(current_user)) -> dict:
        if user.get("role") not in allowed:
            logger.info("Access denied for role %s, required %s", user.get("role"), allowed)
            raise HTTPException(
                status_code=403,
                detail="You do not have permission to perform this action. "
                f"Required roles: {', '.join(allowed)}",
            )
        return user

    return dependency
