"""Shared dependencies for API routes."""

import logging
from typing import Literal

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel
from slowapi import Limiter
from slowapi.util import get_remote_address

from config import settings
from services.errors import Forbidden

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)

_bearer = HTTPBearer(auto_error=False)

USER_ROLES = ("user", "mentor", "admin")


class CurrentUser(BaseModel):
    id: str
    role: Literal["user", "mentor", "admin"] = "user"


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> CurrentUser:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Missing bearer token")

    payload = decode_token(credentials.credentials)
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Token has no subject")

    role = payload.get("role", "user")
    if role not in USER_ROLES:
        logger.warning("Unknown role claim %r for user %s, treating as user", role, user_id)
        role = "user"
    return CurrentUser(id=str(user_id), role=role)


def require_mentor(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if user.role not in ("mentor", "admin"):
        raise Forbidden("Mentor access required")
    return user
