from datetime import datetime, timedelta, timezone
from fastapi import Depends, HTTPException, Request
from typing import Optional
import jwt
import uuid

from app.application.security import CurrentUser
from app.core_settings import Settings, get_settings
from app.domain.enums import UserRole
from shared.core import set_request_context

BEARER_PREFIX = "Bearer "

def create_access_token(
    user_id: uuid.UUID,
    role: UserRole,
    expires_minutes: int = 60,
    settings: Optional[Settings] = None,
) -> str:
    settings = settings or get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": role.value,
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)

def decode_access_token(token: str, settings: Optional[Settings] = None) -> Optional[dict]:
    settings = settings or get_settings()
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except jwt.PyJWTError:
        return None

def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})

async def get_current_user(request: Request, settings: Settings = Depends(get_settings)) -> CurrentUser:
    """Resolve the caller from the bearer token issued by the auth service."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        raise _unauthorized("Missing token")
    claims = decode_access_token(auth_header[len(BEARER_PREFIX):], settings)
    if not claims:
        raise _unauthorized("Invalid token")
    try:
        user = CurrentUser(id=uuid.UUID(claims["sub"]), role=UserRole(claims["role"]))
    except (KeyError, TypeError, ValueError):
        raise _unauthorized("Invalid token payload")
    set_request_context(user_id=str(user.id), user_role=user.role.value)
    return user
