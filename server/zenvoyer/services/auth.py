"""JWT bearer authentication and role checks."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from ..config import Settings, get_settings
from ..errors import AuthenticationError
from ..schemas.records import UserRole
from .i18n import request_locale


class CurrentUser(BaseModel):
    """Authenticated caller decoded from a bearer token."""
    id: str
    email: str
    role: UserRole


def create_access_token(
    user_id: str,
    email: str,
    role: UserRole,
    expires_minutes: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> str:
    """Issue a signed access token."""
    settings = settings or get_settings()
    lifetime = settings.jwt_expire_minutes if expires_minutes is None else expires_minutes
    payload = {
        "sub": user_id,
        "email": email,
        "role": UserRole(role).value,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=lifetime),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Optional[Settings] = None) -> CurrentUser:
    """Verify a token and return the caller it identifies."""
    settings = settings or get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as e:
        raise AuthenticationError(str(e)) from e

    try:
        return CurrentUser(id=payload["sub"], email=payload.get("email", ""), role=payload["role"])
    except (KeyError, ValueError) as e:
        raise AuthenticationError("Malformed token claims") from e


_bearer = HTTPBearer(auto_error=False)


def _translate(request: Request, key: str) -> str:
    return request_locale(request).translate(key)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> CurrentUser:
    """FastAPI dependency: require a valid bearer token."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=401,
            detail=_translate(request, "errors.unauthorized"),
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return decode_access_token(credentials.credentials, request.app.state.settings)
    except AuthenticationError:
        raise HTTPException(
            status_code=401,
            detail=_translate(request, "errors.invalidToken"),
            headers={"WWW-Authenticate": "Bearer"},
        )


def require_roles(*roles: UserRole):
    """FastAPI dependency factory: allow only the given roles."""
    allowed = {UserRole(role) for role in roles}

    async def checker(request: Request, user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in allowed:
            raise HTTPException(status_code=403, detail=_translate(request, "errors.forbidden"))
        return user

    return checker
