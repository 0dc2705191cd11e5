"""
Admin Session Management

The admin session is a signed JWT stored in an httpOnly cookie. A session is
valid only if the signature checks out, the token has not expired and it
carries the admin claim; a bare cookie value is not enough.
"""

import hmac
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException, Request, status
from jose import JWTError, jwt
from starlette.responses import Response

from qrlink.core.setting import settings

ADMIN_SESSION_COOKIE = "admin_session"
ALGORITHM = "HS256"


def check_admin_password(password: str) -> bool:
    """Compare against the configured password in constant time."""
    if not settings.ADMIN_PASSWORD:
        return False
    return hmac.compare_digest(password.encode(), settings.ADMIN_PASSWORD.encode())


def create_session_token(expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(seconds=settings.ADMIN_SESSION_MAX_AGE))
    payload = {"admin": True, "type": "admin_session", "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_session_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None


def create_admin_session(response: Response) -> None:
    """Attach a fresh session cookie to ``response``."""
    response.set_cookie(
        ADMIN_SESSION_COOKIE,
        create_session_token(),
        max_age=settings.ADMIN_SESSION_MAX_AGE,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def clear_admin_session(response: Response) -> None:
    response.delete_cookie(
        ADMIN_SESSION_COOKIE,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def validate_admin_session(request: Request) -> bool:
    token = request.cookies.get(ADMIN_SESSION_COOKIE)
    if not token:
        return False
    payload = decode_session_token(token)
    return bool(payload and payload.get("admin") and payload.get("type") == "admin_session")


def require_admin_session(request: Request) -> None:
    """FastAPI dependency: reject requests without a valid admin session."""
    if not validate_admin_session(request):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized"
        )
