"""
Admin Endpoints

Password login backed by a signed session cookie, and soft deletion of QR
codes. Failed logins are rate limited per client IP by AdminAuthRateLimiter.
"""

import logging
import math
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from qrlink.api.schemas import AdminAuthRequest, SuccessResponse
from qrlink.core.admin_session import (
    check_admin_password,
    clear_admin_session,
    create_admin_session,
    require_admin_session,
)
from qrlink.core.rate_limit import AdminAuthRateLimiter, get_admin_rate_limiter
from qrlink.core.setting import settings
from qrlink.core.validators import sanitize_short_code
from qrlink.db.session import get_session
from qrlink.services.qr_code_service import QRCodeService
from qrlink.services.request_metadata import get_forwarded_ip

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin")


def get_limiter_key(request: Request) -> str:
    """Unredacted client address, used only as the attempt counter key."""
    forwarded = get_forwarded_ip(request.headers)
    if forwarded:
        return forwarded
    return request.client.host if request.client else "unknown"


@router.post(
    "/auth",
    response_model=SuccessResponse,
    summary="Admin login",
    description="Checks the admin password and sets the session cookie"
)
async def login(
    body: AdminAuthRequest,
    request: Request,
    rate_limiter: AdminAuthRateLimiter = Depends(get_admin_rate_limiter)
) -> JSONResponse:
    """
    Start an admin session.

    Raises:
        HTTPException 429: Too many failed attempts from this client
        HTTPException 403: No admin password configured
        HTTPException 401: Wrong password
    """
    ip = get_limiter_key(request)

    limit_status = rate_limiter.check(ip)
    if not limit_status.allowed:
        retry_after = max(
            0, math.ceil((limit_status.reset_time - datetime.now(timezone.utc)).total_seconds())
        )
        logger.warning(f"Admin login blocked for {ip}: too many attempts")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "Too many attempts. Try again later.",
                "resetTime": limit_status.reset_time.isoformat(),
            },
            headers={"Retry-After": str(retry_after)}
        )

    if not settings.ADMIN_PASSWORD:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin login not configured"
        )

    if not check_admin_password(body.password):
        rate_limiter.record_failed_attempt(ip)
        remaining = rate_limiter.check(ip).remaining_attempts
        logger.warning(f"Failed admin login from {ip}, {remaining} attempts left")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid password", "remainingAttempts": remaining}
        )

    rate_limiter.clear_attempts(ip)
    logger.info(f"Admin session started from {ip}")

    response = JSONResponse({"success": True})
    create_admin_session(response)
    return response


@router.delete("/auth", response_model=SuccessResponse, summary="Admin logout")
async def logout() -> JSONResponse:
    response = JSONResponse({"success": True})
    clear_admin_session(response)
    return response


@router.delete(
    "/qr/{short_code}",
    response_model=SuccessResponse,
    summary="Delete a QR code",
    description="Soft-deletes a QR code; its scans are kept"
)
async def delete_qr_code(
    short_code: str,
    _: None = Depends(require_admin_session),
    session: AsyncSession = Depends(get_session)
) -> SuccessResponse:
    sanitized_code = sanitize_short_code(short_code, max_length=settings.SHORT_CODE_MAX_LENGTH)
    if not sanitized_code:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid short code format"
        )

    try:
        deleted = await QRCodeService(session).soft_delete(sanitized_code)
    except Exception as e:
        logger.error(f"Failed to delete QR code {sanitized_code}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete QR code. Please try again."
        )

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="QR code not found"
        )

    logger.info(f"QR code {sanitized_code} soft-deleted")
    return SuccessResponse()
