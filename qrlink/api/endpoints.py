"""
FastAPI Endpoints for the QR Link Service

This module defines the public endpoints with minimal logic.
Endpoints only handle:
- Request validation (Pydantic models, path parameter checks)
- Rate limiting
- Error handling and HTTP responses
- Delegating to the service layer

Admin-only endpoints live in qrlink.api.admin.
"""

import logging
import re

from fastapi import APIRouter, Request, Depends, HTTPException, BackgroundTasks, status
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from qrlink.api.schemas import (
    AnalyticsData,
    AnalyticsQRCode,
    AnalyticsResponse,
    GenerateQRCodeData,
    GenerateQRCodeRequest,
    GenerateQRCodeResponse,
    QRCodeListData,
    QRCodeListResponse,
    QRCodeSummary,
    ScanAnalyticsSchema,
)
from qrlink.core.exceptions import InvalidURLError
from qrlink.core.rate_limit import limiter, RATE_LIMITS
from qrlink.core.setting import settings
from qrlink.core.validators import sanitize_short_code
from qrlink.db.session import get_session
from qrlink.services.analytics_service import AnalyticsService
from qrlink.services.background_tasks import track_scan_background
from qrlink.services.qr_code_service import QRCodeService
from qrlink.services.qr_renderer import render_qr_data_url
from qrlink.services.redirect_service import RedirectService, build_scan_data
from qrlink.services.short_code import ShortCodeGenerator

logger = logging.getLogger(__name__)

router = APIRouter()

QR_CODE_ID_PATTERN = re.compile(r"^[0-9]+$")
MAX_QR_CODE_ID = 2**31 - 1

CONNECTION_ERROR_MESSAGE = "Database connection error. Please try again later."


def public_url(path: str) -> str:
    return f"{settings.BASE_URL.rstrip('/')}{path}"


def read_error_message(error: Exception, fallback: str) -> str:
    """Pick the user-facing message for a failed read."""
    if isinstance(error, (OperationalError, InterfaceError)) or "connect" in str(error).lower():
        return CONNECTION_ERROR_MESSAGE
    return fallback


@router.post(
    "/api/qr/generate",
    response_model=GenerateQRCodeResponse,
    summary="Generate a QR code",
    description="Stores a short link for the target URL and returns its QR code image"
)
@limiter.limit(RATE_LIMITS["generate"])
async def generate_qr_code(
    request: Request,  # Required for rate limiting (slowapi expects parameter named 'request')
    body: GenerateQRCodeRequest,
    session: AsyncSession = Depends(get_session)
) -> GenerateQRCodeResponse:
    """
    Create a QR code record and render its image.

    Returns:
        GenerateQRCodeResponse with the short link, image and analytics link
    """
    try:
        short_code = await ShortCodeGenerator(session).generate()

        qr_code = await QRCodeService(session).create_qr_code(
            short_code=short_code,
            target_url=body.target_url,
            fg_color=body.fg_color,
            bg_color=body.bg_color,
            author=body.author
        )

        short_url = public_url(f"/r/{qr_code.short_code}")
        qr_code_data_url = render_qr_data_url(
            short_url,
            fg_color=qr_code.fg_color,
            bg_color=qr_code.bg_color,
            width=settings.QR_IMAGE_WIDTH,
            margin=settings.QR_IMAGE_MARGIN
        )

        logger.info(f"QR code {qr_code.id} created with short code {qr_code.short_code}")

        return GenerateQRCodeResponse(
            data=GenerateQRCodeData(
                qr_code_id=qr_code.id,
                short_code=qr_code.short_code,
                short_url=short_url,
                target_url=qr_code.target_url,
                author=qr_code.author,
                fg_color=qr_code.fg_color,
                bg_color=qr_code.bg_color,
                qr_code_data_url=qr_code_data_url,
                analytics_url=public_url(f"/analytics/{qr_code.id}")
            )
        )

    except InvalidURLError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.reason
        )
    except Exception as e:
        logger.error(f"QR generation failed: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate QR code. Please try again."
        )


@router.get(
    "/api/qr/list",
    response_model=QRCodeListResponse,
    summary="List QR codes",
    description="All live QR codes with their total scan counts, newest first"
)
@limiter.limit(RATE_LIMITS["list"])
async def list_qr_codes(
    request: Request,
    session: AsyncSession = Depends(get_session)
) -> QRCodeListResponse:
    try:
        items = await QRCodeService(session).list_with_scan_counts()
    except Exception as e:
        logger.error(f"QR list failed: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=read_error_message(e, "Failed to fetch QR codes. Please try again.")
        )

    return QRCodeListResponse(
        data=QRCodeListData(
            qr_codes=[
                QRCodeSummary(
                    id=item.qr_code.id,
                    short_code=item.qr_code.short_code,
                    target_url=item.qr_code.target_url,
                    author=item.qr_code.author,
                    fg_color=item.qr_code.fg_color,
                    bg_color=item.qr_code.bg_color,
                    created_at=item.qr_code.created_at,
                    total_scans=item.total_scans
                )
                for item in items
            ]
        )
    )


@router.get(
    "/api/analytics/{qr_code_id}",
    response_model=AnalyticsResponse,
    summary="Get scan analytics",
    description="Total scans, daily series and device, browser and location breakdowns"
)
@limiter.limit(RATE_LIMITS["analytics"])
async def get_analytics(
    qr_code_id: str,
    request: Request,  # Required for rate limiting
    session: AsyncSession = Depends(get_session)
) -> AnalyticsResponse:
    """
    Get analytics for one QR code.

    Raises:
        HTTPException 400: If the id is not a positive integer
        HTTPException 404: If the QR code does not exist or was deleted
    """
    digits = qr_code_id.lstrip("0")
    if not QR_CODE_ID_PATTERN.fullmatch(qr_code_id) or not digits:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid QR code ID. Please provide a valid numeric ID."
        )

    try:
        qr_code = None
        # Larger ids cannot exist in an INTEGER primary key
        if len(digits) <= 10 and int(digits) <= MAX_QR_CODE_ID:
            qr_code = await QRCodeService(session).get_by_id(int(digits))

        if not qr_code:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="QR code not found. It may have been deleted or the ID is incorrect."
            )

        analytics = await AnalyticsService(session).get_qr_code_analytics(qr_code.id)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Analytics fetch failed for QR code {qr_code_id}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=read_error_message(e, "Failed to fetch analytics. Please try again.")
        )

    return AnalyticsResponse(
        data=AnalyticsData(
            qr_code=AnalyticsQRCode.model_validate(qr_code, from_attributes=True),
            analytics=ScanAnalyticsSchema.model_validate(analytics, from_attributes=True)
        )
    )


@router.get(
    "/r/{short_code}",
    status_code=status.HTTP_302_FOUND,
    summary="Redirect to target URL",
    description="Redirects a scanned short link to its target and records the scan"
)
async def redirect_to_target(
    short_code: str,
    request: Request,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session)
) -> RedirectResponse:
    """
    Redirect to the target URL for a given short code.

    The scan is recorded by a background task that runs after the response
    is sent; its failure never changes the redirect.

    Raises:
        HTTPException 400: If short code format is invalid
        HTTPException 404: If short code not found or deleted
        HTTPException 500: If the lookup fails
    """
    sanitized_code = sanitize_short_code(short_code, max_length=settings.SHORT_CODE_MAX_LENGTH)
    if not sanitized_code:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid short code format"
        )

    try:
        lookup = await RedirectService(session).resolve(sanitized_code)
    except Exception as e:
        logger.error(f"Redirect lookup failed for {sanitized_code}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )

    if not lookup.found:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=(
                "This QR code has been deleted and is no longer available"
                if lookup.was_deleted else "QR code not found"
            )
        )

    qr_code = lookup.qr_code

    try:
        background_tasks.add_task(
            track_scan_background,
            build_scan_data(qr_code.id, request.headers)
        )
    except Exception as e:
        logger.error(f"Failed to schedule scan tracking for {sanitized_code}: {str(e)}", exc_info=True)

    return RedirectResponse(
        url=qr_code.target_url,
        status_code=status.HTTP_302_FOUND
    )
