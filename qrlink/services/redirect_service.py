"""
Redirect Service

Resolves a short code to the record a redirect should use, and builds the
scan event for it from the request headers.

Design Decisions:
- Lookups fail closed: a soft-deleted code resolves exactly like a missing one
- The deleted/missing distinction is only computed on a miss, for the message
- The target URL is returned as stored; it was validated at creation time
"""

from dataclasses import dataclass
from typing import Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from qrlink.db.models import QRCode
from qrlink.services.qr_code_service import QRCodeService
from qrlink.services.request_metadata import (
    get_client_ip,
    get_geolocation_from_headers,
    parse_user_agent,
)
from qrlink.services.scan_service import ScanData


@dataclass
class RedirectLookup:
    """Outcome of resolving a short code."""
    qr_code: Optional[QRCode] = None
    was_deleted: bool = False

    @property
    def found(self) -> bool:
        return self.qr_code is not None


def build_scan_data(qr_code_id: int, headers: Mapping[str, str]) -> ScanData:
    """Collect everything a scan records about the request."""
    user_agent = headers.get("user-agent") or ""
    device_type, browser = parse_user_agent(user_agent)
    country, city = get_geolocation_from_headers(headers)

    return ScanData(
        qr_code_id=qr_code_id,
        user_agent=user_agent or None,
        ip_address=get_client_ip(headers),
        country=country,
        city=city,
        device_type=device_type,
        browser=browser,
    )


class RedirectService:
    """Service for resolving short codes to redirect targets."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.qr_code_service = QRCodeService(session)

    async def resolve(self, short_code: str) -> RedirectLookup:
        qr_code = await self.qr_code_service.get_by_short_code(short_code)
        if qr_code:
            return RedirectLookup(qr_code=qr_code)

        deleted = await self.qr_code_service.get_by_short_code(short_code, include_deleted=True)
        return RedirectLookup(was_deleted=deleted is not None)
