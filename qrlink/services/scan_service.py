"""
Scan Recording Service

Writes scan events for analytics. Called from the redirect's background task,
never from the request path itself.

Design Decisions:
- Input is a ScanData struct with explicit optional fields rather than a dict
- Rows are append-only; nothing here updates or deletes a scan
"""

from dataclasses import dataclass, fields
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from qrlink.db.models import Scan, utcnow


@dataclass(frozen=True)
class ScanData:
    """
    Everything known about one scan before it is stored.

    Only qr_code_id is required. Every other member defaults to None, and
    empty strings are stored as NULL so "unknown" is represented one way.
    """
    qr_code_id: int
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    device_type: Optional[str] = None
    browser: Optional[str] = None

    def normalized(self) -> dict:
        values = {}
        for field in fields(self):
            value = getattr(self, field.name)
            values[field.name] = value if value != "" else None
        return values


class ScanService:
    """Service for recording QR code scans."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_scan(self, scan_data: ScanData) -> Scan:
        """
        Store one scan event.

        Args:
            scan_data: Metadata extracted from the redirect request

        Returns:
            The stored Scan with id and scanned_at populated
        """
        scan = Scan(**scan_data.normalized(), scanned_at=utcnow())

        self.session.add(scan)
        await self.session.commit()
        await self.session.refresh(scan)
        return scan
