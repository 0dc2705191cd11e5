"""
Analytics Service

Aggregates scan events for one QR code into the five views shown on the
analytics page: total scans, daily time series, and device, browser and
location breakdowns.

Design Decisions:
- Five independent read-only queries; no shared transaction, so under
  concurrent scans the numbers may come from slightly different snapshots
- NULL categories are folded into the literal "unknown" inside the GROUP BY,
  so every scan lands in exactly one bucket
- Breakdowns that can grow without bound are capped (browsers 10, locations 20)
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List

from sqlalchemy import select, func, literal_column
from sqlalchemy.ext.asyncio import AsyncSession

from qrlink.db.models import Scan

UNKNOWN = "unknown"
BROWSER_LIMIT = 10
LOCATION_LIMIT = 20

# Rendered inline so SELECT and GROUP BY carry the identical expression
UNKNOWN_LITERAL = literal_column(f"'{UNKNOWN}'")


@dataclass
class DateCount:
    date: str
    count: int


@dataclass
class DeviceCount:
    device_type: str
    count: int


@dataclass
class BrowserCount:
    browser: str
    count: int


@dataclass
class LocationCount:
    country: str
    city: str
    count: int


@dataclass
class ScanAnalytics:
    """Read-only view over a QR code's scans, computed on demand."""
    total_scans: int = 0
    scans_by_date: List[DateCount] = field(default_factory=list)
    device_breakdown: List[DeviceCount] = field(default_factory=list)
    browser_breakdown: List[BrowserCount] = field(default_factory=list)
    location_breakdown: List[LocationCount] = field(default_factory=list)


def _format_date(value) -> str:
    # SQLite's date() yields a string, PostgreSQL's a date
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


class AnalyticsService:
    """Service for aggregating scan statistics."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_qr_code_analytics(self, qr_code_id: int) -> ScanAnalytics:
        """
        Compute every aggregate for one QR code.

        Returns empty collections (and a zero total) for codes without scans;
        the caller is responsible for checking that the QR code exists.
        """
        return ScanAnalytics(
            total_scans=await self.total_scans(qr_code_id),
            scans_by_date=await self.scans_by_date(qr_code_id),
            device_breakdown=await self.device_breakdown(qr_code_id),
            browser_breakdown=await self.browser_breakdown(qr_code_id),
            location_breakdown=await self.location_breakdown(qr_code_id),
        )

    async def total_scans(self, qr_code_id: int) -> int:
        statement = select(func.count(Scan.id)).where(Scan.qr_code_id == qr_code_id)
        result = await self.session.execute(statement)
        return result.scalar() or 0

    async def scans_by_date(self, qr_code_id: int) -> List[DateCount]:
        """Daily counts, oldest day first."""
        day = func.date(Scan.scanned_at).label("day")
        statement = (
            select(day, func.count(Scan.id))
            .where(Scan.qr_code_id == qr_code_id)
            .group_by(day)
            .order_by(day.asc())
        )
        result = await self.session.execute(statement)
        return [DateCount(date=_format_date(value), count=count) for value, count in result.all()]

    async def device_breakdown(self, qr_code_id: int) -> List[DeviceCount]:
        device_type = func.coalesce(Scan.device_type, UNKNOWN_LITERAL).label("device_bucket")
        count = func.count(Scan.id).label("scan_count")
        statement = (
            select(device_type, count)
            .where(Scan.qr_code_id == qr_code_id)
            .group_by(device_type)
            .order_by(count.desc(), device_type.asc())
        )
        result = await self.session.execute(statement)
        return [DeviceCount(device_type=name, count=total) for name, total in result.all()]

    async def browser_breakdown(self, qr_code_id: int) -> List[BrowserCount]:
        """Most common browsers first, at most BROWSER_LIMIT groups."""
        browser = func.coalesce(Scan.browser, UNKNOWN_LITERAL).label("browser_bucket")
        count = func.count(Scan.id).label("scan_count")
        statement = (
            select(browser, count)
            .where(Scan.qr_code_id == qr_code_id)
            .group_by(browser)
            .order_by(count.desc(), browser.asc())
            .limit(BROWSER_LIMIT)
        )
        result = await self.session.execute(statement)
        return [BrowserCount(browser=name, count=total) for name, total in result.all()]

    async def location_breakdown(self, qr_code_id: int) -> List[LocationCount]:
        """Most common (country, city) pairs first, at most LOCATION_LIMIT groups."""
        country = func.coalesce(Scan.country, UNKNOWN_LITERAL).label("country_bucket")
        city = func.coalesce(Scan.city, UNKNOWN_LITERAL).label("city_bucket")
        count = func.count(Scan.id).label("scan_count")
        statement = (
            select(country, city, count)
            .where(Scan.qr_code_id == qr_code_id)
            .group_by(country, city)
            .order_by(count.desc(), country.asc(), city.asc())
            .limit(LOCATION_LIMIT)
        )
        result = await self.session.execute(statement)
        return [
            LocationCount(country=country_name, city=city_name, count=total)
            for country_name, city_name, total in result.all()
        ]
