"""
Background Task Helpers

Scan tracking runs after the redirect response has been sent. The task opens
its own database session because the endpoint's session is closed by then.
Failures are logged and dropped: tracking must never affect a redirect.
"""

import logging

from qrlink.db.session import async_session_maker
from qrlink.services.scan_service import ScanData, ScanService

logger = logging.getLogger(__name__)


async def track_scan_background(scan_data: ScanData) -> None:
    """
    Background task to record a scan.

    Args:
        scan_data: Metadata extracted from the redirect request
    """
    try:
        async with async_session_maker() as session:
            scan_service = ScanService(session)
            await scan_service.create_scan(scan_data)
    except Exception as e:
        logger.error(
            f"Failed to track scan for QR code {scan_data.qr_code_id}: {str(e)}",
            exc_info=True
        )
