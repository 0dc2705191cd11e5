"""
QR Code Service

Persistence operations for QR code records:
- Creating records with a pre-generated short code
- Looking records up by short code or id (soft-deleted rows hidden)
- Existence checks for the short-code generator (soft-deleted rows included)
- Soft deletion and the newest-first listing with scan counts

Design Decisions:
- Each operation is one query; no multi-statement transactions
- Soft-deleted rows keep their short code reserved forever
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from qrlink.db.models import QRCode, Scan, utcnow
from qrlink.core.exceptions import (
    DatabaseError,
    InvalidURLError,
    ShortCodeConflictError,
)
from qrlink.core.validators import url_validation_error

logger = logging.getLogger(__name__)


@dataclass
class QRCodeWithScans:
    """A QR code together with how many times it has been scanned."""
    qr_code: QRCode
    total_scans: int


class QRCodeService:
    """
    Data access for the qr_codes table.

    Separated from the API layer for testability; every method works on the
    session it was constructed with.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_qr_code(
        self,
        short_code: str,
        target_url: str,
        fg_color: str = "#000000",
        bg_color: str = "#FFFFFF",
        author: Optional[str] = None
    ) -> QRCode:
        """
        Insert a new QR code record.

        Args:
            short_code: Code produced by the short-code generator
            target_url: Redirect destination (http/https)
            fg_color: Foreground color, #RRGGBB
            bg_color: Background color, #RRGGBB
            author: Optional creator name

        Returns:
            The stored QRCode with id and created_at populated

        Raises:
            InvalidURLError: If target_url is not an http/https URL
            ShortCodeConflictError: If short_code is already taken
            DatabaseError: If the insert fails for any other reason
        """
        reason = url_validation_error(target_url)
        if reason:
            raise InvalidURLError(target_url, reason=reason)

        qr_code = QRCode(
            short_code=short_code,
            target_url=target_url,
            fg_color=fg_color,
            bg_color=bg_color,
            author=author
        )

        try:
            self.session.add(qr_code)
            await self.session.flush()
            await self.session.commit()
            await self.session.refresh(qr_code)
            return qr_code

        except IntegrityError as e:
            await self.session.rollback()
            if await self.short_code_exists(short_code):
                raise ShortCodeConflictError(short_code)
            raise DatabaseError(
                "Failed to create QR code: database constraint violation",
                original_error=e
            )
        except Exception as e:
            await self.session.rollback()
            raise DatabaseError(
                f"Failed to create QR code: {str(e)}",
                original_error=e
            )

    async def get_by_short_code(
        self,
        short_code: str,
        include_deleted: bool = False
    ) -> Optional[QRCode]:
        """
        Look up a QR code by its short code.

        Returns:
            QRCode if found, None otherwise (soft-deleted rows count as not
            found unless include_deleted is set)
        """
        statement = select(QRCode).where(QRCode.short_code == short_code)
        if not include_deleted:
            statement = statement.where(QRCode.deleted_at.is_(None))
        result = await self.session.execute(statement.limit(1))
        return result.scalars().first()

    async def get_by_id(self, qr_code_id: int) -> Optional[QRCode]:
        """Look up a non-deleted QR code by primary key."""
        statement = (
            select(QRCode)
            .where(QRCode.id == qr_code_id)
            .where(QRCode.deleted_at.is_(None))
            .limit(1)
        )
        result = await self.session.execute(statement)
        return result.scalars().first()

    async def short_code_exists(self, short_code: str) -> bool:
        """
        Check whether a short code has ever been issued.

        Soft-deleted rows are included: a deleted code is never handed out
        again, so old printed QR codes cannot start pointing somewhere new.
        """
        statement = select(QRCode.id).where(QRCode.short_code == short_code).limit(1)
        result = await self.session.execute(statement)
        return result.first() is not None

    async def soft_delete(self, short_code: str) -> bool:
        """
        Mark a QR code as deleted.

        Returns:
            True if a live row was marked, False if the code does not exist
            or was already deleted
        """
        statement = (
            update(QRCode)
            .where(QRCode.short_code == short_code)
            .where(QRCode.deleted_at.is_(None))
            .values(deleted_at=utcnow())
        )
        result = await self.session.execute(statement)
        await self.session.commit()

        deleted = result.rowcount > 0
        if deleted:
            logger.info(f"QR code {short_code} soft-deleted")
        return deleted

    async def list_with_scan_counts(self) -> List[QRCodeWithScans]:
        """
        All live QR codes with their scan totals, newest first.

        Uses a LEFT JOIN so codes that were never scanned report zero.
        """
        total_scans = func.count(Scan.id).label("total_scans")
        statement = (
            select(QRCode, total_scans)
            .outerjoin(Scan, Scan.qr_code_id == QRCode.id)
            .where(QRCode.deleted_at.is_(None))
            .group_by(QRCode.id)
            .order_by(QRCode.created_at.desc(), QRCode.id.desc())
        )
        result = await self.session.execute(statement)
        return [
            QRCodeWithScans(qr_code=qr_code, total_scans=int(count or 0))
            for qr_code, count in result.all()
        ]
