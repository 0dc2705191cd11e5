"""
Short Code Generator

Short codes are random strings over a 64-character URL-safe alphabet. Each
candidate is checked against storage; collisions are retried a few times and
then the generator falls back to a longer code whose collision probability is
negligible, without checking it again.

Only logical collisions are retried. If the existence check itself fails
(database unreachable) the error propagates to the caller.
"""

import logging
import secrets
import string

from sqlalchemy.ext.asyncio import AsyncSession

from qrlink.core.setting import settings
from qrlink.services.qr_code_service import QRCodeService

logger = logging.getLogger(__name__)

SHORT_CODE_ALPHABET = string.ascii_letters + string.digits + "_-"


def random_short_code(length: int) -> str:
    return "".join(secrets.choice(SHORT_CODE_ALPHABET) for _ in range(length))


class ShortCodeGenerator:
    """Produces short codes that are not yet present in qr_codes."""

    def __init__(
        self,
        session: AsyncSession,
        length: int = settings.SHORT_CODE_LENGTH,
        fallback_length: int = settings.SHORT_CODE_FALLBACK_LENGTH,
        max_retries: int = settings.SHORT_CODE_MAX_RETRIES
    ):
        self.qr_code_service = QRCodeService(session)
        self.length = length
        self.fallback_length = fallback_length
        self.max_retries = max_retries

    async def generate(self) -> str:
        """
        Return a short code unused at the time of the check.

        Raises:
            Whatever the existence query raises on infrastructure failure
        """
        for attempt in range(1, self.max_retries + 1):
            candidate = random_short_code(self.length)
            if not await self.qr_code_service.short_code_exists(candidate):
                return candidate
            logger.warning(f"Short code collision on attempt {attempt}: {candidate}")

        logger.warning(
            f"{self.max_retries} collisions in a row, "
            f"falling back to a {self.fallback_length}-character code"
        )
        return random_short_code(self.fallback_length)
