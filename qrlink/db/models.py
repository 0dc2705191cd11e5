"""
Database Models for the QR Link Service

This module defines the SQLModel database schemas for:
- QRCode: A short code, its redirect target and the colors it was rendered with
- Scan: One redirect traversal with the request metadata derived from it

Design Decisions:
- QR codes are never hard-deleted; deleted_at marks a soft delete
- Scans reference QR codes by id and are append-only
- Indexes on scans.qr_code_id and scans.scanned_at serve the analytics queries
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text, ForeignKey
from sqlmodel import SQLModel, Field, Column


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class DeviceType(str, Enum):
    mobile = "mobile"
    tablet = "tablet"
    desktop = "desktop"
    unknown = "unknown"


class QRCode(SQLModel, table=True):
    """
    A generated QR code and the short link it encodes.

    Indexes:
    - short_code: Unique index for redirect lookups (most critical path)
    - created_at: For newest-first listing
    """
    __tablename__ = "qr_codes"

    id: Optional[int] = Field(default=None, primary_key=True)
    short_code: str = Field(
        sa_column=Column(String(12), nullable=False, unique=True, index=True),
        max_length=12
    )
    target_url: str = Field(sa_column=Column(Text, nullable=False))
    fg_color: str = Field(
        default="#000000",
        sa_column=Column(String(7), nullable=False, default="#000000")
    )
    bg_color: str = Field(
        default="#FFFFFF",
        sa_column=Column(String(7), nullable=False, default="#FFFFFF")
    )
    author: Optional[str] = Field(
        default=None,
        sa_column=Column(String(30), nullable=True)
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
    deleted_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True)
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class Scan(SQLModel, table=True):
    """
    One scan of a QR code (a redirect through its short link).

    All descriptive columns are nullable: tracking records whatever the
    request offered. ip_address holds an already-redacted value.
    """
    __tablename__ = "scans"

    id: Optional[int] = Field(default=None, primary_key=True)
    qr_code_id: int = Field(
        sa_column=Column(Integer, ForeignKey("qr_codes.id"), nullable=False, index=True)
    )
    scanned_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
    user_agent: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True)
    )
    ip_address: Optional[str] = Field(
        default=None,
        sa_column=Column(String(45), nullable=True)  # IPv6 max length
    )
    country: Optional[str] = Field(default=None, sa_column=Column(String(100), nullable=True))
    city: Optional[str] = Field(default=None, sa_column=Column(String(200), nullable=True))
    device_type: Optional[str] = Field(default=None, sa_column=Column(String(20), nullable=True))
    browser: Optional[str] = Field(default=None, sa_column=Column(String(100), nullable=True))
