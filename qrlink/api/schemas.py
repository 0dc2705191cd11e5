"""
API Request and Response Schemas

This module defines all Pydantic models for API requests and responses.
Every response uses the same envelope: ``{"success": true, "data": {...}}``
on success, ``{"success": false, "error": "..."}`` on failure (the error
shape is produced by the exception handlers in qrlink.main).

Validation messages are user-facing and raised as PydanticCustomError so the
message text reaches the client unchanged.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from qrlink.core.validators import (
    is_valid_author,
    is_valid_hex_color,
    url_validation_error,
)

DEFAULT_FG_COLOR = "#000000"
DEFAULT_BG_COLOR = "#FFFFFF"

AUTHOR_MIN_LENGTH = 2
AUTHOR_MAX_LENGTH = 30


class GenerateQRCodeRequest(BaseModel):
    """Request model for QR code generation."""
    target_url: str = Field(..., description="Destination the short link redirects to")
    author: Optional[str] = Field(default=None, description="Name shown next to the code")
    fg_color: str = Field(default=DEFAULT_FG_COLOR, description="Module color (#RRGGBB)")
    bg_color: str = Field(default=DEFAULT_BG_COLOR, description="Background color (#RRGGBB)")

    @field_validator("target_url")
    @classmethod
    def check_target_url(cls, value: str) -> str:
        reason = url_validation_error(value)
        if reason:
            raise PydanticCustomError("target_url", reason)
        return value

    @field_validator("author")
    @classmethod
    def check_author(cls, value: Optional[str]) -> Optional[str]:
        if value is None or value == "":
            return None
        value = value.strip()
        if len(value) < AUTHOR_MIN_LENGTH:
            raise PydanticCustomError("author", f"Author must be at least {AUTHOR_MIN_LENGTH} characters")
        if len(value) > AUTHOR_MAX_LENGTH:
            raise PydanticCustomError("author", f"Author must be at most {AUTHOR_MAX_LENGTH} characters")
        if not is_valid_author(value):
            raise PydanticCustomError("author", "Author can only contain letters, numbers, and spaces")
        return value

    @field_validator("fg_color", mode="before")
    @classmethod
    def check_fg_color(cls, value):
        if value is None:
            return DEFAULT_FG_COLOR
        if not is_valid_hex_color(value):
            raise PydanticCustomError(
                "fg_color", "Foreground color must be a valid hex color (e.g., #000000)"
            )
        return value

    @field_validator("bg_color", mode="before")
    @classmethod
    def check_bg_color(cls, value):
        if value is None:
            return DEFAULT_BG_COLOR
        if not is_valid_hex_color(value):
            raise PydanticCustomError(
                "bg_color", "Background color must be a valid hex color (e.g., #FFFFFF)"
            )
        return value


class GenerateQRCodeData(BaseModel):
    qr_code_id: int
    short_code: str
    short_url: str = Field(..., description="The complete redirect URL encoded in the image")
    target_url: str
    author: Optional[str] = None
    fg_color: str
    bg_color: str
    qr_code_data_url: str = Field(..., description="PNG image as a base64 data URL")
    analytics_url: str


class GenerateQRCodeResponse(BaseModel):
    """Response model for QR code generation."""
    success: bool = True
    data: GenerateQRCodeData


class QRCodeSummary(BaseModel):
    id: int
    short_code: str
    target_url: str
    author: Optional[str] = None
    fg_color: str
    bg_color: str
    created_at: datetime
    total_scans: int


class QRCodeListData(BaseModel):
    qr_codes: List[QRCodeSummary]


class QRCodeListResponse(BaseModel):
    """Response model for the QR code listing."""
    success: bool = True
    data: QRCodeListData


class DateCountSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: str
    count: int


class DeviceCountSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    device_type: str
    count: int


class BrowserCountSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    browser: str
    count: int


class LocationCountSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    country: str
    city: str
    count: int


class ScanAnalyticsSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_scans: int
    scans_by_date: List[DateCountSchema]
    device_breakdown: List[DeviceCountSchema]
    browser_breakdown: List[BrowserCountSchema]
    location_breakdown: List[LocationCountSchema]


class AnalyticsQRCode(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    short_code: str
    target_url: str
    created_at: datetime


class AnalyticsData(BaseModel):
    qr_code: AnalyticsQRCode
    analytics: ScanAnalyticsSchema


class AnalyticsResponse(BaseModel):
    """Response model for the analytics endpoint."""
    success: bool = True
    data: AnalyticsData


class AdminAuthRequest(BaseModel):
    password: str = Field(..., description="Admin password")

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        if not value:
            raise PydanticCustomError("password", "Password is required")
        return value


class SuccessResponse(BaseModel):
    success: bool = True
