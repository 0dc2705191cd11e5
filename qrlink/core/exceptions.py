"""
Custom Exceptions

Service-level error types. Endpoints translate these into HTTP responses;
services never raise HTTP errors themselves.
"""

from typing import Optional


class QRLinkException(Exception):
    """Base exception for the QR link service."""
    pass


class InvalidURLError(QRLinkException):
    """Raised when URL validation fails."""

    def __init__(self, url: str, reason: str = "Invalid URL format"):
        self.url = url
        self.reason = reason
        super().__init__(f"{reason}: {url}")


class ShortCodeConflictError(QRLinkException):
    """Raised when inserting a short code that is already taken."""

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(f"Short code '{short_code}' already exists")


class DatabaseError(QRLinkException):
    """Raised when database operations fail."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")


class QRRenderError(QRLinkException):
    """Raised when the QR image cannot be produced."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"QR render error: {message}")
