"""
Input Validators and Sanitizers

This module provides validation and sanitization functions for user inputs.
The request schemas and the route handlers share these so that a short code
or URL is judged the same way everywhere.

Security Considerations:
- Only http/https targets are stored, so redirects never reach javascript: or file: URLs
- Short codes are restricted to the generator's alphabet before any query runs
- Length limits keep oversized input out of the database
"""

import re
from typing import Optional
from urllib.parse import urlparse

MAX_URL_LENGTH = 2048

# Alphabet used by the short-code generator (URL-safe, no padding characters)
SHORT_CODE_PATTERN = re.compile(r"^[0-9A-Za-z_-]+$")
HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")
AUTHOR_PATTERN = re.compile(r"^[a-zA-Z0-9\s]+$")

ALLOWED_SCHEMES = {"http", "https"}

URL_REQUIRED_MESSAGE = "URL is required"
URL_TOO_LONG_MESSAGE = f"URL must be less than {MAX_URL_LENGTH} characters"
URL_INVALID_MESSAGE = "Please enter a valid URL (e.g., https://example.com)"
URL_SCHEME_MESSAGE = "URL must start with http:// or https://"


def sanitize_short_code(short_code: str, max_length: int = 20) -> Optional[str]:
    """
    Sanitize and validate short code format.

    Args:
        short_code: The short code to sanitize
        max_length: Longest accepted code

    Returns:
        Sanitized short code if valid, None otherwise
    """
    if not short_code or not isinstance(short_code, str):
        return None

    short_code = short_code.strip()

    if not 1 <= len(short_code) <= max_length:
        return None

    if not SHORT_CODE_PATTERN.fullmatch(short_code):
        return None

    return short_code


def url_validation_error(url: str) -> Optional[str]:
    """
    Check a target URL and describe the first problem found.

    Returns:
        A user-facing message, or None when the URL is acceptable
    """
    if not url or not isinstance(url, str):
        return URL_REQUIRED_MESSAGE

    if not validate_url_length(url):
        return URL_TOO_LONG_MESSAGE

    if any(char.isspace() or ord(char) < 32 for char in url):
        return URL_INVALID_MESSAGE

    try:
        result = urlparse(url)
        hostname = result.hostname
    except ValueError:
        return URL_INVALID_MESSAGE

    if not result.scheme or not result.netloc or not hostname:
        return URL_INVALID_MESSAGE

    if result.scheme.lower() not in ALLOWED_SCHEMES:
        return URL_SCHEME_MESSAGE

    return None


def validate_url_length(url: str, max_length: int = MAX_URL_LENGTH) -> bool:
    """
    Validate URL length.

    Args:
        url: The URL to validate
        max_length: Maximum allowed length (default: 2048 per RFC 7230)

    Returns:
        True if URL length is valid, False otherwise
    """
    return bool(url) and len(url) <= max_length


def is_valid_hex_color(color: str) -> bool:
    """Accept only six-digit hex colors with a leading '#'."""
    return isinstance(color, str) and HEX_COLOR_PATTERN.fullmatch(color) is not None


def is_valid_author(author: str) -> bool:
    return isinstance(author, str) and AUTHOR_PATTERN.fullmatch(author) is not None
