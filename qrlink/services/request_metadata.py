"""
Request Metadata Extraction

Derives the descriptive fields of a scan from inbound request headers:
- Device type and browser family from the User-Agent (via user_agents)
- Country and city from the geolocation headers set by the edge proxy
- Client IP from proxy headers, redacted before it is ever stored

Nothing in here raises on malformed input; unknown values degrade to
"desktop", "unknown" or None.
"""

import logging
import re
from typing import Mapping, Optional, Tuple
from urllib.parse import unquote

import user_agents

from qrlink.core.setting import settings
from qrlink.db.models import DeviceType

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"

# ua-parser's catch-all family for agents it cannot identify
UNRECOGNIZED_FAMILY = "Other"

DOTTED_QUAD = re.compile(r"^\d{1,3}(\.\d{1,3}){3}$")
IPV6_SEGMENT = re.compile(r"^[0-9A-Fa-f]{0,4}$")

# Width of scans.ip_address
MAX_IP_LENGTH = 45


def parse_user_agent(user_agent_string: Optional[str]) -> Tuple[str, str]:
    """
    Classify a User-Agent string.

    Returns:
        (device_type, browser): device_type is "mobile", "tablet" or
        "desktop" (the default for empty or unparseable strings); browser is
        the parser's family name or "unknown"
    """
    if not user_agent_string:
        return DeviceType.desktop.value, UNKNOWN

    try:
        user_agent = user_agents.parse(user_agent_string)
    except Exception as e:
        logger.warning(f"Could not parse user agent {user_agent_string!r}: {e}")
        return DeviceType.desktop.value, UNKNOWN

    if user_agent.is_mobile:
        device_type = DeviceType.mobile.value
    elif user_agent.is_tablet:
        device_type = DeviceType.tablet.value
    else:
        device_type = DeviceType.desktop.value

    family = user_agent.browser.family
    browser = family if family and family != UNRECOGNIZED_FAMILY else UNKNOWN

    return device_type, browser


def decode_header_value(value: str) -> str:
    """
    Percent-decode a UTF-8 header value.

    Falls back to the raw value when it is not valid percent-encoded UTF-8.
    """
    try:
        return unquote(value, encoding="utf-8", errors="strict")
    except UnicodeDecodeError:
        return value


def get_geolocation_from_headers(
    headers: Mapping[str, str]
) -> Tuple[Optional[str], Optional[str]]:
    """
    Read coarse location from the proxy's geolocation headers.

    Returns:
        (country, city), each None when the header is absent
    """
    country = headers.get(settings.GEO_COUNTRY_HEADER) or None
    city = headers.get(settings.GEO_CITY_HEADER) or None

    if city:
        city = decode_header_value(city)

    return country, city


def redact_ip(ip_address: str) -> str:
    """
    Drop the host part of an address before storage.

    IPv4 loses its last octet ("192.168.1.100" -> "192.168.1.xxx"), IPv6 its
    last segment; any other shape, or a result wider than the column,
    becomes "unknown".
    """
    ip_address = ip_address.strip()

    if DOTTED_QUAD.match(ip_address):
        return ip_address.rsplit(".", 1)[0] + ".xxx"

    segments = ip_address.split(":")
    if len(segments) > 2 and all(IPV6_SEGMENT.fullmatch(segment) for segment in segments[:-1]):
        redacted = ":".join(segments[:-1]) + ":xxxx"
        if len(redacted) <= MAX_IP_LENGTH:
            return redacted

    return UNKNOWN


def get_forwarded_ip(headers: Mapping[str, str]) -> Optional[str]:
    """
    The client address as reported by the proxy, unredacted.

    X-Forwarded-For can contain multiple IPs; the first is the client.
    """
    forwarded_for = headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    return None


def get_client_ip(headers: Mapping[str, str]) -> Optional[str]:
    """
    Privacy-safe client IP for scan records.

    Returns:
        The redacted address, or None when no proxy header carries one
    """
    ip_address = get_forwarded_ip(headers)
    if ip_address is None:
        return None
    return redact_ip(ip_address)
