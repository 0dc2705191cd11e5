"""Tests for scan metadata extraction from request headers."""

from qrlink.services.redirect_service import build_scan_data
from qrlink.services.request_metadata import (
    decode_header_value,
    get_client_ip,
    get_forwarded_ip,
    get_geolocation_from_headers,
    parse_user_agent,
    redact_ip,
)

IPHONE_SAFARI = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
IPAD_SAFARI = (
    "Mozilla/5.0 (iPad; CPU OS 16_6 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.6 Mobile/15E148 Safari/604.1"
)
WINDOWS_CHROME = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
MAC_FIREFOX = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:121.0) Gecko/20100101 Firefox/121.0"


class TestUserAgentParsing:
    """Device type and browser detection."""

    def test_mobile(self):
        assert parse_user_agent(IPHONE_SAFARI) == ("mobile", "Mobile Safari")

    def test_tablet(self):
        device_type, _ = parse_user_agent(IPAD_SAFARI)
        assert device_type == "tablet"

    def test_desktop(self):
        assert parse_user_agent(WINDOWS_CHROME) == ("desktop", "Chrome")
        assert parse_user_agent(MAC_FIREFOX) == ("desktop", "Firefox")

    def test_empty_user_agent(self):
        assert parse_user_agent("") == ("desktop", "unknown")
        assert parse_user_agent(None) == ("desktop", "unknown")

    def test_unrecognized_browser(self):
        """Strings the parser cannot identify report an unknown browser."""
        device_type, browser = parse_user_agent("definitely-not-a-browser")
        assert device_type == "desktop"
        assert browser == "unknown"


class TestGeolocation:
    def test_reads_country_and_city(self):
        headers = {"x-vercel-ip-country": "US", "x-vercel-ip-city": "San%20Francisco"}
        assert get_geolocation_from_headers(headers) == ("US", "San Francisco")

    def test_decodes_utf8_city(self):
        headers = {"x-vercel-ip-country": "BR", "x-vercel-ip-city": "S%C3%A3o%20Paulo"}
        assert get_geolocation_from_headers(headers) == ("BR", "São Paulo")

    def test_missing_headers(self):
        assert get_geolocation_from_headers({}) == (None, None)

    def test_bad_encoding_keeps_raw_value(self):
        assert decode_header_value("Invalid%Encoding") == "Invalid%Encoding"
        assert decode_header_value("%FF%FE") == "%FF%FE"


class TestIPRedaction:
    """Client IPs are never stored in full."""

    def test_ipv4(self):
        assert redact_ip("192.168.1.100") == "192.168.1.xxx"

    def test_ipv6(self):
        assert redact_ip("2001:db8:85a3::8a2e:370:7334") == "2001:db8:85a3::8a2e:370:xxxx"

    def test_unrecognized(self):
        assert redact_ip("not-an-ip") == "unknown"
        assert redact_ip("") == "unknown"

    def test_ipv4_mapped_ipv6(self):
        assert redact_ip("::ffff:192.0.2.1") == "::ffff:xxxx"

    def test_colon_strings_that_are_not_ipv6(self):
        """Anything stored must be a plausible address that fits the column."""
        assert redact_ip("a:" * 40 + "b") == "unknown"
        assert redact_ip("host:name:here") == "unknown"
        assert redact_ip("12345:1:2") == "unknown"

    def test_forwarded_for_takes_first_entry(self):
        headers = {"x-forwarded-for": "203.0.113.7, 10.0.0.1", "x-real-ip": "198.51.100.2"}
        assert get_forwarded_ip(headers) == "203.0.113.7"
        assert get_client_ip(headers) == "203.0.113.xxx"

    def test_real_ip_fallback(self):
        assert get_client_ip({"x-real-ip": "198.51.100.2"}) == "198.51.100.xxx"

    def test_no_proxy_headers(self):
        assert get_client_ip({}) is None


class TestBuildScanData:
    def test_collects_all_fields(self):
        headers = {
            "user-agent": WINDOWS_CHROME,
            "x-forwarded-for": "203.0.113.7",
            "x-vercel-ip-country": "DE",
            "x-vercel-ip-city": "Berlin",
        }
        scan_data = build_scan_data(42, headers)

        assert scan_data.qr_code_id == 42
        assert scan_data.user_agent == WINDOWS_CHROME
        assert scan_data.ip_address == "203.0.113.xxx"
        assert scan_data.country == "DE"
        assert scan_data.city == "Berlin"
        assert scan_data.device_type == "desktop"
        assert scan_data.browser == "Chrome"

    def test_bare_request(self):
        scan_data = build_scan_data(1, {})

        assert scan_data.user_agent is None
        assert scan_data.ip_address is None
        assert scan_data.country is None
        assert scan_data.device_type == "desktop"
        assert scan_data.browser == "unknown"
