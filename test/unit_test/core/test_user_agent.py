"""Unit tests for user-agent parsing and client address helpers."""

import pytest

from mortiscope.core.user_agent import (
    UNKNOWN_BROWSER,
    UNKNOWN_OS,
    no_geo_lookup,
    normalize_ip_address,
    parse_user_agent,
)

CHROME_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.6099.109 Safari/537.36"
)
EDGE_WINDOWS = CHROME_WINDOWS + " Edg/120.0.2210.77"
SAFARI_MAC = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) "
    "Version/17.1 Safari/605.1.15"
)
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_1_2 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) "
    "Version/17.1 Mobile/15E148 Safari/604.1"
)
SAMSUNG_ANDROID = (
    "Mozilla/5.0 (Linux; Android 13; SM-S918B) AppleWebKit/537.36 (KHTML, like Gecko) "
    "SamsungBrowser/23.0 Chrome/115.0.0.0 Mobile Safari/537.36"
)
FIREFOX_LINUX = "Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0"


class TestParseUserAgent:
    """Test browser, OS and device detection."""

    def test_chrome_on_windows(self):
        parsed = parse_user_agent(CHROME_WINDOWS)
        assert parsed.browser_name == "Chrome"
        assert parsed.browser_version == "120.0.6099.109"
        assert parsed.os_name == "Windows"
        assert parsed.os_version == "10"
        assert parsed.device_type is None

    def test_edge_wins_over_chrome(self):
        assert parse_user_agent(EDGE_WINDOWS).browser_name == "Edge"

    def test_safari_on_mac(self):
        parsed = parse_user_agent(SAFARI_MAC)
        assert parsed.browser_name == "Safari"
        assert parsed.os_name == "Mac OS"
        assert parsed.os_version == "10.15.7"
        assert parsed.device_vendor == "Apple"

    def test_iphone(self):
        parsed = parse_user_agent(SAFARI_IPHONE)
        assert parsed.os_name == "iOS"
        assert parsed.os_version == "17.1.2"
        assert (parsed.device_type, parsed.device_vendor, parsed.device_model) == ("mobile", "Apple", "iPhone")

    def test_samsung_phone(self):
        parsed = parse_user_agent(SAMSUNG_ANDROID)
        assert parsed.browser_name == "Samsung Internet"
        assert parsed.os_name == "Android"
        assert parsed.os_version == "13"
        assert (parsed.device_type, parsed.device_vendor, parsed.device_model) == ("mobile", "Samsung", "SM-S918B")

    def test_firefox_on_linux(self):
        parsed = parse_user_agent(FIREFOX_LINUX)
        assert parsed.browser_name == "Firefox"
        assert parsed.os_name == "Linux"

    @pytest.mark.parametrize("user_agent", ["", "curl/8.4.0"])
    def test_unknown(self, user_agent):
        parsed = parse_user_agent(user_agent)
        assert parsed.browser_name == UNKNOWN_BROWSER
        assert parsed.os_name == UNKNOWN_OS


class TestClientAddress:
    @pytest.mark.parametrize(
        "raw, expected",
        [("::ffff:10.0.0.1", "10.0.0.1"), ("203.0.113.7", "203.0.113.7"), ("2001:db8::1", "2001:db8::1")],
    )
    def test_normalize_ip_address(self, raw, expected):
        assert normalize_ip_address(raw) == expected

    def test_default_geo_lookup(self):
        assert no_geo_lookup("203.0.113.7") is None
