"""
User-agent and client address helpers for session tracking.

The parser recognises the browsers, operating systems and device classes that
show up in practice; anything else is reported as "Unknown Browser" /
"Unknown OS" rather than guessed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

UNKNOWN_BROWSER = "Unknown Browser"
UNKNOWN_OS = "Unknown OS"

# Order matters: Edge and Opera also announce Chrome, Chrome also announces Safari.
_BROWSERS: Tuple[Tuple[str, re.Pattern[str]], ...] = (
    ("Edge", re.compile(r"Edg(?:e|A|iOS)?/([\d.]+)")),
    ("Opera", re.compile(r"(?:OPR|Opera)/([\d.]+)")),
    ("Samsung Internet", re.compile(r"SamsungBrowser/([\d.]+)")),
    ("Firefox", re.compile(r"(?:Firefox|FxiOS)/([\d.]+)")),
    ("Chrome", re.compile(r"(?:Chrome|CriOS)/([\d.]+)")),
    ("Safari", re.compile(r"Version/([\d.]+).*Safari/")),
)

_OPERATING_SYSTEMS: Tuple[Tuple[str, re.Pattern[str]], ...] = (
    ("Windows", re.compile(r"Windows NT ([\d.]+)")),
    ("iOS", re.compile(r"(?:iPhone|iPad|iPod).*?OS ([\d_]+)")),
    ("Mac OS", re.compile(r"Mac OS X ([\d_.]+)")),
    ("Android", re.compile(r"Android ([\d.]+)")),
    ("Chromium OS", re.compile(r"CrOS \S+ ([\d.]+)")),
    ("Linux", re.compile(r"Linux()")),
)

_WINDOWS_VERSIONS = {"10.0": "10", "6.3": "8.1", "6.2": "8", "6.1": "7"}


@dataclass(frozen=True)
class ParsedUserAgent:
    browser_name: str = UNKNOWN_BROWSER
    browser_version: str = ""
    os_name: str = UNKNOWN_OS
    os_version: str = ""
    device_type: Optional[str] = None
    device_vendor: Optional[str] = None
    device_model: Optional[str] = None


@dataclass(frozen=True)
class GeoLocation:
    country: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None
    timezone: Optional[str] = None


GeoLookup = Callable[[str], Optional[GeoLocation]]


def no_geo_lookup(ip_address: str) -> Optional[GeoLocation]:
    """Default resolver: no geo database is configured."""
    return None


def _device(user_agent: str) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    if "iPad" in user_agent:
        return "tablet", "Apple", "iPad"
    if "iPhone" in user_agent:
        return "mobile", "Apple", "iPhone"
    android = re.search(r"Android [\d.]+; ([^;)]+?)(?: Build/[^;)]*)?\)", user_agent)
    if android:
        model = android.group(1).strip()
        vendor = "Samsung" if model.startswith("SM-") else None
        return ("mobile" if "Mobile" in user_agent else "tablet"), vendor, model
    if "Macintosh" in user_agent:
        return None, "Apple", "Macintosh"
    return None, None, None


def parse_user_agent(user_agent: str) -> ParsedUserAgent:
    """Parse a raw ``User-Agent`` header."""
    if not user_agent:
        return ParsedUserAgent()

    browser_name, browser_version = UNKNOWN_BROWSER, ""
    for name, pattern in _BROWSERS:
        match = pattern.search(user_agent)
        if match:
            browser_name, browser_version = name, match.group(1)
            break

    os_name, os_version = UNKNOWN_OS, ""
    for name, pattern in _OPERATING_SYSTEMS:
        match = pattern.search(user_agent)
        if match:
            os_name, os_version = name, match.group(1).replace("_", ".")
            break
    if os_name == "Windows":
        os_version = _WINDOWS_VERSIONS.get(os_version, os_version)
    if os_name == "Linux" and "Android" in user_agent:
        os_name = "Android"

    device_type, device_vendor, device_model = _device(user_agent)
    return ParsedUserAgent(
        browser_name=browser_name,
        browser_version=browser_version,
        os_name=os_name,
        os_version=os_version,
        device_type=device_type,
        device_vendor=device_vendor,
        device_model=device_model,
    )


def normalize_ip_address(ip_address: str) -> str:
    """Strip the IPv4-mapped IPv6 prefix (``::ffff:10.0.0.1`` -> ``10.0.0.1``)."""
    if ip_address.startswith("::ffff:"):
        return ip_address[len("::ffff:") :]
    return ip_address
