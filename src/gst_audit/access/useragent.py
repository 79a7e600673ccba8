"""Browser and OS names from a User-Agent header.

Only the families an operator needs to tell callers apart are
recognised: a cron job's curl from a colleague's browser.  Order matters;
Edge and Opera also claim to be Chrome, Chrome also claims to be Safari.
"""

from __future__ import annotations

import re

UNKNOWN = "Unknown"

_BROWSERS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("Edge", re.compile(r"Edg(?:e|A|iOS)?/([\d.]+)")),
    ("Opera", re.compile(r"(?:OPR|Opera)/([\d.]+)")),
    ("Firefox", re.compile(r"(?:Firefox|FxiOS)/([\d.]+)")),
    ("Chrome", re.compile(r"(?:Chrome|CriOS)/([\d.]+)")),
    ("Safari", re.compile(r"Version/([\d.]+).*Safari/")),
    ("Internet Explorer", re.compile(r"(?:MSIE |Trident/.*rv:)([\d.]+)")),
    ("curl", re.compile(r"^curl/([\d.]+)")),
    ("Wget", re.compile(r"^Wget/([\d.]+)")),
    ("python-requests", re.compile(r"python-requests/([\d.]+)")),
    ("python-httpx", re.compile(r"python-httpx/([\d.]+)")),
)

_SYSTEMS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("Windows", re.compile(r"Windows NT")),
    ("iOS", re.compile(r"iPhone|iPad|iPod")),
    ("macOS", re.compile(r"Mac OS X|Macintosh")),
    ("Android", re.compile(r"Android")),
    ("ChromeOS", re.compile(r"CrOS")),
    ("Linux", re.compile(r"Linux")),
)


def parse_browser(user_agent: str | None) -> str:
    """Browser family and major version (``"Firefox 124"``), or ``Unknown``."""
    if not user_agent:
        return UNKNOWN
    for name, pattern in _BROWSERS:
        match = pattern.search(user_agent)
        if match:
            major = match.group(1).split(".")[0]
            return f"{name} {major}"
    return UNKNOWN


def parse_os(user_agent: str | None) -> str:
    if not user_agent:
        return UNKNOWN
    for name, pattern in _SYSTEMS:
        if pattern.search(user_agent):
            return name
    return UNKNOWN


__all__ = ["UNKNOWN", "parse_browser", "parse_os"]
