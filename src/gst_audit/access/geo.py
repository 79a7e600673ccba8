"""
IP geolocation for access log entries.

:class:`IpApiGeoLocator` asks an ip-api style JSON endpoint for the
caller's city/region/country.  Lookups are best-effort: any failure
(timeout, non-200, unexpected body) yields ``"Unknown"`` and the webhook
response is never held up longer than the client timeout.

Examples:
    >>> locator = IpApiGeoLocator(timeout=2.0)
    >>> locator.locate("8.8.8.8")
    'Ashburn, Virginia, United States'
    >>> locator.locate("127.0.0.1")
    'Local network'
"""

from __future__ import annotations

import ipaddress
from typing import Protocol, runtime_checkable

import httpx

from gst_audit.core.logging import get_logger

logger = get_logger(__name__)

UNKNOWN_LOCATION = "Unknown"
LOCAL_LOCATION = "Local network"


@runtime_checkable
class GeoLocator(Protocol):
    """Resolve an IP address to a human-readable location."""

    def locate(self, ip: str | None) -> str: ...


def is_private_address(ip: str) -> bool:
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return address.is_private or address.is_loopback or address.is_link_local


class NullGeoLocator:
    """Locator used when geolocation is disabled."""

    def locate(self, ip: str | None) -> str:
        if ip and is_private_address(ip):
            return LOCAL_LOCATION
        return UNKNOWN_LOCATION


class IpApiGeoLocator:
    """Geolocation over HTTP via httpx.

    Args:
        url_template: Endpoint with an ``{ip}`` placeholder
        timeout: Request timeout in seconds
        client: Optional preconfigured ``httpx.Client`` (tests pass one
            with a mock transport)
    """

    def __init__(
        self,
        url_template: str = "http://ip-api.com/json/{ip}",
        *,
        timeout: float = 3.0,
        client: httpx.Client | None = None,
    ):
        self._url_template = url_template
        self._timeout = timeout
        self._client = client

    def locate(self, ip: str | None) -> str:
        if not ip:
            return UNKNOWN_LOCATION
        if is_private_address(ip):
            return LOCAL_LOCATION
        url = self._url_template.format(ip=ip)
        try:
            if self._client is not None:
                resp = self._client.get(url, timeout=self._timeout)
            else:
                with httpx.Client(timeout=self._timeout) as client:
                    resp = client.get(url)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.debug("geo.lookup_failed", ip=ip, error=str(e))
            return UNKNOWN_LOCATION

        if not isinstance(data, dict) or data.get("status", "success") != "success":
            return UNKNOWN_LOCATION
        parts = [data.get("city"), data.get("regionName"), data.get("country")]
        location = ", ".join(p for p in parts if p)
        return location or UNKNOWN_LOCATION


__all__ = [
    "GeoLocator",
    "IpApiGeoLocator",
    "NullGeoLocator",
    "UNKNOWN_LOCATION",
    "LOCAL_LOCATION",
    "is_private_address",
]
