"""Webhook access: keys, the access log and request origin metadata."""

from .geo import GeoLocator, IpApiGeoLocator, NullGeoLocator
from .keys import AccessKey, AccessKeyStore
from .log import AccessLogEntry, AccessLogger, RequestContext

__all__ = [
    "AccessKey",
    "AccessKeyStore",
    "AccessLogEntry",
    "AccessLogger",
    "RequestContext",
    "GeoLocator",
    "IpApiGeoLocator",
    "NullGeoLocator",
]
