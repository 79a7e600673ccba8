"""
Service wiring and the context passed to every operation.

:func:`build_services` is the one place that turns a connection and a
:class:`~gst_audit.core.settings.GstAuditSettings` into the object graph
(stores, report pipeline, arbiter, trigger service).  The API builds it
once in its lifespan, the CLI once per command, tests with fakes for the
mailer, writer and clock.

Every operation function receives an :class:`OperationContext` as its
first argument.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from gst_audit.access.geo import GeoLocator, IpApiGeoLocator, NullGeoLocator
from gst_audit.access.keys import AccessKeyStore
from gst_audit.access.log import AccessLogger
from gst_audit.core.dialect import SQLiteDialect
from gst_audit.core.protocols import Connection
from gst_audit.core.settings import GstAuditSettings
from gst_audit.core.settings_store import SettingsStore
from gst_audit.reporting.aggregator import ReportAggregator
from gst_audit.reporting.catalog import ProductCatalog
from gst_audit.reporting.dispatcher import ReportDispatcher
from gst_audit.reporting.mailer import Mailer, SmtpMailer
from gst_audit.reporting.sources import (
    CachedTaxSchemaSource,
    SqlClassificationResolver,
    SqlOrderSource,
    SqlTaxSchemaSource,
)
from gst_audit.reporting.xlsx import ReportWriter, XlsxReportWriter
from gst_audit.scheduling.arbiter import TriggerArbiter
from gst_audit.scheduling.config import ScheduleConfigStore
from gst_audit.scheduling.marker import SendMarkerStore
from gst_audit.scheduling.service import TriggerService


@dataclass
class Services:
    """The wired object graph for one connection."""

    conn: Connection
    settings: GstAuditSettings
    clock: Callable[[], datetime]
    schedule: ScheduleConfigStore
    markers: SendMarkerStore
    keys: AccessKeyStore
    access_log: AccessLogger
    catalog: ProductCatalog
    tax_schema: CachedTaxSchemaSource
    aggregator: ReportAggregator
    dispatcher: ReportDispatcher
    arbiter: TriggerArbiter
    trigger: TriggerService

    def now(self) -> datetime:
        return self.clock()


def _default_geolocator(settings: GstAuditSettings) -> GeoLocator:
    if settings.geolocation_enabled:
        return IpApiGeoLocator(settings.geolocation_url, timeout=settings.geolocation_timeout_seconds)
    return NullGeoLocator()


def _default_mailer(settings: GstAuditSettings) -> Mailer:
    return SmtpMailer(
        settings.smtp_host,
        settings.mail_from,
        smtp_port=settings.smtp_port,
        smtp_user=settings.smtp_user,
        smtp_password=settings.smtp_password,
        use_tls=settings.smtp_use_tls,
        timeout=settings.smtp_timeout_seconds,
    )


def build_services(
    conn: Connection,
    settings: GstAuditSettings | None = None,
    *,
    mailer: Mailer | None = None,
    writer: ReportWriter | None = None,
    geolocator: GeoLocator | None = None,
    clock: Callable[[], datetime] = datetime.now,
    instance_id: str | None = None,
) -> Services:
    """Wire every store and service around *conn*.

    The schema must already exist (``create_connection(..., init_schema=True)``).
    """
    settings = settings or GstAuditSettings()
    dialect = SQLiteDialect()

    schedule = ScheduleConfigStore(SettingsStore(conn, dialect))
    markers = SendMarkerStore(conn, dialect, instance_id=instance_id)
    tax_schema = CachedTaxSchemaSource(
        SqlTaxSchemaSource(conn),
        ttl_seconds=settings.tax_schema_ttl_seconds,
    )
    aggregator = ReportAggregator(
        SqlOrderSource(conn, dialect),
        tax_schema,
        SqlClassificationResolver(conn, dialect),
    )
    dispatcher = ReportDispatcher(
        writer or XlsxReportWriter(),
        mailer or _default_mailer(settings),
        store_name=settings.store_name,
        clock=clock,
    )
    arbiter = TriggerArbiter(
        schedule,
        markers,
        aggregator,
        dispatcher,
        attempt_timeout_seconds=settings.attempt_timeout_seconds,
        claim_ttl_seconds=settings.claim_ttl_seconds,
        clock=clock,
    )
    trigger = TriggerService(
        arbiter,
        hourly_seconds=settings.hourly_check_seconds,
        fast_seconds=settings.fast_check_seconds,
        opportunistic_min_interval=settings.opportunistic_min_interval_seconds,
    )
    return Services(
        conn=conn,
        settings=settings,
        clock=clock,
        schedule=schedule,
        markers=markers,
        keys=AccessKeyStore(conn, dialect),
        access_log=AccessLogger(conn, geolocator or _default_geolocator(settings), dialect),
        catalog=ProductCatalog(conn, dialect),
        tax_schema=tax_schema,
        aggregator=aggregator,
        dispatcher=dispatcher,
        arbiter=arbiter,
        trigger=trigger,
    )


@dataclass
class OperationContext:
    """Context passed to every operation function.

    Attributes:
        services: The wired service graph.
        request_id: Unique ID for this operation invocation (auto-generated).
        caller: Origin of the request: ``"api"``, ``"cli"`` or ``"sdk"``.
        metadata: Arbitrary key/value pairs forwarded to logging.
    """

    services: Services
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    caller: str = "sdk"
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def conn(self) -> Connection:
        return self.services.conn


__all__ = ["OperationContext", "Services", "build_services"]
