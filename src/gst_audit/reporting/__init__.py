"""GST report pipeline: sources → pivot aggregation → xlsx → mail."""

from .aggregator import ReportAggregator
from .catalog import ProductCatalog, ProductCode
from .dispatcher import DispatchOutcome, ReportDispatcher
from .mailer import Attachment, Mailer, SmtpMailer
from .models import PivotSchema, ReportRow, ReportTable, TaxRate
from .sources import (
    CachedTaxSchemaSource,
    SqlClassificationResolver,
    SqlOrderSource,
    SqlTaxSchemaSource,
)
from .xlsx import ReportWriter, XlsxReportWriter

__all__ = [
    "Attachment",
    "CachedTaxSchemaSource",
    "DispatchOutcome",
    "Mailer",
    "PivotSchema",
    "ProductCatalog",
    "ProductCode",
    "ReportAggregator",
    "ReportDispatcher",
    "ReportRow",
    "ReportTable",
    "ReportWriter",
    "SmtpMailer",
    "SqlClassificationResolver",
    "SqlOrderSource",
    "SqlTaxSchemaSource",
    "TaxRate",
    "XlsxReportWriter",
]
