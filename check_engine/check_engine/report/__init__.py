"""Report layer -- severity filtering, rendering strategies and delivery handlers."""

from check_engine.report.base import (
    DeliveryResult,
    RenderError,
    ReportHandler,
    ReportRenderer,
    ReportStream,
)
from check_engine.report.filtering import filter_result_set
from check_engine.report.handlers import (
    ConsoleHandler,
    DatabaseHandler,
    EmailHandler,
    FileHandler,
    build_results_table,
    validate_identifier,
)
from check_engine.report.mail import MailTransport, MailTransportError, SMTPTransport
from check_engine.report.renderers import (
    JSONRenderer,
    TemplateRenderer,
    parse_structured_report,
)

__all__ = [
    "ConsoleHandler",
    "DatabaseHandler",
    "DeliveryResult",
    "EmailHandler",
    "FileHandler",
    "JSONRenderer",
    "MailTransport",
    "MailTransportError",
    "RenderError",
    "ReportHandler",
    "ReportRenderer",
    "ReportStream",
    "SMTPTransport",
    "TemplateRenderer",
    "build_results_table",
    "filter_result_set",
    "parse_structured_report",
    "validate_identifier",
]
