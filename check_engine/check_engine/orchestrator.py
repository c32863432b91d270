"""Run orchestrator -- load, execute, classify, fan out, conclude.

A run executes the check set exactly once and builds one canonical
:class:`ResultSet`.  Every configured destination then receives its own
filtered rendering of that set.  Delivery is best effort: a destination that
fails is logged and recorded, and the remaining destinations are still
attempted, so operators receive the report even when the run itself fails.

The run fails if and only if at least one check could not be evaluated.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.engine import Connection

from check_engine.checks.executor import CheckExecutor
from check_engine.checks.timer import Timer
from check_engine.config import Settings
from check_engine.loader.check_loader import load_check_set
from check_engine.loader.distribution_loader import load_distribution_list
from check_engine.models.check_definition import CheckSet
from check_engine.models.distribution import DistributionList
from check_engine.models.report import ExecutionError, ResultSet
from check_engine.models.severity import Severity
from check_engine.report import content
from check_engine.report.base import DeliveryResult, ReportHandler, ReportRenderer
from check_engine.report.filtering import filter_result_set
from check_engine.report.handlers import (
    ConsoleHandler,
    DatabaseHandler,
    EmailHandler,
    FileHandler,
    validate_identifier,
)
from check_engine.report.mail import MailTransport, SMTPTransport
from check_engine.report.renderers import JSONRenderer, TemplateRenderer

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Run inputs and outputs
# ---------------------------------------------------------------------------


class RunRequest(BaseModel):
    """What to check and where to send the results."""

    model_config = ConfigDict(frozen=True)

    checks_path: Path = Field(..., description="Check definition YAML file.")
    report_path: Path | None = Field(default=None, description="Write the HTML report here.")
    json_report_path: Path | None = Field(default=None, description="Write the structured report here.")
    distribution_path: Path | None = Field(default=None, description="Distribution list YAML for email fan-out.")
    schema_name: str | None = Field(default=None, description="Schema of the write-back table.")
    table_name: str | None = Field(default=None, description="Write-back table; enables database delivery.")
    template_path: Path | None = Field(default=None, description="Override for the HTML report template.")
    console: bool = Field(default=False, description="Print the structured report to stdout.")

    @field_validator("schema_name", "table_name")
    @classmethod
    def _safe_identifier(cls, v: str | None) -> str | None:
        if not v:
            return None
        return validate_identifier(v, "write-back target")


class RunOutcome(BaseModel):
    """Everything a caller needs to report on a finished run."""

    check_set_name: str
    result_set: ResultSet
    errors: list[ExecutionError] = Field(default_factory=list)
    error_count: int = Field(default=0, description="Execution errors at Error severity.")
    fatal: bool = Field(default=False, description="True when any execution error is Fatal.")
    status: str = "OK"
    deliveries: list[DeliveryResult] = Field(default_factory=list)
    duration_ms: int = 0

    @property
    def success(self) -> bool:
        """True iff every check could be evaluated."""
        return not self.errors

    @property
    def failed_deliveries(self) -> list[DeliveryResult]:
        return [d for d in self.deliveries if not d.success]


@dataclass(frozen=True)
class Destination:
    """One fan-out branch: filter at *threshold*, render, deliver."""

    renderer: ReportRenderer
    handler: ReportHandler
    threshold: Severity = Severity.DEBUG
    skip_empty: bool = False


def classify_errors(errors: list[ExecutionError]) -> tuple[int, bool]:
    """Return the number of Error-severity errors and whether any is Fatal."""
    error_count = sum(1 for e in errors if e.severity == Severity.ERROR)
    fatal = any(e.severity == Severity.FATAL for e in errors)
    return error_count, fatal


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class HealthcheckRunner:
    """Wire executor, filter, renderers and handlers into a single run.

    Parameters
    ----------
    settings:
        Engine settings (database identity, SMTP relay, sender).
    connection:
        Open connection shared by the executor and the database handler.
        The runner never closes it.
    transport:
        Mail transport for email delivery.  Defaults to an
        :class:`SMTPTransport` built from *settings* on first use.
    clock:
        Returns the run timestamp; injectable for tests.
    """

    def __init__(
        self,
        settings: Settings,
        connection: Connection,
        *,
        transport: MailTransport | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._settings = settings
        self._connection = connection
        self._transport = transport
        self._clock = clock

    def run(self, request: RunRequest) -> RunOutcome:
        """Execute a full run.

        Raises
        ------
        CheckLoadError
            If the check set cannot be loaded.  Nothing is executed.
        DistributionLoadError
            If the distribution list cannot be loaded.  Nothing is executed.
        RenderError
            If a custom template cannot be loaded.  Nothing is executed.
        """
        timer = Timer()
        timer.start()

        # 1. Load -- every input is read before the first query runs.
        check_set = load_check_set(request.checks_path)
        distribution = load_distribution_list(request.distribution_path) if request.distribution_path else None
        html_renderer = self._html_renderer(request)

        # 2. Execute.
        raw_results, errors = CheckExecutor(self._connection).execute(check_set)

        # 3. Classify.
        error_count, fatal = classify_errors(errors)
        status = content.status_summary(error_count, fatal)
        result_set = raw_results.with_metadata(**self._metadata(check_set, request, status))

        # 4. Fan out.
        deliveries: list[DeliveryResult] = []
        for destination in self._destinations(request, html_renderer, distribution, check_set, error_count, fatal):
            delivery = self._dispatch(result_set, destination)
            if delivery is not None:
                deliveries.append(delivery)

        outcome = RunOutcome(
            check_set_name=check_set.name,
            result_set=result_set,
            errors=errors,
            error_count=error_count,
            fatal=fatal,
            status=status,
            deliveries=deliveries,
            duration_ms=timer.elapsed_ms(),
        )

        # 5. Conclude.
        if outcome.failed_deliveries:
            logger.warning(
                "%d of %d report deliveries failed",
                len(outcome.failed_deliveries),
                len(outcome.deliveries),
            )
        if errors:
            logger.critical(
                "Healthchecks failed (%s):\n%s",
                status,
                "\n".join(f"  {e}" for e in errors),
            )
        else:
            logger.info("Healthchecks %r completed: %d checks evaluated", check_set.name, len(result_set))
        return outcome

    # -- Fan-out -------------------------------------------------------------

    def _destinations(
        self,
        request: RunRequest,
        html_renderer: TemplateRenderer,
        distribution: DistributionList | None,
        check_set: CheckSet,
        error_count: int,
        fatal: bool,
    ) -> Iterator[Destination]:
        if request.report_path is not None:
            yield Destination(html_renderer, FileHandler(request.report_path))

        if request.json_report_path is not None:
            yield Destination(JSONRenderer(), FileHandler(request.json_report_path))

        if request.console:
            yield Destination(JSONRenderer(), ConsoleHandler())

        if distribution is not None:
            for level in Severity.ordered():
                recipients = distribution.recipients(level)
                if not recipients:
                    logger.debug("No recipients at level %s; skipping email", level.value)
                    continue
                subject = content.email_subject(
                    check_set.name,
                    self._settings.resolved_db_name(),
                    self._settings.resolved_db_host(),
                    level,
                    error_count,
                    fatal,
                )
                handler = EmailHandler(
                    self._mail_transport(),
                    sender=self._settings.sender_email,
                    sender_name=self._settings.sender_name,
                    recipients=recipients,
                    subject=subject,
                    html=html_renderer.content_type == "text/html",
                )
                yield Destination(html_renderer, handler, threshold=level, skip_empty=True)

        if request.table_name:
            handler = DatabaseHandler(self._connection, request.table_name, request.schema_name)
            yield Destination(JSONRenderer(), handler)

    def _dispatch(self, result_set: ResultSet, destination: Destination) -> DeliveryResult | None:
        """Filter, render and deliver one branch.  Never raises."""
        filtered = filter_result_set(result_set, destination.threshold)
        if destination.skip_empty and not filtered.elements:
            logger.debug(
                "Nothing at or above %s for %s; skipping",
                destination.threshold.value,
                destination.handler.describe(),
            )
            return None

        try:
            stream = destination.renderer.render(filtered)
            delivery = destination.handler.deliver(stream)
        except Exception as exc:
            # One broken branch must not stop the remaining deliveries.
            logger.error(
                "Report delivery to %s raised an unhandled exception: %s",
                destination.handler.describe(),
                exc,
            )
            return DeliveryResult(
                destination=destination.handler.describe(),
                success=False,
                error=f"{type(exc).__name__}: {exc}",
            )

        if not delivery.success:
            logger.error("Failed to deliver report to %s: %s", delivery.destination, delivery.error)
        return delivery

    # -- Helpers -------------------------------------------------------------

    def _html_renderer(self, request: RunRequest) -> TemplateRenderer:
        if request.template_path is not None:
            return TemplateRenderer.from_file(request.template_path)
        return TemplateRenderer(content.HEALTHCHECK_HTML_TEMPLATE)

    def _mail_transport(self) -> MailTransport:
        if self._transport is None:
            username = password = None
            if self._settings.is_smtp_authenticated():
                username = self._settings.smtp_username
                secret = self._settings.smtp_password
                password = secret.get_secret_value() if secret is not None else ""
            self._transport = SMTPTransport(
                self._settings.smtp_host,
                self._settings.smtp_port,
                timeout=self._settings.smtp_timeout_seconds,
                username=username,
                password=password,
                starttls=self._settings.smtp_starttls,
            )
        return self._transport

    def _metadata(self, check_set: CheckSet, request: RunRequest, status: str) -> dict[str, object]:
        return {
            "name": check_set.name,
            "db_name": self._settings.resolved_db_name(),
            "host": self._settings.resolved_db_host(),
            "footer": content.FOOTER_TEXT,
            "timestamp": self._clock().ctime(),
            "status": status,
            "schema": request.schema_name or "",
            "table": request.table_name or "",
        }
