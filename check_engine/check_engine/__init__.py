"""pipecheck engine -- SQL data-quality checks with severity-filtered reports.

Quick start::

    from check_engine import HealthcheckRunner, RunRequest, load_settings
    from check_engine.state import connection_scope

    settings = load_settings()
    with connection_scope(settings.database_url) as cxn:
        outcome = HealthcheckRunner(settings, cxn).run(
            RunRequest(checks_path="checks.yml", report_path="report.html")
        )
    raise SystemExit(0 if outcome.success else 1)
"""

from check_engine.config import Settings, load_settings
from check_engine.orchestrator import (
    Destination,
    HealthcheckRunner,
    RunOutcome,
    RunRequest,
    classify_errors,
)

__all__ = [
    "Destination",
    "HealthcheckRunner",
    "RunOutcome",
    "RunRequest",
    "Settings",
    "classify_errors",
    "load_settings",
]
