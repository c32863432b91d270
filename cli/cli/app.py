"""pipecheck CLI application -- Typer-based pipeline interface.

Provides ``run`` (execute a check set and distribute the reports) and
``validate`` (load definitions without touching a database).  Human-readable
output goes to *stderr* via Rich; the structured report (``--print``) goes
to *stdout* so that pipelines can compose cleanly.

Exit codes: 0 when every check was evaluated, 1 when at least one check
could not be evaluated, 2 when inputs or the database connection are
unusable.
"""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from sqlalchemy.exc import SQLAlchemyError

from cli.display import display_check_set, display_run_outcome

# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="pipecheck",
    help="pipecheck - SQL data-quality checks with severity-filtered reports",
    no_args_is_help=True,
)
console = Console(stderr=True)

EXIT_CHECKS_FAILED = 1
EXIT_USAGE = 2


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def run(
    checks_path: Path = typer.Argument(
        ...,
        help="Check definition YAML file.",
        exists=True,
        dir_okay=False,
        resolve_path=True,
    ),
    report: Path | None = typer.Option(
        None,
        "--report",
        "-r",
        help="Write the HTML report to this file.",
    ),
    json_report: Path | None = typer.Option(
        None,
        "--json-report",
        help="Write the structured (JSON) report to this file.",
    ),
    emails: Path | None = typer.Option(
        None,
        "--emails",
        "-e",
        help="Distribution list YAML mapping severity levels to recipients.",
    ),
    schema: str | None = typer.Option(
        None,
        "--schema",
        help="Schema of the table results are written back to.",
    ),
    table: str | None = typer.Option(
        None,
        "--table",
        help="Table results are written back to (enables database delivery).",
    ),
    template: Path | None = typer.Option(
        None,
        "--template",
        help="Custom Jinja2 template for the HTML report and emails.",
    ),
    print_report: bool = typer.Option(
        False,
        "--print",
        help="Print the structured report to stdout.",
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Minimum log level: debug, info, warn, error or fatal.",
    ),
    database_url: str | None = typer.Option(
        None,
        "--database-url",
        help="SQLAlchemy database URL (overrides PIPECHECK_DATABASE_URL).",
    ),
) -> None:
    """Run a check set and distribute the reports.

    Examples::

        pipecheck run checks.yml --report report.html
        pipecheck run checks.yml --emails recipients.yml --schema public --table healthchecks
        pipecheck run checks.yml --print --log-level debug
    """
    from check_engine.config import load_settings
    from check_engine.loader import CheckLoadError, DistributionLoadError
    from check_engine.orchestrator import HealthcheckRunner, RunRequest
    from check_engine.report import RenderError
    from check_engine.state import connection_scope
    from check_engine.telemetry import configure_logging

    overrides: dict[str, object] = {}
    if log_level is not None:
        overrides["log_level"] = log_level
    if database_url is not None:
        overrides["database_url"] = database_url

    try:
        settings = load_settings(**overrides)
        request = RunRequest(
            checks_path=checks_path,
            report_path=report,
            json_report_path=json_report,
            distribution_path=emails,
            schema_name=schema,
            table_name=table,
            template_path=template,
            console=print_report,
        )
    except ValidationError as exc:
        console.print(f"[red]Invalid configuration:[/red] {escape(str(exc))}")
        raise typer.Exit(code=EXIT_USAGE) from exc

    configure_logging(settings.log_level, structured=settings.structured_logging)

    try:
        with connection_scope(settings.database_url, settings.statement_timeout_ms) as cxn:
            outcome = HealthcheckRunner(settings, cxn).run(request)
    except (CheckLoadError, DistributionLoadError, RenderError) as exc:
        console.print(f"[red]Failed to load inputs:[/red] {escape(str(exc))}")
        raise typer.Exit(code=EXIT_USAGE) from exc
    except SQLAlchemyError as exc:
        console.print(f"[red]Database connection failed:[/red] {escape(str(exc))}")
        raise typer.Exit(code=EXIT_USAGE) from exc

    display_run_outcome(console, outcome)

    if not outcome.success:
        raise typer.Exit(code=EXIT_CHECKS_FAILED)


@app.command()
def validate(
    checks_path: Path = typer.Argument(
        ...,
        help="Check definition YAML file.",
        exists=True,
        dir_okay=False,
        resolve_path=True,
    ),
    emails: Path | None = typer.Option(
        None,
        "--emails",
        "-e",
        help="Also validate this distribution list.",
    ),
) -> None:
    """Load a check set (and optional distribution list) without running it."""
    from check_engine.loader import (
        CheckLoadError,
        DistributionLoadError,
        load_check_set,
        load_distribution_list,
    )

    try:
        check_set = load_check_set(checks_path)
        distribution = load_distribution_list(emails) if emails is not None else None
    except (CheckLoadError, DistributionLoadError) as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=EXIT_USAGE) from exc

    display_check_set(console, check_set)
    if distribution is not None:
        for level in distribution.levels():
            console.print(f"  {level.value}: {', '.join(distribution.recipients(level))}")
    console.print("[green]Definitions are valid.[/green]")
