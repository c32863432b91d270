"""Rich output formatting for the pipecheck CLI.

All functions write to a :class:`rich.console.Console` instance (typically
bound to *stderr*) so that machine-readable output on *stdout* is never
polluted with human-readable decoration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from check_engine.models.check_definition import CheckSet
    from check_engine.orchestrator import RunOutcome


# ---------------------------------------------------------------------------
# Colour mapping
# ---------------------------------------------------------------------------

_STATUS_COLOURS: dict[str, str] = {
    "PASS": "green",
    "FAIL": "red",
}

_SEVERITY_COLOURS: dict[str, str] = {
    "Debug": "dim",
    "Info": "blue",
    "Warn": "yellow",
    "Error": "red",
    "Fatal": "bold red",
}


def _coloured(value: str, colours: dict[str, str]) -> str:
    colour = colours.get(value, "white")
    return f"[{colour}]{value}[/{colour}]"


# ---------------------------------------------------------------------------
# Check set listing
# ---------------------------------------------------------------------------


def display_check_set(console: Console, check_set: CheckSet) -> None:
    """Render the checks of a set in execution order."""
    table = Table(
        title=f"{check_set.name} ({len(check_set)} checks)",
        show_lines=False,
        pad_edge=True,
        expand=False,
    )
    table.add_column("#", justify="right")
    table.add_column("Name", style="bold")
    table.add_column("Severity")
    table.add_column("Expectation")
    table.add_column("Description")

    for index, check in enumerate(check_set.checks, start=1):
        if check.expected is None:
            expectation = "zero rows"
        else:
            expectation = f"{'==' if check.equal else '!='} {check.expected}"
        table.add_row(
            str(index),
            escape(check.name),
            _coloured(check.severity.value, _SEVERITY_COLOURS),
            escape(expectation),
            escape(check.description) or "-",
        )

    console.print(table)


# ---------------------------------------------------------------------------
# Run outcome
# ---------------------------------------------------------------------------


def display_run_outcome(console: Console, outcome: RunOutcome) -> None:
    """Render results, execution errors and deliveries of a finished run."""
    result_set = outcome.result_set
    passed = sum(1 for e in result_set.elements if e.passed)
    failed = len(result_set.elements) - passed
    verdict = "[green]SUCCESS[/green]" if outcome.success else "[red]FAILED[/red]"

    header_lines = [
        f"[bold]Check set:[/bold] {escape(outcome.check_set_name)}",
        f"[bold]Database:[/bold]  {result_set.metadata.get('db_name', '-')}",
        f"[bold]Status:[/bold]    {outcome.status}",
        f"[bold]Results:[/bold]   {passed} passed, {failed} failed, {len(outcome.errors)} not evaluated",
        f"[bold]Duration:[/bold]  {outcome.duration_ms}ms",
    ]
    console.print(Panel("\n".join(header_lines), title=f"Healthchecks {verdict}", border_style="blue"))

    if result_set.elements:
        table = Table(show_lines=False, pad_edge=True, expand=False)
        table.add_column("Check", style="bold")
        table.add_column("Severity")
        table.add_column("Status")
        table.add_column("Message")
        for element in result_set.elements:
            table.add_row(
                escape(element.name),
                _coloured(escape(element.severity), _SEVERITY_COLOURS),
                _coloured(element.status.value, _STATUS_COLOURS),
                escape(element.message),
            )
        console.print(table)

    if outcome.errors:
        console.print("\n[bold red]Checks that could not be evaluated:[/bold red]")
        for error in outcome.errors:
            console.print(
                f"  {_coloured(error.severity.value, _SEVERITY_COLOURS)}  "
                f"[bold]{escape(error.check_name)}[/bold]  {escape(error.message)}"
            )

    for delivery in outcome.deliveries:
        if delivery.success:
            console.print(f"  [green]✓[/green] {delivery.destination}")
        else:
            console.print(f"  [red]✗[/red] {escape(delivery.destination)}: {escape(delivery.error or '')}")
