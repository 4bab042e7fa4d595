"""Rich UI components for the CLI.

Why separate components:
- Keeps command logic apart from visual details.
- Lets `main` and `doctor` share the same look.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import Action, BatchReport
from core.services.registration_batch import user_identifier


def print_banner(console: Console, *, action: Action, endpoint: str) -> None:
    """Header shown before the batch starts."""

    title = Text(f"ejudge-users: {action.value}", style="bold cyan")
    subtitle = Text(endpoint, style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(0, 2)))


def build_results_table(report: BatchReport) -> Table:
    """One row per (contest, user) call, in call order."""

    table = Table(title="Registration results")
    table.add_column("Contest", style="cyan", no_wrap=True, justify="right")
    table.add_column("User", style="white")
    table.add_column("Name", style="dim")
    table.add_column("Status", no_wrap=True)
    table.add_column("Error", style="red")

    for outcome in report.outcomes:
        status = Text("OK", style="green") if outcome.ok else Text("FAIL", style="bold red")
        table.add_row(
            str(outcome.contest_id),
            Text(user_identifier(outcome.user)),
            Text(outcome.user.name),
            status,
            Text(outcome.error or ""),
        )
    return table


def build_summary_text(report: BatchReport) -> Text:
    failed = len(report.failures)
    text = Text()
    text.append(f"{len(report.succeeded)} succeeded", style="green")
    text.append(", ")
    text.append(f"{failed} failed", style="bold red" if failed else "dim")
    return text
