"""
Rich console output for the rewrite workflow.

All status, warning and progress text goes to standard output through one
``Console``; errors are shown as panels with actionable next steps.
"""

from typing import Iterable, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .errors import MetafixError, PushFailedError, RewriteToolFailedError
from .models import (
    MatchCounts,
    RemoteRef,
    RewriteOutcome,
    RewriteRequest,
    TagRef,
)


class WorkflowDisplay:
    """Renders workflow progress on a rich console."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def title(self, text: str) -> None:
        self.console.print(text, style="bold yellow")

    def section(self, text: str) -> None:
        self.console.print()
        self.console.print(f"=== {text} ===", style="yellow")

    def info(self, text: str) -> None:
        self.console.print(text, highlight=False, markup=False)

    def success(self, text: str) -> None:
        self.console.print(f"✅ {text}", style="green", highlight=False, markup=False)

    def warning(self, text: str, detail: str = "") -> None:
        self.console.print(f"⚠️  {text}", style="yellow", highlight=False, markup=False)
        if detail:
            self.console.print(f"   {detail}", style="dim", highlight=False, markup=False)

    def danger(self, text: str) -> None:
        self.console.print(text, style="bold red", highlight=False, markup=False)

    def command(self, text: str) -> None:
        self.console.print(f"  {text}", style="cyan", highlight=False, markup=False)

    def file_list(self, heading: str, lines: Iterable[str]) -> None:
        self.info(heading)
        for line in lines:
            self.console.print(f"  {line}", style="dim", highlight=False, markup=False)

    def request_summary(self, request: RewriteRequest) -> None:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Field")
        table.add_column("Old")
        table.add_column("New")
        if request.wants_email:
            table.add_row("Email", Text(request.old_email), Text(request.new_email))
        if request.wants_name:
            table.add_row("Name", Text(request.old_name), Text(request.new_name))
        self.console.print(table)

    def tags_table(self, title: str, tags: List[TagRef]) -> None:
        table = Table(title=title, show_header=True, header_style="bold")
        table.add_column("Tag", style="cyan")
        table.add_column("Object", style="magenta")
        for tag in tags:
            table.add_row(tag.name, tag.short_id)
        self.console.print(table)

    def remotes_table(self, remotes: List[RemoteRef]) -> None:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Remote", style="cyan")
        table.add_column("Fetch URL")
        table.add_column("Push URL")
        for remote in remotes:
            table.add_row(remote.name, remote.fetch_url, remote.push_url)
        self.console.print(table)

    def match_counts(self, request: RewriteRequest, counts: MatchCounts) -> None:
        if request.wants_email:
            if counts.email_matches:
                self.info(
                    f"Found {counts.email_matches} commits with the old email address."
                )
            else:
                self.warning(f"No commits found with email: {request.old_email}")
        if request.wants_name:
            if counts.name_matches:
                self.info(f"Found {counts.name_matches} commits with the old name.")
            else:
                self.warning(f"No commits found with name: {request.old_name}")

    def outcome(self, outcome: RewriteOutcome) -> None:
        self.success(
            f"History rewritten with git {outcome.strategy_used.value}: "
            f"{outcome.commits_rewritten} commits rewritten"
        )
        if outcome.tags_recreated:
            self.info(
                f"{len(outcome.tags_recreated)} tags now point at rewritten objects: "
                + ", ".join(outcome.tags_recreated)
            )

    def next_steps(self, steps: List[str]) -> None:
        self.console.print()
        self.info("Next steps:")
        for index, step in enumerate(steps, start=1):
            self.console.print(f"{index}. {step}", highlight=False, markup=False)

    def push_failure(self, error: PushFailedError) -> None:
        self.warning(str(error))
        if error.remediation:
            self.info("You may need to:")
            for index, step in enumerate(error.remediation, start=1):
                self.console.print(f"{index}. {step}", highlight=False, markup=False)

    def notice(self, error: MetafixError) -> None:
        self.console.print(str(error), style="yellow", highlight=False, markup=False)

    def error_panel(self, error: Exception, show_technical_details: bool = False) -> None:
        """Display an error as a panel, with the tool's stderr when relevant."""
        error_text = Text()
        error_text.append("❌ ", style="red")
        error_text.append(str(error), style="red bold")

        self.console.print()
        self.console.print(
            Panel(
                error_text,
                title="Error",
                title_align="left",
                border_style="red",
                width=80,
            )
        )

        if isinstance(error, RewriteToolFailedError):
            if error.stderr:
                self.file_list("Tool output:", error.stderr.strip().splitlines()[-15:])
            self.info(
                "History may be partially rewritten; inspect the repository "
                "(git log --all) before retrying."
            )
        elif show_technical_details and error.__cause__ is not None:
            self.console.print(
                f"Caused by: {type(error.__cause__).__name__}: {error.__cause__}",
                style="dim",
                markup=False,
            )
