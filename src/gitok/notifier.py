"""
Notification surfaces for scan results.

The engine only hands data to a Notifier; rendering is the notifier's
business. ConsoleNotifier renders to a terminal with rich, and
tray_badge() computes the text a menu-bar tray icon shows.
"""

from dataclasses import dataclass
from typing import Optional, Protocol

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from gitok.core.aggregator import (
    SortKey,
    StatusFilter,
    count_by_filter,
    describe,
    filter_statuses,
    sort_statuses,
    status_priority,
)
from gitok.models.status import ProjectStatus, ScanResult

APP_NAME = "GitOK"


class Notifier(Protocol):
    """Interface of a surface that displays scan results."""

    def show_scan(self, result: ScanResult) -> None:
        ...

    def show_attention(self, attention_count: int) -> None:
        ...


@dataclass(frozen=True)
class TrayBadge:
    """Text shown next to and when hovering over the tray icon."""

    title: str
    tooltip: str


def tray_badge(attention_count: int) -> TrayBadge:
    """Badge for the number of projects needing attention."""
    if attention_count > 0:
        noun = "project needs" if attention_count == 1 else "projects need"
        return TrayBadge(
            title=str(attention_count),
            tooltip=f"{APP_NAME} - {attention_count} {noun} attention",
        )
    return TrayBadge(title="", tooltip=f"{APP_NAME} - all projects OK")


class NullNotifier:
    """Notifier that discards everything."""

    def show_scan(self, result: ScanResult) -> None:
        pass

    def show_attention(self, attention_count: int) -> None:
        pass


_PRIORITY_STYLES = {
    4: "[yellow]changes[/yellow]",
    3: "[magenta]to push[/magenta]",
    2: "[blue]behind[/blue]",
    1: "[green]synced[/green]",
    0: "[dim]no git[/dim]",
}


class ConsoleNotifier:
    """Renders scan results as a rich table."""

    def __init__(
        self,
        console: Optional[Console] = None,
        status_filter: StatusFilter = StatusFilter.ALL,
        sort_key: SortKey = SortKey.LAST_UPDATE,
        descending: bool = True,
    ):
        self.console = console or Console()
        self.status_filter = status_filter
        self.sort_key = sort_key
        self.descending = descending

    def show_scan(self, result: ScanResult) -> None:
        if result.warning:
            self.console.print(f"[yellow]Warning: {escape(result.warning)}[/yellow]")
            return

        if not result.projects:
            self.console.print(f"[yellow]No directories found in {escape(result.root_path)}.[/yellow]")
            return

        projects = filter_statuses(result.projects, self.status_filter)
        projects = sort_statuses(projects, self.sort_key, self.descending)

        kind = "full" if result.include_remote else "local"
        table = Table(
            title=f"{result.root_path} ({kind} check at {result.finished_at:%H:%M:%S})",
            show_header=True,
            header_style="bold cyan",
        )
        table.add_column("Project", style="bold")
        table.add_column("Status", justify="center")
        table.add_column("Branch", style="green")
        table.add_column("Details")
        table.add_column("Last commit", style="dim")

        for project in projects:
            table.add_row(
                escape(project.name),
                _PRIORITY_STYLES[status_priority(project)],
                self._branch(project),
                describe(project),
                self._last_commit(project),
            )

        self.console.print()
        self.console.print(table)
        self.console.print(self._counts_line(result.projects))

    def show_attention(self, attention_count: int) -> None:
        badge = tray_badge(attention_count)
        style = "bold yellow" if attention_count else "bold green"
        self.console.print(f"[{style}]{badge.tooltip}[/{style}]")

    def _branch(self, project: ProjectStatus) -> str:
        if project.branch:
            return escape(project.branch)
        return "[yellow]detached[/yellow]" if project.is_repo else ""

    def _last_commit(self, project: ProjectStatus) -> str:
        if not project.is_repo or project.last_commit_message is None:
            return ""
        when = (
            f"{project.last_commit_timestamp:%Y-%m-%d %H:%M} "
            if project.last_commit_timestamp
            else ""
        )
        return escape(f"{when}{project.last_commit_message}")

    def _counts_line(self, projects: list[ProjectStatus]) -> str:
        counts = count_by_filter(projects)
        return (
            f"[dim]Total: {counts[StatusFilter.ALL]}  "
            f"No git: {counts[StatusFilter.NOT_REPO]}  "
            f"Changes: {counts[StatusFilter.HAS_CHANGES]}  "
            f"To push: {counts[StatusFilter.PENDING_PUSH]}  "
            f"Behind: {counts[StatusFilter.BEHIND]}  "
            f"Synced: {counts[StatusFilter.SYNCED]}[/dim]"
        )
