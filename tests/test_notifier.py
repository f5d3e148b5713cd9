"""Tests for the tray badge and console rendering."""

from datetime import datetime

import pytest
from rich.console import Console

from conftest import make_project
from gitok.core.aggregator import SortKey, StatusFilter
from gitok.models.status import ScanResult
from gitok.notifier import ConsoleNotifier, tray_badge


class TestTrayBadge:
    """Tests for tray_badge."""

    def test_all_ok(self):
        badge = tray_badge(0)

        assert badge.title == ""
        assert badge.tooltip == "GitOK - all projects OK"

    def test_singular(self):
        badge = tray_badge(1)

        assert badge.title == "1"
        assert badge.tooltip == "GitOK - 1 project needs attention"

    def test_plural(self):
        badge = tray_badge(3)

        assert badge.title == "3"
        assert badge.tooltip == "GitOK - 3 projects need attention"


@pytest.fixture
def console():
    return Console(record=True, width=200, color_system=None)


def scan_result(projects, warning=None) -> ScanResult:
    return ScanResult(
        root_path="/root",
        started_at=datetime(2024, 5, 1, 9, 0, 0),
        finished_at=datetime(2024, 5, 1, 9, 0, 1),
        projects=projects,
        attention_count=sum(1 for p in projects if p.is_repo and not p.is_synced),
        warning=warning,
    )


class TestConsoleNotifier:
    """Tests for ConsoleNotifier class."""

    def test_renders_table_and_counts(self, console):
        notifier = ConsoleNotifier(console=console)
        result = scan_result([
            make_project("web", changes=True),
            make_project("docs", is_repo=False),
        ])

        notifier.show_scan(result)
        text = console.export_text()

        assert "web" in text
        assert "docs" in text
        assert "uncommitted changes" in text
        assert "not a git repository" in text
        assert "Total: 2" in text
        assert "No git: 1" in text
        assert "full check at 09:00:01" in text

    def test_filter_hides_other_projects(self, console):
        notifier = ConsoleNotifier(console=console, status_filter=StatusFilter.HAS_CHANGES)

        notifier.show_scan(scan_result([
            make_project("web", changes=True),
            make_project("docs", is_repo=False),
        ]))
        text = console.export_text()

        assert "web" in text
        assert "docs" not in text
        # Counts still cover every project
        assert "Total: 2" in text

    def test_sort_by_name(self, console):
        notifier = ConsoleNotifier(console=console, sort_key=SortKey.NAME, descending=False)

        notifier.show_scan(scan_result([make_project("zeta"), make_project("alpha")]))
        text = console.export_text()

        assert text.index("alpha") < text.index("zeta")

    def test_markup_in_names_is_escaped(self, console):
        notifier = ConsoleNotifier(console=console)

        notifier.show_scan(scan_result([make_project("[bold]odd[/bold]")]))

        assert "[bold]odd[/bold]" in console.export_text()

    def test_warning(self, console):
        notifier = ConsoleNotifier(console=console)

        notifier.show_scan(scan_result([], warning="Cannot read /root: permission denied"))

        assert "Warning: Cannot read /root: permission denied" in console.export_text()

    def test_empty_root(self, console):
        ConsoleNotifier(console=console).show_scan(scan_result([]))

        assert "No directories found in /root." in console.export_text()

    def test_attention_line(self, console):
        notifier = ConsoleNotifier(console=console)

        notifier.show_attention(2)
        notifier.show_attention(0)
        text = console.export_text()

        assert "GitOK - 2 projects need attention" in text
        assert "GitOK - all projects OK" in text
