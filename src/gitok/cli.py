"""CLI entry point for GitOK."""

import logging
import threading
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from gitok.config import Config, load_config
from gitok.core.aggregator import SortKey, StatusFilter
from gitok.engine import GitOkEngine
from gitok.notifier import ConsoleNotifier
from gitok.picker import PromptDirectoryPicker
from gitok.store import TomlConfigStore

console = Console()

FILTER_CHOICES = [f.value for f in StatusFilter]
SORT_CHOICES = [k.value for k in SortKey]


def configure_logging(verbose: bool) -> None:
    """Send log records through rich, at DEBUG when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def get_engine(
    config: Config,
    status_filter: str = StatusFilter.ALL.value,
    sort_key: str = SortKey.LAST_UPDATE.value,
    ascending: bool = False,
) -> GitOkEngine:
    """
    Build the engine used by a CLI command.

    Raises:
        click.ClickException: If git is not installed.
    """
    if not config.git.is_installed():
        raise click.ClickException(f"git executable not found: {config.git.binary}")

    notifier = ConsoleNotifier(
        console=console,
        status_filter=StatusFilter(status_filter),
        sort_key=SortKey(sort_key),
        descending=not ascending,
    )
    return GitOkEngine(
        config=config,
        store=TomlConfigStore(config.store.resolved_path()),
        notifier=notifier,
        picker=PromptDirectoryPicker(),
    )


def resolve_root(engine: GitOkEngine, root: Optional[Path]) -> str:
    if root is not None:
        return str(root)
    if engine.root_path:
        return engine.root_path
    raise click.ClickException("No directory given and none saved. Run 'gitok select' first.")


view_options = [
    click.option(
        "-f",
        "--filter",
        "status_filter",
        type=click.Choice(FILTER_CHOICES),
        default=StatusFilter.ALL.value,
        help="Only show projects in this category.",
    ),
    click.option(
        "-s",
        "--sort",
        "sort_key",
        type=click.Choice(SORT_CHOICES),
        default=SortKey.LAST_UPDATE.value,
        help="Order of the project list (default: last_update).",
    ),
    click.option(
        "--asc",
        "ascending",
        is_flag=True,
        help="Sort ascending instead of descending.",
    ),
]


def with_view_options(func):
    for option in reversed(view_options):
        func = option(func)
    return func


@click.group()
@click.version_option(package_name="gitok")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    help="Path to a gitok config file.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: Optional[str], verbose: bool) -> None:
    """GitOK - status monitor for a folder of git projects.

    Reports which first-level subdirectories of a folder are git
    repositories with uncommitted changes, unpushed commits or commits
    waiting to be pulled.
    """
    configure_logging(verbose)
    ctx.obj = load_config(config_path)


@main.command("scan")
@click.argument(
    "root",
    required=False,
    type=click.Path(file_okay=False, path_type=Path),
)
@click.option(
    "--local-only",
    is_flag=True,
    help="Skip the comparison with the remote branch.",
)
@with_view_options
@click.pass_obj
def scan_root(
    config: Config,
    root: Optional[Path],
    local_only: bool,
    status_filter: str,
    sort_key: str,
    ascending: bool,
) -> None:
    """Check every project under ROOT once.

    ROOT defaults to the saved directory.

    Example:
        gitok scan ~/projects
        gitok scan --filter has_changes --sort name --asc
    """
    engine = get_engine(config, status_filter, sort_key, ascending)
    root_path = resolve_root(engine, root)

    with console.status("[bold blue]Checking git status..."):
        result = engine.scan(root_path, include_remote=not local_only)

    if not result.ok:
        raise click.ClickException(result.warning or "Scan failed")


@main.command("watch")
@click.argument(
    "root",
    required=False,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@with_view_options
@click.pass_obj
def watch_root(
    config: Config,
    root: Optional[Path],
    status_filter: str,
    sort_key: str,
    ascending: bool,
) -> None:
    """Poll the projects under ROOT until interrupted.

    Local state is checked every polling.local_interval_seconds, remote
    state every polling.remote_interval_seconds.

    Example:
        gitok watch ~/projects
    """
    engine = get_engine(config, status_filter, sort_key, ascending)
    root_path = resolve_root(engine, root)

    engine.start_polling(root_path)
    console.print(
        f"[bold]Watching {engine.schedule.root_path}[/bold] "
        f"[dim](Ctrl+C to stop)[/dim]"
    )

    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        console.print()
        console.print("[dim]Stopping...[/dim]")
    finally:
        engine.shutdown()


@main.command("stop")
@click.pass_obj
def stop_watching(config: Config) -> None:
    """Turn polling off so it is not resumed on the next start."""
    engine = get_engine(config)
    engine.stop_polling()
    console.print("[green]Polling disabled.[/green]")


@main.command("select")
@click.argument(
    "root",
    required=False,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.pass_obj
def select_root(config: Config, root: Optional[Path]) -> None:
    """Choose and save the directory to watch.

    Prompts for the directory when ROOT is not given.
    """
    engine = get_engine(config)

    if root is not None:
        engine.change_root(root)
        chosen = str(root)
    else:
        chosen = engine.select_root()

    if chosen is None:
        console.print("[yellow]Aborted.[/yellow]")
        return

    console.print(f"[bold green]Watching:[/bold green] {engine.root_path}")


@main.command("status")
@click.pass_obj
def show_status(config: Config) -> None:
    """Show the saved directory and whether polling is enabled."""
    store = TomlConfigStore(config.store.resolved_path())
    engine = GitOkEngine(config=config, store=store)

    console.print(f"[bold]Directory:[/bold] {engine.root_path or '[dim]none[/dim]'}")
    console.print(f"[bold]Polling:[/bold]   {'enabled' if engine.polling_enabled else 'disabled'}")
    console.print(f"[bold]State:[/bold]     {store.path}")


if __name__ == "__main__":
    main()
