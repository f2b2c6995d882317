"""
wt CLI - Sync command.

Brings worktrees up to date with the base branch: fast-forward for base
branches, stash + rebase for feature branches, and a batch mode that
rebases every worktree at once.
"""

from __future__ import annotations

import logging

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from wt.cli.errors import (
    ExitCode,
    print_detached_head_error,
    print_incompatible_flags_error,
    print_invalid_config_error,
    print_no_sync_in_progress_error,
    print_not_fast_forward_error,
    print_not_git_repo_error,
    print_sync_in_progress_error,
)
from wt.core.config import WtConfig, load_config, load_layered_env
from wt.core.sync import (
    BatchOutcome,
    BatchReport,
    BatchRunner,
    NoSyncInProgressError,
    SyncInProgressError,
    SyncOrchestrator,
    SyncStateError,
    SyncStateStore,
    UnitResult,
)
from wt.core.vcs import (
    DetachedHeadError,
    GitError,
    GitRepo,
    NotARepositoryError,
    NotFastForwardError,
    VersionControl,
)

logger = logging.getLogger(__name__)

console = Console()
app = typer.Typer(
    name="sync",
    help="Sync worktrees with the base branch",
    no_args_is_help=False,
)

_UNIT_LABELS: dict[BatchOutcome, tuple[str, str]] = {
    BatchOutcome.SKIPPED_DIRTY: ("yellow", "⚠ has uncommitted changes (skipped)"),
    BatchOutcome.UP_TO_DATE: ("green", "✓ up to date"),
    BatchOutcome.FAILED_CONFLICT: ("red", "✗ conflicts (aborted, rebase manually)"),
}


class ConsoleCallback:
    """SyncCallback that prints progress with rich and asks via typer.confirm."""

    def on_step(self, message: str) -> None:
        console.print(f"[blue]{message}[/blue]")

    def on_warning(self, message: str) -> None:
        console.print(f"[yellow]⚠[/yellow]  {message}")

    def on_success(self, message: str) -> None:
        console.print(f"[green]✓[/green] {message}")

    def on_conflict_forecast(self, paths: list[str]) -> None:
        console.print()
        console.print("[yellow]⚠[/yellow]  Potential conflicts in files changed on both sides:")
        for path in paths:
            console.print(f"    {path}")
        console.print()

    def confirm(self, message: str, default: bool) -> bool:
        return typer.confirm(message, default=default)

    def on_paused(self, still_conflicted: bool) -> None:
        console.print()
        if still_conflicted:
            console.print("[yellow]Still has conflicts.[/yellow] Resolve them and run:")
            console.print("  [cyan]wt sync --continue[/cyan]")
            return
        console.print("[yellow]Rebase stopped on conflicts.[/yellow]")
        console.print()
        console.print("To resolve:")
        console.print("  1. Fix the conflicts in the listed files")
        console.print("  2. Stage the fixes: git add <files>")
        console.print("  3. Continue sync: [cyan]wt sync --continue[/cyan]")
        console.print()
        console.print("Or abort: [yellow]wt sync --abort[/yellow]")

    def on_unit_complete(self, result: UnitResult) -> None:
        if result.outcome is BatchOutcome.REBASED:
            color, label = "green", f"✓ rebased ({result.behind} commits)"
        else:
            color, label = _UNIT_LABELS[result.outcome]
        console.print(f"  {result.name:<25} [{color}]{label}[/{color}]")
        if result.detail:
            console.print(f"  {'':<25} [dim]{result.detail}[/dim]")


def load_repo_config(vcs: VersionControl) -> WtConfig:
    """Load .env files and config from the main worktree, so every worktree agrees."""
    main = vcs.main_worktree()
    # Precedence: OS env > repository .env > user .env
    load_layered_env(main)
    return load_config(project_dir=main, repo_name=main.name)


def _print_batch_summary(report: BatchReport) -> None:
    counts = report.counts
    console.print()
    console.print("Summary:")
    if counts[BatchOutcome.REBASED]:
        console.print(f"  [green]✓ {counts[BatchOutcome.REBASED]} rebased[/green]")
    if counts[BatchOutcome.UP_TO_DATE]:
        console.print(f"  ✓ {counts[BatchOutcome.UP_TO_DATE]} already up to date")
    if counts[BatchOutcome.SKIPPED_DIRTY]:
        console.print(
            f"  [yellow]⚠ {counts[BatchOutcome.SKIPPED_DIRTY]} skipped "
            "(uncommitted changes)[/yellow]"
        )
    if counts[BatchOutcome.FAILED_CONFLICT]:
        console.print(
            f"  [red]✗ {counts[BatchOutcome.FAILED_CONFLICT]} failed (conflicts)[/red]"
        )


def _sync_all(vcs: VersionControl, config: WtConfig, callback: ConsoleCallback) -> None:
    console.print(f"Rebasing all worktrees onto {config.base_branch}...")
    console.print()
    report = BatchRunner(vcs, config, callback).run()
    if not report.units:
        console.print("[dim]No feature-branch worktrees to sync[/dim]")
        return
    _print_batch_summary(report)


@app.callback(invoke_without_command=True)
def sync(
    ctx: typer.Context,
    continue_: bool = typer.Option(
        False,
        "--continue",
        help="Continue a sync paused on conflicts",
    ),
    abort: bool = typer.Option(
        False,
        "--abort",
        help="Abort the sync in progress and restore the pre-sync state",
    ),
    all_: bool = typer.Option(
        False,
        "--all",
        "-a",
        help="Rebase every feature-branch worktree onto the base branch",
    ),
) -> None:
    """
    Sync the current worktree with the base branch.

    Base branches (main, master, or the configured base) are fast-forwarded
    to their remote counterpart. Feature branches are stashed, rebased onto
    the remote base branch, and restored. If the rebase stops on conflicts,
    resolve them and run --continue, or run --abort to go back.

    Examples:
        wt sync                 # Sync the current worktree
        wt sync --continue      # Resume after resolving conflicts
        wt sync --abort         # Cancel and restore the previous state
        wt sync --all           # Rebase every clean worktree
    """
    # If a subcommand was invoked, don't run the default action
    if ctx.invoked_subcommand is not None:
        return

    if continue_ and abort:
        print_incompatible_flags_error("--continue", "--abort")
        raise typer.Exit(ExitCode.USER_ERROR)
    if all_ and (continue_ or abort):
        print_incompatible_flags_error(
            "--all",
            "--continue" if continue_ else "--abort",
            reason="A batch sync never pauses, so there is nothing to continue or abort",
        )
        raise typer.Exit(ExitCode.USER_ERROR)

    try:
        vcs = GitRepo()
        config = load_repo_config(vcs)
        callback = ConsoleCallback()

        if all_:
            _sync_all(vcs, config, callback)
            return

        result = SyncOrchestrator(vcs, config, callback).sync(continue_=continue_, abort=abort)
        logger.debug("sync finished: %s", result.summary())

    except NotARepositoryError:
        print_not_git_repo_error()
        raise typer.Exit(ExitCode.USER_ERROR)
    except DetachedHeadError:
        print_detached_head_error()
        raise typer.Exit(ExitCode.USER_ERROR)
    except NoSyncInProgressError:
        print_no_sync_in_progress_error()
        raise typer.Exit(ExitCode.USER_ERROR)
    except SyncInProgressError as e:
        print_sync_in_progress_error(str(e))
        raise typer.Exit(ExitCode.USER_ERROR)
    except ValidationError as e:
        print_invalid_config_error(str(e))
        raise typer.Exit(ExitCode.USER_ERROR)
    except NotFastForwardError as e:
        print_not_fast_forward_error(e.ref)
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    except GitError as e:
        console.print(f"[red]Git error:[/red] {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    except SyncStateError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    except (KeyboardInterrupt, typer.Abort):
        # typer.confirm turns Ctrl+C and EOF into Abort
        console.print(
            "\n[yellow]Interrupted.[/yellow] Run [bold]wt sync --abort[/bold] to clean up"
        )
        raise typer.Exit(ExitCode.SIGINT)


@app.command()
def status() -> None:
    """
    Show the sync state of the current worktree.

    Reports whether a sync is paused, whether git has a rebase in progress,
    and how far the branch is from the base ref as of the last fetch.

    Examples:
        wt sync status
    """
    try:
        vcs = GitRepo()
        config = load_repo_config(vcs)
        state = SyncStateStore(vcs).load()
        rebasing = vcs.is_rebase_in_progress()

        if state is not None or rebasing:
            console.print("[yellow]↻[/yellow] Sync in progress")
        else:
            console.print("[green]✓[/green] No sync in progress")

        table = Table(title="Sync Details", show_header=False)
        table.add_column("Field", style="cyan")
        table.add_column("Value")

        try:
            branch = vcs.current_branch()
        except DetachedHeadError:
            branch = "[dim](detached)[/dim]"
        table.add_row("Branch", branch)
        table.add_row("Base", config.base_ref)
        table.add_row("Rebase in progress", "yes" if rebasing else "no")
        if state is not None:
            table.add_row("Changes stashed", "yes" if state.stashed else "no")

        if not rebasing:
            try:
                counts = vcs.ahead_behind(config.base_ref)
                table.add_row("Behind / ahead", f"{counts.behind} / {counts.ahead}")
            except GitError as e:
                logger.debug("ahead/behind unavailable: %s", e)

        console.print()
        console.print(table)

        if state is not None:
            console.print(
                "\n[dim]→ Run [bold]wt sync --continue[/bold] after resolving conflicts, "
                "or [bold]wt sync --abort[/bold][/dim]"
            )

    except NotARepositoryError:
        print_not_git_repo_error()
        raise typer.Exit(ExitCode.USER_ERROR)
    except SyncStateError as e:
        console.print(f"[red]Error:[/red] {e}")
        console.print("[dim]→ Run [bold]wt sync --abort[/bold] to discard it[/dim]")
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    except GitError as e:
        console.print(f"[red]Git error:[/red] {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)
