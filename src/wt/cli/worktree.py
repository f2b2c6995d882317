"""
wt CLI - List command.

Shows every worktree of the repository with its branch and how far it is
from the base branch.
"""

from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from wt.cli.errors import ExitCode, print_invalid_config_error, print_not_git_repo_error
from wt.cli.sync import load_repo_config
from wt.core.config import WtConfig
from wt.core.vcs import GitError, GitRepo, NotARepositoryError, VersionControl, WorktreeRef

console = Console()


def _distance(vcs: VersionControl, worktree: WorktreeRef, config: WtConfig) -> tuple[str, str]:
    """Return (behind/ahead, dirty) cells for one worktree; '?' when unknown."""
    if worktree.is_bare:
        return "", ""
    try:
        wt_vcs = vcs.at(worktree.path)
        dirty = "[yellow]yes[/yellow]" if wt_vcs.is_dirty() else ""
        counts = wt_vcs.ahead_behind(config.base_ref)
    except GitError:
        return "?", "?"
    return f"{counts.behind} / {counts.ahead}", dirty


def list_worktrees() -> None:
    """
    Show all worktrees in the repository.

    Behind/ahead counts are against the remote base branch as of the last
    fetch; run `wt sync --all` to update them.

    Examples:
        wt list
    """
    try:
        vcs = GitRepo()
        config = load_repo_config(vcs)
        worktrees = vcs.list_worktrees()
    except NotARepositoryError:
        print_not_git_repo_error()
        raise typer.Exit(ExitCode.USER_ERROR)
    except ValidationError as e:
        print_invalid_config_error(str(e))
        raise typer.Exit(ExitCode.USER_ERROR)
    except GitError as e:
        console.print(f"[red]Git error:[/red] {e}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if not worktrees:
        console.print("[yellow]No worktrees found[/yellow]")
        return

    current = Path(vcs.path).resolve()

    table = Table(title=f"Git Worktrees (vs {config.base_ref})")
    table.add_column("Name", style="cyan")
    table.add_column("Branch", style="green")
    table.add_column("Commit", style="blue")
    table.add_column("Behind/Ahead")
    table.add_column("Dirty")

    for worktree in worktrees:
        name = f"* {worktree.name}" if worktree.path.resolve() == current else worktree.name
        if worktree.is_bare:
            branch = "[dim](bare)[/dim]"
        elif worktree.is_detached or not worktree.branch:
            branch = "[dim](detached)[/dim]"
        else:
            branch = worktree.branch
        distance, dirty = _distance(vcs, worktree, config)
        table.add_row(name, branch, worktree.commit[:8], distance, dirty)

    console.print(table)
