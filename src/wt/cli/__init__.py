"""
wt CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging

import typer

from wt import __version__
from wt.cli import sync, worktree

# Create the main Typer app
app = typer.Typer(
    name="wt",
    help="Keep git worktrees in sync with the base branch",
    no_args_is_help=True,
    add_completion=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"wt {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit",
    ),
) -> None:
    """
    wt - worktree workflow helper.

    Syncs feature-branch worktrees with the base branch by stashing local
    changes, rebasing onto the remote base, and restoring the changes. A sync
    that stops on conflicts can be continued or aborted later.

    Common Workflows:
        wt sync                # Sync the current worktree
        wt sync --continue     # Resume after fixing conflicts
        wt sync --abort        # Go back to where you were
        wt sync --all          # Rebase every clean worktree
        wt list                # Show worktrees and how far behind they are
    """
    if debug:
        logging.basicConfig(level=logging.DEBUG)

    ctx.obj = {"debug": debug}


app.add_typer(sync.app, name="sync")
app.command(name="list")(worktree.list_worktrees)


# =============================================================================
# Aliases (for backwards compatibility)
# =============================================================================

app.add_typer(sync.app, name="rebase", hidden=True)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
