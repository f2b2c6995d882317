"""
Standardized error handling and exit codes for the wt CLI.

This module provides consistent error messaging with actionable guidance
and standardized exit codes across all CLI commands.
"""

from enum import IntEnum

from rich.console import Console

console = Console()


class ExitCode(IntEnum):
    """Standard exit codes for wt CLI operations."""

    SUCCESS = 0
    """Operation completed successfully (including a sync paused on conflicts)."""

    GENERAL_ERROR = 1
    """Git, fetch, stash or fast-forward failure."""

    USER_ERROR = 2
    """Environment or input error the user can fix (not a repo, no sync in progress...)."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it

    Example:
        >>> print_error(
        ...     "No sync in progress",
        ...     reason="There is nothing to continue",
        ...     solution="wt sync",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def print_not_git_repo_error() -> None:
    """Print error when not in a git repository."""
    print_error(
        "Not a git repository",
        reason="wt manages the worktrees of an existing git repository",
        solution="cd into a repository or one of its worktrees",
    )


def print_detached_head_error() -> None:
    """Print error when HEAD is detached and a branch is required."""
    print_error(
        "HEAD is detached",
        reason="Syncing needs a checked-out branch to rebase or fast-forward",
        solution="git switch <branch>",
    )


def print_no_sync_in_progress_error() -> None:
    """Print error when --continue finds no sync record."""
    print_error(
        "No sync in progress",
        reason="There is no paused sync in this worktree to continue",
        solution="wt sync  # to start a new sync",
    )


def print_sync_in_progress_error(message: str) -> None:
    """Print error when a new sync would overlap one already in flight."""
    print_error(
        message,
        reason="Resolve the conflicts and continue, or abort to restore the previous state",
        solution="wt sync --continue\n       [cyan]→ Or:[/cyan] wt sync --abort",
    )


def print_not_fast_forward_error(remote_ref: str) -> None:
    """Print error when a base branch cannot be fast-forwarded."""
    print_error(
        f"Cannot fast-forward to {remote_ref}",
        reason=f"The local branch has commits that are not on {remote_ref}; "
        "shared history is never rebased or merged automatically",
        solution=f"git log {remote_ref}..HEAD  # inspect the local-only commits",
    )


def print_incompatible_flags_error(flag1: str, flag2: str, reason: str | None = None) -> None:
    """Print error when incompatible CLI flags are used together."""
    problem = f"Cannot use {flag1} with {flag2}"

    if reason:
        print_error(problem, reason=reason)
    else:
        print_error(problem, solution=f"Remove one of the flags: {flag1} or {flag2}")


def print_invalid_config_error(details: str) -> None:
    """Print error when the merged configuration fails validation."""
    print_error(
        "Invalid wt configuration",
        reason=details,
        solution="Check .wt.json and ~/.config/wt/config.json",
    )


__all__ = [
    "ExitCode",
    "print_error",
    "print_not_git_repo_error",
    "print_detached_head_error",
    "print_no_sync_in_progress_error",
    "print_sync_in_progress_error",
    "print_not_fast_forward_error",
    "print_incompatible_flags_error",
    "print_invalid_config_error",
]
