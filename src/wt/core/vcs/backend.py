"""
Version-control protocol.

This module defines the VersionControl protocol consumed by the sync engine.
Every method maps onto one synchronous engine operation; none of them retry.
The orchestration code only talks to this interface, so tests can drive it
with an in-memory fake instead of a real repository.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from .models import AheadBehind, WorktreeRef


@runtime_checkable
class VersionControl(Protocol):
    """
    Protocol for the version-control primitives used by wt.

    Implementations are expected to:
    - Run each call to completion before returning
    - Raise GitError (or a subclass) on failure
    - Never retry a failed network operation
    """

    @property
    def path(self) -> Path:
        """Working directory this adapter operates on."""
        ...

    def current_branch(self) -> str:
        """
        Get the checked-out branch name.

        Raises:
            DetachedHeadError: If HEAD is detached
        """
        ...

    def is_dirty(self) -> bool:
        """Whether the working tree has uncommitted or untracked changes."""
        ...

    def status_short(self) -> str:
        """Short status output suitable for showing to the user."""
        ...

    def stash_push(self, message: str) -> None:
        """Stash all changes, including untracked files, under a message."""
        ...

    def stash_pop(self) -> None:
        """Restore the most recent stash."""
        ...

    def fetch(self, remote: str, ref: str) -> None:
        """Fetch a single ref from a remote."""
        ...

    def rebase(self, onto: str) -> bool:
        """
        Rebase HEAD onto a ref.

        Returns:
            True if the rebase completed, False if it paused on conflicts

        Raises:
            GitError: If the rebase failed without leaving a rebase in progress
        """
        ...

    def rebase_continue(self) -> bool:
        """
        Continue an in-progress rebase.

        Returns:
            True if the rebase completed, False if conflicts remain
        """
        ...

    def rebase_abort(self) -> None:
        """Abort an in-progress rebase, restoring the original HEAD."""
        ...

    def is_rebase_in_progress(self) -> bool:
        """Whether the engine has a rebase in flight for this worktree."""
        ...

    def merge_ff(self, ref: str) -> None:
        """
        Fast-forward HEAD to a ref.

        Raises:
            NotFastForwardError: If local history has diverged from the ref
        """
        ...

    def ahead_behind(self, ref: str) -> AheadBehind:
        """Count commits between HEAD and a ref."""
        ...

    def merge_base(self, a: str, b: str) -> str:
        """Find the best common ancestor of two commits."""
        ...

    def changed_paths(self, base: str, tip: str) -> set[str]:
        """List paths changed between two commits."""
        ...

    def git_dir(self) -> Path:
        """Private metadata directory for this worktree."""
        ...

    def list_worktrees(self) -> list[WorktreeRef]:
        """List every worktree of the repository, main worktree first."""
        ...

    def main_worktree(self) -> Path:
        """Path of the main worktree."""
        ...

    def at(self, path: Path) -> VersionControl:
        """Open an adapter for another worktree of the same repository."""
        ...
