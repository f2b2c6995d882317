"""
Value types returned by the version-control adapter.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AheadBehind:
    """
    Commit counts between HEAD and another ref.

    Always recomputed from the repository; the remote side can move between
    invocations, so these are never cached.

    Attributes:
        ahead: Commits on HEAD that are not on the ref
        behind: Commits on the ref that are not on HEAD
    """

    ahead: int = 0
    behind: int = 0


@dataclass
class WorktreeRef:
    """
    One working copy as reported by ``git worktree list --porcelain``.

    Attributes:
        path: Absolute path to the worktree directory
        branch: Short branch name (None for detached HEAD or bare entries)
        commit: Commit SHA checked out in the worktree
        is_bare: Whether this entry is the bare repository
        is_detached: Whether HEAD is detached
    """

    path: Path
    branch: str | None
    commit: str = ""
    is_bare: bool = False
    is_detached: bool = False

    @property
    def name(self) -> str:
        """Directory name, used as the display label for the worktree."""
        return self.path.name
