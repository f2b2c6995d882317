"""
Stash-around-a-risky-operation helper.

StashGuard stashes uncommitted work if (and only if) the tree is dirty,
remembers that it did, and pops that one stash when the block exits. When a
sync pauses for conflict resolution the stash has to outlive the process;
``detach()`` hands it to the durable sync record, after which the guard no
longer restores it on exit.
"""

from __future__ import annotations

import logging
from types import TracebackType

from wt.core.vcs import VersionControl

logger = logging.getLogger(__name__)

FEATURE_STASH_MESSAGE = "wt sync: auto-stash"


def base_stash_message(branch: str) -> str:
    """Stash message used when syncing a base branch."""
    return f"{FEATURE_STASH_MESSAGE} on {branch}"


class StashGuard:
    """
    Context manager pairing one stash push with exactly one pop.

    Example:
        >>> with StashGuard(vcs) as guard:
        ...     guard.stash()
        ...     vcs.merge_ff("origin/main")
        # stash popped here, whether or not merge_ff raised
    """

    def __init__(
        self,
        vcs: VersionControl,
        message: str = FEATURE_STASH_MESSAGE,
        stashed: bool = False,
    ) -> None:
        """
        Args:
            vcs: Worktree to stash in
            message: Fixed, recognizable stash message
            stashed: Adopt a stash pushed by an earlier invocation
        """
        self._vcs = vcs
        self.message = message
        self._stashed = stashed
        self._detached = False

    @property
    def stashed(self) -> bool:
        """Whether this guard currently owns an unrestored stash."""
        return self._stashed

    def stash(self) -> bool:
        """
        Stash uncommitted changes if the tree is dirty.

        Returns:
            True if a stash was pushed

        Raises:
            GitError: If the stash push fails
        """
        if self._stashed or not self._vcs.is_dirty():
            return False
        self._vcs.stash_push(self.message)
        self._stashed = True
        logger.debug("Stashed changes in %s (%s)", self._vcs.path, self.message)
        return True

    def restore(self) -> bool:
        """
        Pop the stash this guard owns. Safe to call more than once.

        Returns:
            True if a stash was popped
        """
        if not self._stashed:
            return False
        # Cleared before popping so a failing pop is never retried
        self._stashed = False
        self._vcs.stash_pop()
        logger.debug("Restored stash in %s", self._vcs.path)
        return True

    def detach(self) -> None:
        """Stop restoring on exit; the durable sync record now owns the stash."""
        self._detached = True

    def __enter__(self) -> StashGuard:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._detached or not self._stashed:
            return
        if exc is None:
            self.restore()
            return
        try:
            self.restore()
        except Exception:
            # The in-flight exception is the one the caller needs to see
            logger.warning("Failed to restore stash after error; run 'git stash pop'")
