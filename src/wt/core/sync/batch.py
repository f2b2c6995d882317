"""
Sync every worktree of a repository in one go.

BatchRunner applies the feature-branch rebase to each worktree, one at a
time, after a single shared fetch of the base branch. It is deliberately more
conservative than the single-worktree sync:

- It never stashes on a worktree's behalf; dirty worktrees are skipped.
- It never pauses; a conflicting rebase is aborted on the spot, leaving the
  worktree exactly as it was, and the batch moves on.
- It never writes a sync record, so nothing is left to continue afterwards.

Worktrees are processed sequentially because each one's rebase state lives
in the repository's metadata and the per-worktree report lines are printed
in order as each one finishes.
"""

from __future__ import annotations

import logging

from wt.core.config.models import WtConfig
from wt.core.sync.callbacks import NoOpCallback, SyncCallback
from wt.core.sync.models import BatchOutcome, BatchReport, UnitResult
from wt.core.vcs import GitError, VersionControl, WorktreeRef

logger = logging.getLogger(__name__)


class BatchRunner:
    """
    Rebases every feature-branch worktree onto the base ref.

    Example:
        >>> runner = BatchRunner(GitRepo(), load_config())
        >>> report = runner.run()
        >>> report.counts[BatchOutcome.REBASED]
        3
    """

    def __init__(
        self,
        vcs: VersionControl,
        config: WtConfig,
        callback: SyncCallback | None = None,
    ) -> None:
        """
        Args:
            vcs: Any worktree of the repository; used to enumerate the others
            config: Supplies the base branch and remote
            callback: Receives one on_unit_complete per processed worktree
        """
        self._vcs = vcs
        self.config = config
        self._callback = callback or NoOpCallback()

    def select_units(self) -> list[WorktreeRef]:
        """Worktrees eligible for a batch sync: feature branches only."""
        units: list[WorktreeRef] = []
        for worktree in self._vcs.list_worktrees():
            if worktree.is_bare or worktree.is_detached or not worktree.branch:
                logger.debug("Skipping %s: no branch checked out", worktree.path)
                continue
            if self.config.is_base_branch(worktree.branch):
                continue
            units.append(worktree)
        return units

    def run(self) -> BatchReport:
        """
        Fetch once, then classify and rebase each worktree in order.

        Returns:
            BatchReport with one UnitResult per feature-branch worktree

        Raises:
            GitError: If listing worktrees or the shared fetch fails; no
                worktree has been touched at that point
        """
        base_ref = self.config.base_ref
        units = self.select_units()

        self._callback.on_step(f"Fetching {base_ref}...")
        self._vcs.fetch(self.config.remote, self.config.base_branch)

        report = BatchReport(base_ref=base_ref)
        for worktree in units:
            result = self._sync_unit(worktree)
            report.units.append(result)
            self._callback.on_unit_complete(result)

        return report

    def _sync_unit(self, worktree: WorktreeRef) -> UnitResult:
        """Classify one worktree and rebase it if it is clean and behind."""
        assert worktree.branch is not None
        base_ref = self.config.base_ref
        vcs: VersionControl | None = None

        def result(outcome: BatchOutcome, behind: int = 0, detail: str = "") -> UnitResult:
            return UnitResult(
                name=worktree.name,
                path=worktree.path,
                branch=worktree.branch or "",
                outcome=outcome,
                behind=behind,
                detail=detail,
            )

        try:
            vcs = self._vcs.at(worktree.path)

            if vcs.is_dirty():
                return result(BatchOutcome.SKIPPED_DIRTY)

            behind = vcs.ahead_behind(base_ref).behind
            if behind == 0:
                return result(BatchOutcome.UP_TO_DATE)

            if vcs.rebase(base_ref):
                logger.debug("Rebased %s onto %s", worktree.name, base_ref)
                return result(BatchOutcome.REBASED, behind=behind)

            vcs.rebase_abort()
            return result(BatchOutcome.FAILED_CONFLICT, behind=behind)

        except GitError as e:
            logger.warning("Sync of %s failed: %s", worktree.name, e)
            if vcs is not None:
                self._rollback(vcs, worktree)
            return result(BatchOutcome.FAILED_CONFLICT, detail=str(e))

    def _rollback(self, vcs: VersionControl, worktree: WorktreeRef) -> None:
        """Abort a rebase a failed unit may have left behind."""
        try:
            if vcs.is_rebase_in_progress():
                vcs.rebase_abort()
        except GitError as e:
            self._callback.on_warning(
                f"{worktree.name}: could not abort rebase ({e}); "
                f"run 'git rebase --abort' in {worktree.path}"
            )
