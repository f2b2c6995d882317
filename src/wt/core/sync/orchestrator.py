"""
Single-worktree sync orchestration.

SyncOrchestrator picks a strategy from the kind of branch checked out:

- Base branches (the configured base branch, main, master) are shared
  history and are only ever fast-forwarded. Local changes are stashed only
  with the user's consent.
- Feature branches are stashed, fetched, previewed for likely conflicts and
  rebased onto the remote base ref. A conflicting rebase pauses: the process
  exits successfully, leaving git's rebase and wt's sync record in place for
  a later ``--continue`` or ``--abort``.

Durable state is always written before the next risky step (stash, then
record, then fetch, then rebase), so a killed invocation can be resumed or
aborted by the next one.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from wt.core.config.models import WtConfig
from wt.core.sync.callbacks import NoOpCallback, SyncCallback
from wt.core.sync.errors import NoSyncInProgressError, SyncInProgressError, SyncStateError
from wt.core.sync.machine import Effect, SyncEvent, SyncPhase, transition
from wt.core.sync.models import SyncResult, SyncState, SyncStatus
from wt.core.sync.predictor import ConflictPredictor
from wt.core.sync.stash import FEATURE_STASH_MESSAGE, StashGuard, base_stash_message
from wt.core.sync.state import SyncStateStore
from wt.core.vcs import GitError, VersionControl

logger = logging.getLogger(__name__)


@dataclass
class _Run:
    """Mutable bookkeeping for one pass through the state machine."""

    guard: StashGuard
    branch: str | None = None
    behind: int = 0
    stashed: bool = False
    conflicts: list[str] = field(default_factory=list)
    status: SyncStatus | None = None
    error: Exception | None = None


class SyncOrchestrator:
    """
    Brings the current worktree up to date with the base branch.

    Example:
        >>> orchestrator = SyncOrchestrator(GitRepo(), load_config())
        >>> result = orchestrator.sync()
        >>> result.status
        <SyncStatus.SYNCED: 'synced'>
        >>> orchestrator.sync(continue_=True)  # after resolving conflicts
    """

    def __init__(
        self,
        vcs: VersionControl,
        config: WtConfig,
        callback: SyncCallback | None = None,
        store: SyncStateStore | None = None,
    ) -> None:
        """
        Args:
            vcs: Worktree to sync
            config: Supplies the base branch and remote
            callback: Progress output and confirmation prompts
            store: Sync record storage (defaults to the worktree's git dir)
        """
        self._vcs = vcs
        self.config = config
        self._callback = callback or NoOpCallback()
        self._store = store or SyncStateStore(vcs)
        self._actions: dict[SyncPhase, Callable[[_Run], SyncEvent]] = {
            SyncPhase.IDLE: self._inspect_tree,
            SyncPhase.STASHING: self._stash,
            SyncPhase.STATE_SAVED: self._save_state,
            SyncPhase.FETCHING: self._fetch,
            SyncPhase.CONFLICT_PREVIEW: self._preview_conflicts,
            SyncPhase.REBASING: self._rebase,
            SyncPhase.CONTINUING: self._continue_rebase,
            SyncPhase.ABORTING: self._abort_rebase,
        }

    def sync(self, continue_: bool = False, abort: bool = False) -> SyncResult:
        """
        Run the sync appropriate to the current branch, or resume/cancel one.

        Args:
            continue_: Resume a sync paused on conflicts
            abort: Cancel a sync in flight and restore the pre-sync state

        Returns:
            SyncResult describing how the invocation ended

        Raises:
            NoSyncInProgressError: If continue_ is set and no sync record exists
            SyncInProgressError: If a new sync starts while one is in flight
            DetachedHeadError: If HEAD is detached
            NotFastForwardError: If a base branch has diverged from its remote
            GitError: For any other git failure
        """
        if continue_ and abort:
            raise ValueError("continue_ and abort are mutually exclusive")
        if abort:
            return self.abort()
        if continue_:
            return self.resume()

        # Git detaches HEAD during a rebase, so check before reading the branch
        self._refuse_if_in_flight()
        branch = self._vcs.current_branch()
        if self.config.is_base_branch(branch):
            return self.sync_base_branch(branch)
        return self.sync_feature_branch(branch)

    # ------------------------------------------------------------------
    # Feature branches: stash + rebase, resumable
    # ------------------------------------------------------------------

    def sync_feature_branch(self, branch: str) -> SyncResult:
        """Stash, fetch, preview and rebase a feature branch onto the base ref."""
        self._refuse_if_in_flight()

        self._callback.on_step(f"Syncing branch: {branch}")
        run = _Run(guard=StashGuard(self._vcs, FEATURE_STASH_MESSAGE), branch=branch)
        with run.guard:
            phase = self._drive(SyncPhase.IDLE, run)
        return self._finish(phase, run)

    def resume(self) -> SyncResult:
        """
        Continue a sync paused on conflicts.

        Raises:
            NoSyncInProgressError: If there is no sync record
            SyncStateError: If the record is unreadable
        """
        state = self._store.load()
        if state is None:
            raise NoSyncInProgressError()

        run = self._adopt(state)
        phase = self._drive(SyncPhase.CONTINUING, run)
        return self._finish(phase, run)

    def abort(self) -> SyncResult:
        """
        Cancel whatever sync is in flight and restore the pre-sync state.

        Total and idempotent: with no record and no rebase in progress this is
        a successful no-op. An unreadable record is reported and cleared.
        """
        try:
            state = self._store.load()
        except SyncStateError as e:
            self._callback.on_warning(f"{e}; discarding it")
            state = None

        run = self._adopt(state or SyncState(stashed=False))
        phase = self._drive(SyncPhase.ABORTING, run)
        return self._finish(phase, run)

    def _refuse_if_in_flight(self) -> None:
        if self._vcs.is_rebase_in_progress():
            raise SyncInProgressError()
        if self._store.exists():
            raise SyncInProgressError("A previous sync was interrupted")

    def _adopt(self, state: SyncState) -> _Run:
        """Rebuild run bookkeeping from a record left by an earlier invocation."""
        guard = StashGuard(self._vcs, FEATURE_STASH_MESSAGE, stashed=state.stashed)
        guard.detach()
        return _Run(guard=guard, stashed=state.stashed)

    def _drive(self, phase: SyncPhase, run: _Run) -> SyncPhase:
        """Perform phase actions and apply transitions until a terminal phase."""
        while not phase.is_terminal:
            event = self._actions[phase](run)
            step = transition(phase, event)
            logger.debug("sync %s --%s--> %s", phase.value, event.value, step.phase.value)
            for effect in step.effects:
                self._apply(effect, run)
            phase = step.phase
        return phase

    def _finish(self, phase: SyncPhase, run: _Run) -> SyncResult:
        if phase is SyncPhase.FAILED:
            assert run.error is not None
            raise run.error
        assert run.status is not None, f"terminal phase {phase.value} reported no status"
        return SyncResult(
            status=run.status,
            branch=run.branch,
            behind=run.behind,
            stashed=run.stashed,
            conflicts=run.conflicts,
        )

    # Phase actions. Each does the work named by its phase and reports an event.

    def _inspect_tree(self, run: _Run) -> SyncEvent:
        return SyncEvent.DIRTY if self._vcs.is_dirty() else SyncEvent.CLEAN

    def _stash(self, run: _Run) -> SyncEvent:
        self._callback.on_step("Stashing uncommitted changes...")
        try:
            run.stashed = run.guard.stash()
        except GitError as e:
            run.error = e
            return SyncEvent.ERROR
        return SyncEvent.STASHED

    def _save_state(self, run: _Run) -> SyncEvent:
        try:
            self._store.save(SyncState(stashed=run.guard.stashed))
        except SyncStateError as e:
            run.error = e
            return SyncEvent.ERROR
        run.guard.detach()
        return SyncEvent.SAVED

    def _fetch(self, run: _Run) -> SyncEvent:
        self._callback.on_step(f"Fetching {self.config.base_ref}...")
        try:
            self._vcs.fetch(self.config.remote, self.config.base_branch)
            counts = self._vcs.ahead_behind(self.config.base_ref)
        except GitError as e:
            run.error = e
            return SyncEvent.ERROR
        run.behind = counts.behind
        return SyncEvent.UP_TO_DATE if counts.behind == 0 else SyncEvent.BEHIND

    def _preview_conflicts(self, run: _Run) -> SyncEvent:
        if not self.config.sync.preview_conflicts:
            return SyncEvent.CLEAR

        forecast = ConflictPredictor(self._vcs).predict(self.config.base_ref)
        run.conflicts = forecast.paths
        if not forecast.has_overlap:
            return SyncEvent.CLEAR

        self._callback.on_conflict_forecast(forecast.paths)
        if self._callback.confirm("Continue with rebase?", True):
            return SyncEvent.CONFIRMED
        return SyncEvent.DECLINED

    def _rebase(self, run: _Run) -> SyncEvent:
        self._callback.on_step(
            f"Rebasing onto {self.config.base_ref} ({run.behind} commit(s) behind)..."
        )
        try:
            completed = self._vcs.rebase(self.config.base_ref)
        except GitError as e:
            run.error = e
            return SyncEvent.ERROR
        return SyncEvent.REBASED if completed else SyncEvent.CONFLICT

    def _continue_rebase(self, run: _Run) -> SyncEvent:
        try:
            # The user may have finished the rebase with plain git already
            if not self._vcs.is_rebase_in_progress():
                return SyncEvent.REBASED
            self._callback.on_step("Continuing rebase...")
            completed = self._vcs.rebase_continue()
        except GitError as e:
            run.error = e
            return SyncEvent.ERROR
        return SyncEvent.REBASED if completed else SyncEvent.CONFLICT

    def _abort_rebase(self, run: _Run) -> SyncEvent:
        try:
            if self._vcs.is_rebase_in_progress():
                self._callback.on_step("Aborting rebase...")
                self._vcs.rebase_abort()
        except GitError as e:
            self._callback.on_warning(f"Could not abort the rebase: {e}")
        return SyncEvent.ABORTED

    def _apply(self, effect: Effect, run: _Run) -> None:
        base = self.config.base_branch
        if effect is Effect.RESTORE_STASH:
            self._restore_stash(run)
        elif effect is Effect.CLEAR_STATE:
            self._store.clear()
        elif effect is Effect.REPORT_SYNCED:
            run.status = SyncStatus.SYNCED
            self._callback.on_success(f"Synced with {base}")
        elif effect is Effect.REPORT_UP_TO_DATE:
            run.status = SyncStatus.UP_TO_DATE
            self._callback.on_success(f"Already up to date with {base}")
        elif effect is Effect.REPORT_PAUSED:
            run.status = SyncStatus.PAUSED
            self._callback.on_paused(False)
        elif effect is Effect.REPORT_STILL_CONFLICTED:
            run.status = SyncStatus.PAUSED
            self._callback.on_paused(True)
        elif effect is Effect.REPORT_ABORTED:
            run.status = SyncStatus.ABORTED
            self._callback.on_success("Sync aborted")
        elif effect is Effect.REPORT_CANCELLED:
            run.status = SyncStatus.CANCELLED
            self._callback.on_success("Sync cancelled; nothing was changed")

    def _restore_stash(self, run: _Run) -> None:
        if not run.guard.stashed:
            return
        self._callback.on_step("Restoring stashed changes...")
        try:
            run.guard.restore()
        except GitError as e:
            # The stash stays in `git stash list`; the record is cleared regardless
            self._callback.on_warning(
                f"Could not restore stashed changes ({e}). "
                "They are still in 'git stash list'; run 'git stash pop' when ready."
            )

    # ------------------------------------------------------------------
    # Base branches: fast-forward only
    # ------------------------------------------------------------------

    def sync_base_branch(self, branch: str) -> SyncResult:
        """
        Fast-forward a base branch to its remote counterpart.

        Never rebases or creates a merge commit. Local changes are stashed only
        if the user agrees, and restored however the sync ends.

        Raises:
            NotFastForwardError: If local history has diverged from the remote
            GitError: If stashing or fetching fails
        """
        remote_ref = f"{self.config.remote}/{branch}"
        self._callback.on_step(f"Syncing {branch} (fast-forward only)...")

        with StashGuard(self._vcs, base_stash_message(branch)) as guard:
            if self._vcs.is_dirty():
                self._callback.on_warning(
                    f"You have uncommitted changes:\n{self._vcs.status_short()}"
                )
                if not self._callback.confirm("Stash changes and continue?", False):
                    self._callback.on_success("Cancelled; nothing was changed")
                    return SyncResult(status=SyncStatus.CANCELLED, branch=branch)
                self._callback.on_step("Stashing changes...")
                guard.stash()
            stashed = guard.stashed

            self._callback.on_step(f"Fetching {remote_ref}...")
            self._vcs.fetch(self.config.remote, branch)
            behind = self._vcs.ahead_behind(remote_ref).behind

            if behind == 0:
                status = SyncStatus.UP_TO_DATE
            else:
                self._callback.on_step(f"Fast-forwarding ({behind} commit(s) behind)...")
                self._vcs.merge_ff(remote_ref)
                status = SyncStatus.SYNCED

            if stashed:
                self._callback.on_step("Restoring stashed changes...")

        if status is SyncStatus.UP_TO_DATE:
            self._callback.on_success("Already up to date")
        else:
            self._callback.on_success(f"{branch} synced!")
        return SyncResult(status=status, branch=branch, behind=behind, stashed=stashed)
