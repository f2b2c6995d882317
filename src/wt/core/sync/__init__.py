"""
Worktree synchronization engine.

Keeps feature-branch worktrees current with the shared base branch:
fast-forward for base branches, stash + rebase for feature branches, with a
durable record so that a conflict pause can be continued or aborted by a
later invocation.

Example:
    >>> from wt.core.sync import SyncOrchestrator, BatchRunner
    >>> orchestrator = SyncOrchestrator(vcs, config)
    >>> result = orchestrator.sync()
    >>> if result.status is SyncStatus.PAUSED:
    ...     print("Resolve conflicts, then run: wt sync --continue")
    >>> report = BatchRunner(vcs, config).run()
"""

from wt.core.sync.batch import BatchRunner
from wt.core.sync.callbacks import NoOpCallback, SyncCallback
from wt.core.sync.errors import (
    InvalidTransitionError,
    NoSyncInProgressError,
    SyncError,
    SyncInProgressError,
    SyncStateError,
)
from wt.core.sync.machine import Effect, SyncEvent, SyncPhase, Transition, transition
from wt.core.sync.models import (
    BatchOutcome,
    BatchReport,
    ConflictForecast,
    SyncResult,
    SyncState,
    SyncStatus,
    UnitResult,
)
from wt.core.sync.orchestrator import SyncOrchestrator
from wt.core.sync.predictor import ConflictPredictor, overlapping_paths
from wt.core.sync.stash import StashGuard
from wt.core.sync.state import SyncStateStore

__all__ = [
    "BatchOutcome",
    "BatchReport",
    "BatchRunner",
    "ConflictForecast",
    "ConflictPredictor",
    "Effect",
    "InvalidTransitionError",
    "NoOpCallback",
    "NoSyncInProgressError",
    "StashGuard",
    "SyncCallback",
    "SyncError",
    "SyncEvent",
    "SyncInProgressError",
    "SyncOrchestrator",
    "SyncPhase",
    "SyncResult",
    "SyncState",
    "SyncStateError",
    "SyncStateStore",
    "SyncStatus",
    "Transition",
    "UnitResult",
    "overlapping_paths",
    "transition",
]
