"""
Exceptions raised by the sync engine.

Git failures surface as wt.core.vcs.GitError; the classes here cover the
engine's own preconditions.
"""


class SyncError(Exception):
    """Base exception for sync operations."""

    pass


class NoSyncInProgressError(SyncError):
    """Raised by --continue when no sync record exists."""

    def __init__(self) -> None:
        super().__init__("No sync in progress")


class SyncInProgressError(SyncError):
    """Raised when a new sync starts while a rebase or an earlier sync is in flight."""

    def __init__(self, message: str = "A rebase is already in progress") -> None:
        super().__init__(message)


class SyncStateError(SyncError):
    """Raised when the durable sync record cannot be read or written."""

    pass


class InvalidTransitionError(SyncError):
    """Raised when the state machine receives an event its phase does not accept."""

    pass
