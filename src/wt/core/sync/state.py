"""
Durable storage for the sync record.

The record lives in the worktree's private git directory (``.git`` or
``.git/worktrees/<name>``), never in the working tree, so it is invisible to
status and stash and is scoped exactly like git's own rebase-in-progress
marker: at most one per worktree.
"""

from __future__ import annotations

import logging
from pathlib import Path

from wt.core.sync.errors import SyncStateError
from wt.core.sync.models import SyncState
from wt.core.vcs import VersionControl

logger = logging.getLogger(__name__)


class SyncStateStore:
    """
    Reads and writes the sync record for one worktree.

    Example:
        >>> store = SyncStateStore(vcs)
        >>> store.save(SyncState(stashed=True))
        >>> store.load()
        SyncState(stashed=True)
        >>> store.clear()
        >>> store.exists()
        False
    """

    STATE_FILE = "wt-sync-state"

    def __init__(self, vcs: VersionControl) -> None:
        self._vcs = vcs
        self._path: Path | None = None

    @property
    def path(self) -> Path:
        """Full path to the record file."""
        if self._path is None:
            self._path = self._vcs.git_dir() / self.STATE_FILE
        return self._path

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> SyncState | None:
        """
        Load the record.

        Returns:
            The stored state, or None if no sync is in flight

        Raises:
            SyncStateError: If the record exists but cannot be read or parsed
        """
        try:
            content = self.path.read_text()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise SyncStateError(f"Failed to read sync state at {self.path}: {e}") from e

        try:
            return SyncState.from_record(content)
        except ValueError as e:
            raise SyncStateError(
                f"Unrecognized sync state {content.strip()!r} in {self.path}"
            ) from e

    def save(self, state: SyncState) -> None:
        """
        Write the record atomically.

        Raises:
            SyncStateError: If the record cannot be written
        """
        temp_path = self.path.with_suffix(".tmp")
        try:
            temp_path.write_text(state.to_record())
            temp_path.replace(self.path)
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            raise SyncStateError(f"Failed to save sync state at {self.path}: {e}") from e
        logger.debug("Saved sync state %s to %s", state.to_record(), self.path)

    def clear(self) -> None:
        """Delete the record. A missing record is not an error."""
        self.path.unlink(missing_ok=True)
        logger.debug("Cleared sync state at %s", self.path)
