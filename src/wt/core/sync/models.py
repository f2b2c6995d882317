"""
Data models for the sync engine.

Defines the durable sync record, the outcome of a single sync, and the
per-worktree classification produced by a batch run.
"""

from __future__ import annotations

from collections import Counter
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class StashRecord(str, Enum):
    """On-disk value of the sync record (closed two-value set)."""

    STASHED = "stashed"
    NOT_STASHED = "no"


class SyncState(BaseModel):
    """
    Durable record of a feature-branch sync in flight.

    Stored as plain text in the worktree's private git directory so that a
    later invocation can continue or abort what an earlier one paused. Its
    presence alone means "a sync is in flight or paused".

    Example:
        >>> SyncState(stashed=True).to_record()
        'stashed'
        >>> SyncState.from_record("no").stashed
        False
    """

    stashed: bool = Field(
        default=False,
        description="Whether the sync stashed uncommitted changes that must be restored",
    )

    def to_record(self) -> str:
        """Serialize to the on-disk value."""
        record = StashRecord.STASHED if self.stashed else StashRecord.NOT_STASHED
        return record.value

    @classmethod
    def from_record(cls, content: str) -> SyncState:
        """
        Parse the on-disk value.

        Raises:
            ValueError: If the content is not one of the known values
        """
        record = StashRecord(content.strip())
        return cls(stashed=record is StashRecord.STASHED)


class SyncStatus(str, Enum):
    """Terminal outcome of one `wt sync` invocation that did not fail."""

    SYNCED = "synced"
    UP_TO_DATE = "up_to_date"
    PAUSED = "paused"
    ABORTED = "aborted"
    CANCELLED = "cancelled"


class ConflictForecast(BaseModel):
    """
    Paths changed on both sides since the branches diverged.

    Purely advisory; an overlap suggests, but does not guarantee, a conflict.
    """

    onto: str = Field(description="Ref the branch would be rebased onto")
    merge_base: str | None = Field(default=None, description="Common ancestor commit")
    paths: list[str] = Field(default_factory=list, description="Sorted overlapping paths")

    @property
    def has_overlap(self) -> bool:
        return bool(self.paths)


class SyncResult(BaseModel):
    """
    Result of a single-worktree sync.

    Failures are raised as exceptions; every status here exits successfully,
    including PAUSED, which is an expected stop for conflict resolution.
    """

    status: SyncStatus = Field(description="How the invocation ended")
    branch: str | None = Field(default=None, description="Branch that was synced")
    behind: int = Field(default=0, ge=0, description="Commits behind the base ref before syncing")
    stashed: bool = Field(default=False, description="Whether local changes were stashed")
    conflicts: list[str] = Field(
        default_factory=list,
        description="Paths predicted to conflict (advisory)",
    )

    def summary(self) -> str:
        """Generate a human-readable summary of the result."""
        messages = {
            SyncStatus.SYNCED: f"synced {self.branch or 'branch'} ({self.behind} new commit(s))",
            SyncStatus.UP_TO_DATE: "already up to date",
            SyncStatus.PAUSED: "paused on conflicts",
            SyncStatus.ABORTED: "aborted",
            SyncStatus.CANCELLED: "cancelled",
        }
        return messages[self.status]


class BatchOutcome(str, Enum):
    """Classification of one worktree in a batch run."""

    REBASED = "rebased"
    UP_TO_DATE = "up_to_date"
    SKIPPED_DIRTY = "skipped_dirty"
    FAILED_CONFLICT = "failed_conflict"


class UnitResult(BaseModel):
    """Outcome for one worktree in a batch run."""

    name: str = Field(description="Worktree directory name")
    path: Path = Field(description="Worktree path")
    branch: str = Field(description="Branch checked out in the worktree")
    outcome: BatchOutcome
    behind: int = Field(default=0, ge=0, description="Commits behind the base ref")
    detail: str = Field(default="", description="Error text for failed units")


class BatchReport(BaseModel):
    """
    Aggregate result of a batch run.

    Built fresh for every run and discarded after reporting.
    """

    base_ref: str = Field(description="Ref every unit was compared against")
    units: list[UnitResult] = Field(default_factory=list)

    @property
    def counts(self) -> Counter[BatchOutcome]:
        """Number of units per outcome."""
        return Counter(unit.outcome for unit in self.units)

    def outcome_of(self, name: str) -> BatchOutcome | None:
        """Look up a unit's outcome by worktree name."""
        for unit in self.units:
            if unit.name == name:
                return unit.outcome
        return None
