"""
Progress callbacks for the sync engine.

The orchestrator and batch runner report progress and ask questions through
this protocol so the core stays free of terminal I/O.
"""

from __future__ import annotations

from typing import Protocol

from wt.core.sync.models import UnitResult


class SyncCallback(Protocol):
    """Protocol for sync event callbacks."""

    def on_step(self, message: str) -> None:
        """Called when the sync starts a visible step (stash, fetch, rebase...).

        Args:
            message: Human-readable description of the step
        """
        ...

    def on_warning(self, message: str) -> None:
        """Called for non-fatal conditions the user should see."""
        ...

    def on_success(self, message: str) -> None:
        """Called once when the sync reaches a successful end state."""
        ...

    def on_conflict_forecast(self, paths: list[str]) -> None:
        """Called with files changed on both sides before a rebase."""
        ...

    def confirm(self, message: str, default: bool) -> bool:
        """Ask the user a yes/no question.

        Args:
            message: Question to ask
            default: Answer used when the user just presses Enter

        Returns:
            The user's answer
        """
        ...

    def on_paused(self, still_conflicted: bool) -> None:
        """Called when a rebase stops on conflicts, with resume instructions due.

        Args:
            still_conflicted: True when a --continue hit conflicts again
        """
        ...

    def on_unit_complete(self, result: UnitResult) -> None:
        """Called after each worktree of a batch run is classified."""
        ...


class NoOpCallback:
    """Default callback: silent, and every question gets its default answer."""

    def on_step(self, message: str) -> None:
        pass

    def on_warning(self, message: str) -> None:
        pass

    def on_success(self, message: str) -> None:
        pass

    def on_conflict_forecast(self, paths: list[str]) -> None:
        pass

    def confirm(self, message: str, default: bool) -> bool:
        return default

    def on_paused(self, still_conflicted: bool) -> None:
        pass

    def on_unit_complete(self, result: UnitResult) -> None:
        pass
