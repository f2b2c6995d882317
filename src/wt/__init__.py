"""
wt - Worktree workflow helper

A CLI tool that keeps per-branch git worktrees in sync with a shared base branch.
"""

__version__ = "0.4.0"

from wt.core.config.models import WtConfig
from wt.core.sync.models import BatchOutcome, SyncStatus

__all__ = ["BatchOutcome", "SyncStatus", "WtConfig", "__version__"]
