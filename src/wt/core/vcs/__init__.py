"""
Version-control adapter for wt.

The sync engine depends on the VersionControl protocol only; GitRepo is the
production implementation on top of GitPython.

Example:
    >>> from wt.core.vcs import GitRepo
    >>> vcs = GitRepo()
    >>> vcs.current_branch()
    'alice/login-form'
"""

from .backend import VersionControl
from .models import AheadBehind, WorktreeRef
from .repo import (
    DetachedHeadError,
    GitError,
    GitRepo,
    NotARepositoryError,
    NotFastForwardError,
)

__all__ = [
    "AheadBehind",
    "DetachedHeadError",
    "GitError",
    "GitRepo",
    "NotARepositoryError",
    "NotFastForwardError",
    "VersionControl",
    "WorktreeRef",
]
