"""
Advisory conflict prediction.

Before rebasing, wt compares what changed upstream with what changed locally
since the two histories diverged. Files touched on both sides are likely,
though not certain, to conflict. The forecast is only used to warn and ask;
it never blocks a sync on its own.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from wt.core.sync.models import ConflictForecast
from wt.core.vcs import GitError, VersionControl

logger = logging.getLogger(__name__)


def overlapping_paths(remote_changed: Iterable[str], local_changed: Iterable[str]) -> set[str]:
    """
    Paths changed on both sides.

    Example:
        >>> sorted(overlapping_paths({"x", "y"}, {"y", "z"}))
        ['y']
    """
    return set(remote_changed) & set(local_changed)


class ConflictPredictor:
    """Computes a ConflictForecast for rebasing HEAD onto a ref."""

    def __init__(self, vcs: VersionControl) -> None:
        self._vcs = vcs

    def predict(self, onto: str) -> ConflictForecast:
        """
        Predict which paths may conflict when rebasing HEAD onto `onto`.

        Git errors are logged and produce an empty forecast.
        """
        try:
            base = self._vcs.merge_base("HEAD", onto)
            remote_changed = self._vcs.changed_paths(base, onto)
            local_changed = self._vcs.changed_paths(base, "HEAD")
        except GitError as e:
            logger.warning("Conflict preview unavailable: %s", e)
            return ConflictForecast(onto=onto)

        paths = overlapping_paths(remote_changed, local_changed)
        logger.debug(
            "Conflict preview against %s: %d remote, %d local, %d overlapping",
            onto,
            len(remote_changed),
            len(local_changed),
            len(paths),
        )
        return ConflictForecast(onto=onto, merge_base=base, paths=sorted(paths))
