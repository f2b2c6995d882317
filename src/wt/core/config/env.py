"""Environment file loading for WT_* overrides.

The WT_* variables read by wt.core.config.loader can be exported in the shell
or kept in .env files:
- OS environment (highest precedence)
- Repository env files (.env, .env.local in the main worktree root)
- User env file (~/.config/wt/.env)

Only WT_* keys are taken from the files; a repository's .env usually belongs
to the application in it, not to wt.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from dotenv import dotenv_values

from .loader import get_xdg_config_home

logger = logging.getLogger(__name__)

ENV_PREFIX = "WT_"
REPO_ENV_NAMES = (".env", ".env.local")


def _read_wt_keys(path: Path) -> dict[str, str]:
    if not path.is_file():
        return {}
    return {
        key: value
        for key, value in dotenv_values(path).items()
        if key and key.startswith(ENV_PREFIX) and value is not None
    }


def load_layered_env(
    project_dir: Path,
    *,
    user_env_paths: Iterable[Path] | None = None,
) -> dict[str, str]:
    """Export WT_* variables from the user and repository .env files.

    Args:
        project_dir: Main worktree root; linked worktrees share its files
        user_env_paths: Explicit user env files (defaults to ~/.config/wt/.env)

    Returns:
        The variables that were exported, after layering

    Notes:
        Repository files override the user file. Neither overrides a variable
        that was already set when wt started.
    """
    if user_env_paths is None:
        user_env_paths = [get_xdg_config_home() / "wt" / ".env"]

    layered: dict[str, str] = {}
    for path in [*user_env_paths, *(project_dir / name for name in REPO_ENV_NAMES)]:
        values = _read_wt_keys(Path(path))
        if values:
            logger.debug("Loaded %s from %s", ", ".join(sorted(values)), path)
        layered.update(values)

    applied = {key: value for key, value in layered.items() if key not in os.environ}
    os.environ.update(applied)
    return applied
