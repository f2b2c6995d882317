"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < user per-repo section < project config < env vars

The user config may hold a ``repos`` object keyed by repository name; the
matching section overrides the user's top-level defaults for that repository.
"""

import json
import os
from pathlib import Path
from typing import Any

from .models import WtConfig

# Global cache to avoid reloading config multiple times per invocation
_config_cache: WtConfig | None = None

PROJECT_CONFIG_NAME = ".wt.json"


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """
    Get path to user configuration file.

    Returns:
        Path to ~/.config/wt/config.json (or XDG equivalent)
    """
    return get_xdg_config_home() / "wt" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """
    Get path to project configuration file.

    Args:
        cwd: Main worktree root (defaults to current directory)

    Returns:
        Path to .wt.json in the project root
    """
    if cwd is None:
        cwd = Path.cwd()
    return cwd / PROJECT_CONFIG_NAME


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`.
    This is a recursive merge - nested dicts are merged, not replaced.

    Args:
        base: Base dictionary (lower priority)
        override: Override dictionary (higher priority)

    Returns:
        Merged dictionary with override values taking precedence

    Example:
        >>> base = {"a": 1, "b": {"x": 10, "y": 20}}
        >>> override = {"b": {"y": 30, "z": 40}, "c": 3}
        >>> deep_merge(base, override)
        {"a": 1, "b": {"x": 10, "y": 30, "z": 40}, "c": 3}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dict, or None if file doesn't exist or can't be parsed
    """
    if not path.exists():
        return None

    try:
        with path.open() as f:
            data = json.load(f)
            # Type narrowing for mypy - json.load can return Any
            if isinstance(data, dict):
                return data
            return None
    except (json.JSONDecodeError, OSError) as e:
        # Config system should be resilient to a broken file
        print(f"Warning: Failed to parse config at {path}: {e}")
        return None


def split_user_config(
    user_config: dict[str, Any], repo_name: str | None
) -> tuple[dict[str, Any], dict[str, Any]]:
    """
    Separate user-level defaults from the per-repo section for one repository.

    Args:
        user_config: Parsed user config file
        repo_name: Repository name to look up under ``repos``

    Returns:
        Tuple of (top-level defaults, matching repo section or {})
    """
    defaults = {k: v for k, v in user_config.items() if k != "repos"}
    repos = user_config.get("repos")
    if not repo_name or not isinstance(repos, dict):
        return defaults, {}
    section = repos.get(repo_name)
    return defaults, section if isinstance(section, dict) else {}


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Env vars have the highest precedence and override all config files.

    Supported env vars:
        WT_BASE_BRANCH - overrides base_branch
        WT_REMOTE - overrides remote
        WT_PREVIEW_CONFLICTS - overrides sync.preview_conflicts

    Args:
        config_dict: Configuration dictionary to override

    Returns:
        Configuration dictionary with env var overrides applied
    """
    result = config_dict.copy()

    if base_branch := os.environ.get("WT_BASE_BRANCH"):
        result["base_branch"] = base_branch

    if remote := os.environ.get("WT_REMOTE"):
        result["remote"] = remote

    if preview_str := os.environ.get("WT_PREVIEW_CONFLICTS"):
        preview = preview_str.lower() not in ("false", "0", "")
        result["sync"] = {**result.get("sync", {}), "preview_conflicts": preview}

    return result


def get_default_config() -> dict[str, Any]:
    """
    Get hardcoded default configuration.

    Returns:
        Dictionary with default configuration values
    """
    return {
        "base_branch": "main",
        "remote": "origin",
        "sync": {"preview_conflicts": True},
    }


def load_config(
    project_dir: Path | None = None,
    repo_name: str | None = None,
    use_cache: bool = True,
) -> WtConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (WT_*)
        2. Project config (.wt.json in the main worktree)
        3. User config ``repos.<repo_name>`` section
        4. User config top-level keys (~/.config/wt/config.json)
        5. Hardcoded defaults

    Args:
        project_dir: Main worktree root to load .wt.json from (defaults to cwd)
        repo_name: Repository name used to pick the per-repo user section
        use_cache: If True, return cached config from previous load

    Returns:
        Validated WtConfig instance

    Raises:
        ValidationError: If the merged config fails Pydantic validation

    Example:
        >>> config = load_config()
        >>> config.base_ref
        'origin/main'
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()

    if user_config := load_json_file(get_user_config_path()):
        defaults, repo_section = split_user_config(user_config, repo_name)
        merged = deep_merge(merged, defaults)
        merged = deep_merge(merged, repo_section)

    if project_config := load_json_file(get_project_config_path(project_dir)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    config = WtConfig(**merged)
    _config_cache = config

    return config


def clear_cache() -> None:
    """
    Clear the cached configuration.

    Useful for testing or when config files change during execution.
    """
    global _config_cache
    _config_cache = None
