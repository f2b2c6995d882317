"""
Pytest configuration and shared fixtures.

Provides an in-memory VersionControl fake, a recording sync callback,
default config, and isolated config directories used across the test suite.
"""

from pathlib import Path

import pytest

from wt.core.config import clear_cache
from wt.core.config.models import WtConfig
from wt.core.sync.models import UnitResult
from wt.core.vcs import AheadBehind, DetachedHeadError, GitError, WorktreeRef

# ==============================================================================
# Fakes
# ==============================================================================


class FakeVcs:
    """
    In-memory stand-in for a git worktree.

    Every state-changing call is recorded in ``calls``; put a GitError in
    ``fail[<method name>]`` to make that call raise it.
    """

    def __init__(
        self,
        path: Path,
        branch: str | None = "alice/login-form",
        dirty: bool = False,
        behind: int = 0,
        ahead: int = 0,
    ) -> None:
        self.path = path
        self.branch = branch
        self.dirty = dirty
        self.behind = behind
        self.ahead = ahead
        self.conflict_on_rebase = False
        self.conflict_on_continue = False
        self.rebase_in_progress = False
        self.remote_changed: set[str] = set()
        self.local_changed: set[str] = set()
        self.stashes: list[str] = []
        self.worktrees: list[WorktreeRef] = []
        self.children: dict[Path, "FakeVcs"] = {}
        self.fail: dict[str, GitError] = {}
        self.calls: list[str] = []

        self._git_dir = path / ".git"
        self._git_dir.mkdir(parents=True, exist_ok=True)

    def count(self, name: str) -> int:
        return self.calls.count(name)

    def _call(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail:
            raise self.fail[name]

    def current_branch(self) -> str:
        self._call("current_branch")
        # git leaves HEAD detached while a rebase is stopped
        if self.branch is None or self.rebase_in_progress:
            raise DetachedHeadError(f"HEAD is detached in {self.path}")
        return self.branch

    def is_dirty(self) -> bool:
        return self.dirty

    def status_short(self) -> str:
        return " M app.py" if self.dirty else ""

    def stash_push(self, message: str) -> None:
        self._call("stash_push")
        self.stashes.append(message)
        self.dirty = False

    def stash_pop(self) -> None:
        self._call("stash_pop")
        self.stashes.pop()
        self.dirty = True

    def fetch(self, remote: str, ref: str) -> None:
        self._call("fetch")

    def rebase(self, onto: str) -> bool:
        self._call("rebase")
        if self.conflict_on_rebase:
            self.rebase_in_progress = True
            return False
        self.behind = 0
        return True

    def rebase_continue(self) -> bool:
        self._call("rebase_continue")
        if self.conflict_on_continue:
            return False
        self.rebase_in_progress = False
        self.behind = 0
        return True

    def rebase_abort(self) -> None:
        self._call("rebase_abort")
        self.rebase_in_progress = False

    def is_rebase_in_progress(self) -> bool:
        return self.rebase_in_progress

    def merge_ff(self, ref: str) -> None:
        self._call("merge_ff")
        self.behind = 0

    def ahead_behind(self, ref: str) -> AheadBehind:
        self._call("ahead_behind")
        return AheadBehind(ahead=self.ahead, behind=self.behind)

    def merge_base(self, a: str, b: str) -> str:
        self._call("merge_base")
        return "b4se"

    def changed_paths(self, base: str, tip: str) -> set[str]:
        self._call("changed_paths")
        return set(self.local_changed if tip == "HEAD" else self.remote_changed)

    def git_dir(self) -> Path:
        return self._git_dir

    def list_worktrees(self) -> list[WorktreeRef]:
        self._call("list_worktrees")
        return list(self.worktrees)

    def main_worktree(self) -> Path:
        return self.worktrees[0].path if self.worktrees else self.path

    def at(self, path: Path) -> "FakeVcs":
        return self.children[path]


class RecordingCallback:
    """SyncCallback that records every event and answers confirms from a queue."""

    def __init__(self, answers: list[bool] | None = None) -> None:
        self.answers = list(answers or [])
        self.steps: list[str] = []
        self.warnings: list[str] = []
        self.successes: list[str] = []
        self.forecasts: list[list[str]] = []
        self.questions: list[str] = []
        self.paused: list[bool] = []
        self.units: list[UnitResult] = []

    def on_step(self, message: str) -> None:
        self.steps.append(message)

    def on_warning(self, message: str) -> None:
        self.warnings.append(message)

    def on_success(self, message: str) -> None:
        self.successes.append(message)

    def on_conflict_forecast(self, paths: list[str]) -> None:
        self.forecasts.append(paths)

    def confirm(self, message: str, default: bool) -> bool:
        self.questions.append(message)
        return self.answers.pop(0) if self.answers else default

    def on_paused(self, still_conflicted: bool) -> None:
        self.paused.append(still_conflicted)

    def on_unit_complete(self, result: UnitResult) -> None:
        self.units.append(result)


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture
def fake_vcs(tmp_path):
    """Provide a clean feature-branch worktree that is up to date."""
    return FakeVcs(tmp_path / "repo")


@pytest.fixture
def callback():
    """Provide a callback that records events and accepts every default."""
    return RecordingCallback()


@pytest.fixture
def config():
    """Provide the default configuration (origin/main)."""
    return WtConfig()


@pytest.fixture
def user_config_dir(tmp_path, monkeypatch):
    """Provide an isolated XDG_CONFIG_HOME/wt directory."""
    xdg_home = tmp_path / "config"
    config_dir = xdg_home / "wt"
    config_dir.mkdir(parents=True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(xdg_home))
    return config_dir


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Keep WT_* variables and the config cache from leaking between tests."""
    for name in ("WT_BASE_BRANCH", "WT_REMOTE", "WT_PREVIEW_CONFLICTS"):
        monkeypatch.delenv(name, raising=False)
    clear_cache()
    yield
    clear_cache()
