"""
Git implementation of the VersionControl protocol.

GitRepo wraps a GitPython ``Repo`` and exposes the narrow set of primitives
the sync engine needs. Each method is a thin, blocking call into git; the
engine's own rebase and merge machinery is never reimplemented here.
"""

from __future__ import annotations

import logging
from pathlib import Path

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

from .models import AheadBehind, WorktreeRef

logger = logging.getLogger(__name__)

REBASE_MARKER_DIRS = ("rebase-merge", "rebase-apply")


class GitError(Exception):
    """Exception raised when a git operation fails."""

    def __init__(self, message: str, command: list[str] | None = None, stderr: str = ""):
        super().__init__(message)
        self.command = command
        self.stderr = stderr

    def __str__(self) -> str:
        message = super().__str__()
        if self.stderr:
            return f"{message}: {self.stderr}"
        return message


class NotARepositoryError(GitError):
    """Raised when the working directory is not inside a git repository."""

    pass


class DetachedHeadError(GitError):
    """Raised when a branch is required but HEAD is detached."""

    pass


class NotFastForwardError(GitError):
    """Raised when a fast-forward merge is impossible because history diverged."""

    def __init__(self, ref: str, command: list[str] | None = None, stderr: str = ""):
        super().__init__(f"Cannot fast-forward to {ref}", command=command, stderr=stderr)
        self.ref = ref


def _clean_stderr(error: GitCommandError) -> str:
    """Strip GitPython's ``stderr: '...'`` wrapping from an error."""
    text = str(error.stderr or "").strip()
    if text.startswith("stderr:"):
        text = text[len("stderr:") :].strip().strip("'").strip()
    return text


class GitRepo:
    """
    Version-control adapter backed by GitPython.

    Example:
        >>> vcs = GitRepo()
        >>> vcs.current_branch()
        'alice/login-form'
        >>> vcs.fetch("origin", "main")
        >>> vcs.ahead_behind("origin/main")
        AheadBehind(ahead=2, behind=5)
    """

    def __init__(self, repo_path: Path | None = None):
        """
        Open the repository containing a directory.

        Args:
            repo_path: Directory inside the repository (defaults to cwd)

        Raises:
            NotARepositoryError: If the directory is not inside a git repository
        """
        self.repo_path = repo_path or Path.cwd()

        try:
            self.repo = Repo(self.repo_path, search_parent_directories=True)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise NotARepositoryError(f"Not a git repository: {self.repo_path}") from e

    @property
    def path(self) -> Path:
        """Root of the worktree this adapter operates on."""
        return Path(self.repo.working_tree_dir or self.repo_path)

    def _run(self, command: str, *args: str) -> str:
        """
        Run a git subcommand and return its stdout.

        Args:
            command: GitPython method name (underscores become dashes)
            *args: Command arguments

        Returns:
            Command stdout, stripped

        Raises:
            GitError: If the command exits non-zero
        """
        logger.debug("Running git command in %s: git %s %s", self.path, command, " ".join(args))
        try:
            return str(getattr(self.repo.git, command)(*args)).strip()
        except GitCommandError as e:
            raise GitError(
                f"git {command.replace('_', '-')} failed",
                command=[command, *args],
                stderr=_clean_stderr(e),
            ) from e

    def current_branch(self) -> str:
        branch = self._run("rev_parse", "--abbrev-ref", "HEAD")
        if branch == "HEAD":
            raise DetachedHeadError(f"HEAD is detached in {self.path}")
        return branch

    def is_dirty(self) -> bool:
        try:
            return bool(self.repo.is_dirty(untracked_files=True))
        except GitCommandError as e:
            raise GitError(
                "git status failed", command=["status"], stderr=_clean_stderr(e)
            ) from e

    def status_short(self) -> str:
        return self._run("status", "--short")

    def stash_push(self, message: str) -> None:
        self._run("stash", "push", "-u", "-m", message)

    def stash_pop(self) -> None:
        self._run("stash", "pop")

    def fetch(self, remote: str, ref: str) -> None:
        self._run("fetch", remote, ref)

    def rebase(self, onto: str) -> bool:
        try:
            self._run("rebase", onto)
        except GitError:
            if self.is_rebase_in_progress():
                logger.debug("Rebase onto %s stopped with conflicts", onto)
                return False
            raise
        return True

    def rebase_continue(self) -> bool:
        # Accept the recorded commit message instead of opening an editor
        with self.repo.git.custom_environment(GIT_EDITOR="true"):
            try:
                self._run("rebase", "--continue")
            except GitError:
                if self.is_rebase_in_progress():
                    return False
                raise
        return True

    def rebase_abort(self) -> None:
        self._run("rebase", "--abort")

    def is_rebase_in_progress(self) -> bool:
        git_dir = self.git_dir()
        return any((git_dir / marker).is_dir() for marker in REBASE_MARKER_DIRS)

    def merge_ff(self, ref: str) -> None:
        try:
            self._run("merge", "--ff-only", ref)
        except GitError as e:
            raise NotFastForwardError(ref, command=e.command, stderr=e.stderr) from e

    def ahead_behind(self, ref: str) -> AheadBehind:
        output = self._run("rev_list", "--left-right", "--count", f"HEAD...{ref}")
        parts = output.split()
        if len(parts) != 2 or not all(part.isdigit() for part in parts):
            raise GitError(f"Unexpected rev-list output for {ref}: {output!r}")
        return AheadBehind(ahead=int(parts[0]), behind=int(parts[1]))

    def merge_base(self, a: str, b: str) -> str:
        return self._run("merge_base", a, b)

    def changed_paths(self, base: str, tip: str) -> set[str]:
        output = self._run("diff", "--name-only", f"{base}..{tip}")
        return {line.strip() for line in output.splitlines() if line.strip()}

    def git_dir(self) -> Path:
        return Path(self._run("rev_parse", "--absolute-git-dir"))

    def list_worktrees(self) -> list[WorktreeRef]:
        output = self._run("worktree", "list", "--porcelain")

        worktrees: list[WorktreeRef] = []
        current: dict[str, str | bool] = {}

        for line in output.splitlines():
            line = line.strip()
            if not line:
                # Empty line indicates end of worktree entry
                if current:
                    worktrees.append(self._parse_worktree(current))
                    current = {}
                continue

            if line.startswith("worktree "):
                current["path"] = line[len("worktree ") :]
            elif line.startswith("HEAD "):
                current["commit"] = line[len("HEAD ") :]
            elif line.startswith("branch "):
                current["branch"] = line[len("branch ") :]
            elif line == "bare":
                current["is_bare"] = True
            elif line == "detached":
                current["is_detached"] = True

        # Porcelain output may not end with a blank line
        if current:
            worktrees.append(self._parse_worktree(current))

        return worktrees

    def _parse_worktree(self, data: dict[str, str | bool]) -> WorktreeRef:
        """Parse porcelain fields into a WorktreeRef."""
        branch: str | None = None
        if "branch" in data:
            branch = str(data["branch"]).removeprefix("refs/heads/")
        return WorktreeRef(
            path=Path(str(data.get("path", ""))),
            branch=branch,
            commit=str(data.get("commit", "")),
            is_bare=bool(data.get("is_bare", False)),
            is_detached=bool(data.get("is_detached", False)),
        )

    def main_worktree(self) -> Path:
        worktrees = self.list_worktrees()
        if not worktrees:
            return self.path
        return worktrees[0].path

    def at(self, path: Path) -> GitRepo:
        return GitRepo(path)
