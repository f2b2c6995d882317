"""
Configuration data models for wt.

These models define the structure of .wt.json and ~/.config/wt/config.json
files, with validation and type safety via Pydantic.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Branch names that are always treated as shared history, whatever base_branch says
DEFAULT_PROTECTED_BRANCHES = ("main", "master")


class SyncConfig(BaseModel):
    """
    Behavior of `wt sync`.
    """
    preview_conflicts: bool = Field(
        default=True,
        description="Warn about files changed on both sides before rebasing"
    )


class WtConfig(BaseModel):
    """
    Top-level wt configuration.

    Resolved via defaults < user config < per-repo user section < project config
    < env vars. See wt.core.config.loader for the merge rules.

    Example:
        >>> config = WtConfig(base_branch="staging")
        >>> config.base_ref
        'origin/staging'
    """
    base_branch: str = Field(
        default="main",
        description="Branch worktrees are created from and rebased onto"
    )
    remote: str = Field(
        default="origin",
        description="Git remote that hosts the base branch"
    )
    sync: SyncConfig = Field(default_factory=SyncConfig)

    model_config = ConfigDict(
        extra="ignore",
        validate_assignment=True,
    )

    @field_validator("base_branch", "remote")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject empty or whitespace-only names."""
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @property
    def base_ref(self) -> str:
        """Remote-tracking ref of the base branch (e.g. 'origin/main')."""
        return f"{self.remote}/{self.base_branch}"

    def is_base_branch(self, branch: str | None) -> bool:
        """Whether a branch is shared history that must only be fast-forwarded."""
        if not branch:
            return False
        return branch == self.base_branch or branch in DEFAULT_PROTECTED_BRANCHES
