"""
Tests for StashGuard.
"""

import pytest

from wt.core.sync import StashGuard
from wt.core.sync.stash import FEATURE_STASH_MESSAGE, base_stash_message
from wt.core.vcs import GitError


class TestStash:
    def test_clean_tree_is_not_stashed(self, fake_vcs):
        guard = StashGuard(fake_vcs)

        assert guard.stash() is False
        assert guard.stashed is False
        assert fake_vcs.count("stash_push") == 0

    def test_dirty_tree_is_stashed_once(self, fake_vcs):
        fake_vcs.dirty = True
        guard = StashGuard(fake_vcs)

        assert guard.stash() is True
        fake_vcs.dirty = True
        assert guard.stash() is False
        assert fake_vcs.stashes == [FEATURE_STASH_MESSAGE]

    def test_base_branch_message(self):
        assert base_stash_message("main") == "wt sync: auto-stash on main"


class TestRestore:
    def test_restore_pops_once(self, fake_vcs):
        fake_vcs.dirty = True
        guard = StashGuard(fake_vcs)
        guard.stash()

        assert guard.restore() is True
        assert guard.restore() is False
        assert fake_vcs.count("stash_pop") == 1

    def test_failed_restore_is_not_retried(self, fake_vcs):
        fake_vcs.dirty = True
        guard = StashGuard(fake_vcs)
        guard.stash()
        fake_vcs.fail["stash_pop"] = GitError("git stash failed")

        with pytest.raises(GitError):
            guard.restore()

        assert guard.stashed is False
        assert guard.restore() is False

    def test_adopted_stash_can_be_restored(self, fake_vcs):
        fake_vcs.stashes.append(FEATURE_STASH_MESSAGE)
        guard = StashGuard(fake_vcs, stashed=True)

        assert guard.restore() is True
        assert fake_vcs.stashes == []


class TestContextManager:
    def test_exit_restores(self, fake_vcs):
        fake_vcs.dirty = True

        with StashGuard(fake_vcs) as guard:
            guard.stash()

        assert fake_vcs.count("stash_pop") == 1

    def test_exit_restores_on_error(self, fake_vcs):
        fake_vcs.dirty = True

        with pytest.raises(RuntimeError):
            with StashGuard(fake_vcs) as guard:
                guard.stash()
                raise RuntimeError("boom")

        assert fake_vcs.count("stash_pop") == 1

    def test_restore_failure_does_not_mask_error(self, fake_vcs):
        """The caller sees the in-flight exception, not the pop failure."""
        fake_vcs.dirty = True
        fake_vcs.fail["stash_pop"] = GitError("git stash failed")

        with pytest.raises(RuntimeError, match="boom"):
            with StashGuard(fake_vcs) as guard:
                guard.stash()
                raise RuntimeError("boom")

    def test_detached_guard_leaves_stash(self, fake_vcs):
        fake_vcs.dirty = True

        with StashGuard(fake_vcs) as guard:
            guard.stash()
            guard.detach()

        assert fake_vcs.count("stash_pop") == 0
        assert fake_vcs.stashes == [FEATURE_STASH_MESSAGE]
