"""
Tests for the feature-branch sync state machine.
"""

import pytest

from wt.core.sync import (
    Effect,
    InvalidTransitionError,
    SyncEvent,
    SyncPhase,
    transition,
)


class TestForwardPath:
    """Test the happy path from idle to resolved."""

    def test_dirty_tree_stashes_first(self):
        assert transition(SyncPhase.IDLE, SyncEvent.DIRTY).phase is SyncPhase.STASHING

    def test_clean_tree_skips_stash(self):
        assert transition(SyncPhase.IDLE, SyncEvent.CLEAN).phase is SyncPhase.STATE_SAVED

    def test_record_saved_before_fetch(self):
        assert transition(SyncPhase.STASHING, SyncEvent.STASHED).phase is SyncPhase.STATE_SAVED
        assert transition(SyncPhase.STATE_SAVED, SyncEvent.SAVED).phase is SyncPhase.FETCHING

    def test_behind_goes_to_preview(self):
        step = transition(SyncPhase.FETCHING, SyncEvent.BEHIND)
        assert step.phase is SyncPhase.CONFLICT_PREVIEW
        assert step.effects == ()

    @pytest.mark.parametrize("event", [SyncEvent.CLEAR, SyncEvent.CONFIRMED])
    def test_preview_proceeds_to_rebase(self, event):
        assert transition(SyncPhase.CONFLICT_PREVIEW, event).phase is SyncPhase.REBASING

    def test_rebased_restores_then_clears_then_reports(self):
        step = transition(SyncPhase.REBASING, SyncEvent.REBASED)
        assert step.phase is SyncPhase.RESOLVED
        assert step.effects == (Effect.RESTORE_STASH, Effect.CLEAR_STATE, Effect.REPORT_SYNCED)


class TestShortCircuits:
    """Test paths that end the sync without a rebase."""

    def test_up_to_date_rolls_back(self):
        step = transition(SyncPhase.FETCHING, SyncEvent.UP_TO_DATE)
        assert step.phase is SyncPhase.RESOLVED
        assert step.effects == (
            Effect.RESTORE_STASH,
            Effect.CLEAR_STATE,
            Effect.REPORT_UP_TO_DATE,
        )

    def test_declined_preview_cancels(self):
        step = transition(SyncPhase.CONFLICT_PREVIEW, SyncEvent.DECLINED)
        assert step.phase is SyncPhase.CANCELLED
        assert Effect.RESTORE_STASH in step.effects
        assert Effect.CLEAR_STATE in step.effects


class TestPauseAndResume:
    """Test the conflict pause and the continuing/aborting phases."""

    def test_conflict_pauses_without_rollback(self):
        step = transition(SyncPhase.REBASING, SyncEvent.CONFLICT)
        assert step.phase is SyncPhase.PAUSED
        assert step.effects == (Effect.REPORT_PAUSED,)

    def test_continue_conflict_stays_paused(self):
        step = transition(SyncPhase.CONTINUING, SyncEvent.CONFLICT)
        assert step.phase is SyncPhase.PAUSED
        assert step.effects == (Effect.REPORT_STILL_CONFLICTED,)

    def test_continue_resolves(self):
        step = transition(SyncPhase.CONTINUING, SyncEvent.REBASED)
        assert step.phase is SyncPhase.RESOLVED
        assert step.effects[:2] == (Effect.RESTORE_STASH, Effect.CLEAR_STATE)

    def test_continue_error_keeps_record(self):
        step = transition(SyncPhase.CONTINUING, SyncEvent.ERROR)
        assert step.phase is SyncPhase.FAILED
        assert Effect.CLEAR_STATE not in step.effects

    def test_abort_restores_and_clears(self):
        step = transition(SyncPhase.ABORTING, SyncEvent.ABORTED)
        assert step.phase is SyncPhase.ABORTED
        assert step.effects == (Effect.RESTORE_STASH, Effect.CLEAR_STATE, Effect.REPORT_ABORTED)


class TestFailures:
    """Test error transitions."""

    def test_stash_error_has_nothing_to_undo(self):
        step = transition(SyncPhase.STASHING, SyncEvent.ERROR)
        assert step.phase is SyncPhase.FAILED
        assert step.effects == ()

    def test_save_error_restores_stash_only(self):
        step = transition(SyncPhase.STATE_SAVED, SyncEvent.ERROR)
        assert step.effects == (Effect.RESTORE_STASH,)

    @pytest.mark.parametrize("phase", [SyncPhase.FETCHING, SyncPhase.REBASING])
    def test_errors_after_record_roll_back(self, phase):
        step = transition(phase, SyncEvent.ERROR)
        assert step.phase is SyncPhase.FAILED
        assert step.effects == (Effect.RESTORE_STASH, Effect.CLEAR_STATE)

    def test_unknown_event_raises(self):
        with pytest.raises(InvalidTransitionError, match="idle"):
            transition(SyncPhase.IDLE, SyncEvent.REBASED)

    def test_terminal_phases(self):
        terminal = {phase for phase in SyncPhase if phase.is_terminal}
        assert terminal == {
            SyncPhase.RESOLVED,
            SyncPhase.PAUSED,
            SyncPhase.ABORTED,
            SyncPhase.CANCELLED,
            SyncPhase.FAILED,
        }

    @pytest.mark.parametrize("phase", [p for p in SyncPhase if p.is_terminal])
    def test_terminal_phases_accept_nothing(self, phase):
        with pytest.raises(InvalidTransitionError):
            transition(phase, SyncEvent.ERROR)
