"""
Feature-branch sync state machine.

The process running `wt sync` is short-lived: a conflict pause ends the
invocation and a later `--continue` or `--abort` picks up from the record on
disk. The machine is therefore a pure function from (phase, event) to
(next phase, effects). The orchestrator performs the work for each phase,
reports what happened as an event, and applies the returned effects; nothing
here touches git or the filesystem.

Forward path:

    idle -> stashing -> state_saved -> fetching -> conflict_preview -> rebasing
                                                                          |
                                                          resolved <------+------> paused

Resume paths start at `continuing` (from paused) or `aborting`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import InvalidTransitionError


class SyncPhase(str, Enum):
    """Where a sync currently is."""

    IDLE = "idle"
    STASHING = "stashing"
    STATE_SAVED = "state_saved"
    FETCHING = "fetching"
    CONFLICT_PREVIEW = "conflict_preview"
    REBASING = "rebasing"
    CONTINUING = "continuing"
    ABORTING = "aborting"
    RESOLVED = "resolved"
    PAUSED = "paused"
    ABORTED = "aborted"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_PHASES


TERMINAL_PHASES = frozenset(
    {
        SyncPhase.RESOLVED,
        SyncPhase.PAUSED,
        SyncPhase.ABORTED,
        SyncPhase.CANCELLED,
        SyncPhase.FAILED,
    }
)


class SyncEvent(str, Enum):
    """Outcome of the work done in a phase."""

    DIRTY = "dirty"
    CLEAN = "clean"
    STASHED = "stashed"
    SAVED = "saved"
    UP_TO_DATE = "up_to_date"
    BEHIND = "behind"
    CLEAR = "clear"
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    REBASED = "rebased"
    CONFLICT = "conflict"
    ABORTED = "aborted"
    ERROR = "error"


class Effect(str, Enum):
    """Side effects the orchestrator applies, in order, after a transition."""

    RESTORE_STASH = "restore_stash"
    CLEAR_STATE = "clear_state"
    REPORT_SYNCED = "report_synced"
    REPORT_UP_TO_DATE = "report_up_to_date"
    REPORT_PAUSED = "report_paused"
    REPORT_STILL_CONFLICTED = "report_still_conflicted"
    REPORT_ABORTED = "report_aborted"
    REPORT_CANCELLED = "report_cancelled"


@dataclass(frozen=True)
class Transition:
    """Next phase plus the effects to apply on the way there."""

    phase: SyncPhase
    effects: tuple[Effect, ...] = ()


_ROLLBACK = (Effect.RESTORE_STASH, Effect.CLEAR_STATE)

_TRANSITIONS: dict[tuple[SyncPhase, SyncEvent], Transition] = {
    (SyncPhase.IDLE, SyncEvent.DIRTY): Transition(SyncPhase.STASHING),
    (SyncPhase.IDLE, SyncEvent.CLEAN): Transition(SyncPhase.STATE_SAVED),
    (SyncPhase.STASHING, SyncEvent.STASHED): Transition(SyncPhase.STATE_SAVED),
    (SyncPhase.STASHING, SyncEvent.ERROR): Transition(SyncPhase.FAILED),
    (SyncPhase.STATE_SAVED, SyncEvent.SAVED): Transition(SyncPhase.FETCHING),
    (SyncPhase.STATE_SAVED, SyncEvent.ERROR): Transition(
        SyncPhase.FAILED, (Effect.RESTORE_STASH,)
    ),
    (SyncPhase.FETCHING, SyncEvent.BEHIND): Transition(SyncPhase.CONFLICT_PREVIEW),
    (SyncPhase.FETCHING, SyncEvent.UP_TO_DATE): Transition(
        SyncPhase.RESOLVED, (*_ROLLBACK, Effect.REPORT_UP_TO_DATE)
    ),
    (SyncPhase.FETCHING, SyncEvent.ERROR): Transition(SyncPhase.FAILED, _ROLLBACK),
    (SyncPhase.CONFLICT_PREVIEW, SyncEvent.CLEAR): Transition(SyncPhase.REBASING),
    (SyncPhase.CONFLICT_PREVIEW, SyncEvent.CONFIRMED): Transition(SyncPhase.REBASING),
    (SyncPhase.CONFLICT_PREVIEW, SyncEvent.DECLINED): Transition(
        SyncPhase.CANCELLED, (*_ROLLBACK, Effect.REPORT_CANCELLED)
    ),
    (SyncPhase.REBASING, SyncEvent.REBASED): Transition(
        SyncPhase.RESOLVED, (*_ROLLBACK, Effect.REPORT_SYNCED)
    ),
    (SyncPhase.REBASING, SyncEvent.CONFLICT): Transition(
        SyncPhase.PAUSED, (Effect.REPORT_PAUSED,)
    ),
    (SyncPhase.REBASING, SyncEvent.ERROR): Transition(SyncPhase.FAILED, _ROLLBACK),
    (SyncPhase.CONTINUING, SyncEvent.REBASED): Transition(
        SyncPhase.RESOLVED, (*_ROLLBACK, Effect.REPORT_SYNCED)
    ),
    (SyncPhase.CONTINUING, SyncEvent.CONFLICT): Transition(
        SyncPhase.PAUSED, (Effect.REPORT_STILL_CONFLICTED,)
    ),
    # The rebase is still the user's to finish or abort; keep the record
    (SyncPhase.CONTINUING, SyncEvent.ERROR): Transition(SyncPhase.FAILED),
    (SyncPhase.ABORTING, SyncEvent.ABORTED): Transition(
        SyncPhase.ABORTED, (*_ROLLBACK, Effect.REPORT_ABORTED)
    ),
}


def transition(phase: SyncPhase, event: SyncEvent) -> Transition:
    """
    Compute the next phase and effects for an event.

    Args:
        phase: Current, non-terminal phase
        event: What happened while doing the phase's work

    Returns:
        Transition with the next phase and the effects to apply in order

    Raises:
        InvalidTransitionError: If the phase does not accept the event

    Example:
        >>> transition(SyncPhase.REBASING, SyncEvent.CONFLICT)
        Transition(phase=<SyncPhase.PAUSED: 'paused'>, effects=(<Effect.REPORT_PAUSED: ...>,))
    """
    try:
        return _TRANSITIONS[(phase, event)]
    except KeyError:
        raise InvalidTransitionError(
            f"No transition from {phase.value!r} on {event.value!r}"
        ) from None
