"""Phase transition function and phase-level errors.

The session moves through a fixed graph::

    triage --(needs_deep_dive)--> deep_dive --> summary --> (end)
       \\-----(otherwise)-------------------> summary

``next_phase`` is the only place this graph is encoded.
"""

from __future__ import annotations

from dataclasses import replace

from kubehealth.models.diagnosis import Phase, SessionState

PHASE_ORDER: dict[Phase, int] = {
    Phase.TRIAGE: 0,
    Phase.DEEP_DIVE: 1,
    Phase.SUMMARY: 2,
}


class PhaseError(Exception):
    """Raised when a phase fails because a collaborator call failed."""

    def __init__(self, phase: Phase, cause: Exception) -> None:
        super().__init__(f"Phase '{phase}' failed: {cause}")
        self.phase = phase
        self.cause = cause


def next_phase(phase: Phase, state: SessionState) -> Phase | None:
    """Return the phase that follows *phase*, or None after summary."""
    match phase:
        case Phase.TRIAGE:
            return Phase.DEEP_DIVE if state.needs_deep_dive else Phase.SUMMARY
        case Phase.DEEP_DIVE:
            return Phase.SUMMARY
        case Phase.SUMMARY:
            return None


def advance(state: SessionState, phase: Phase) -> SessionState:
    """Return a copy of *state* positioned at *phase*.

    Raises:
        ValueError: if *phase* precedes the state's current phase.
    """
    if PHASE_ORDER[phase] < PHASE_ORDER[state.phase]:
        raise ValueError(f"Cannot move session from phase '{state.phase}' back to '{phase}'")
    if phase == state.phase:
        return state
    return replace(state, phase=phase)
