"""Phase state machine: triage, deep dive and summary."""

from kubehealth.engine.deep_dive import run_deep_dive
from kubehealth.engine.phases import PHASE_ORDER, PhaseError, advance, next_phase
from kubehealth.engine.runner import (
    DiagnosticEngine,
    DiagnosticOutcome,
    SessionNotFoundError,
    new_session_id,
)
from kubehealth.engine.summary import run_summary
from kubehealth.engine.triage import run_triage

__all__ = [
    "PHASE_ORDER",
    "DiagnosticEngine",
    "DiagnosticOutcome",
    "PhaseError",
    "SessionNotFoundError",
    "advance",
    "new_session_id",
    "next_phase",
    "run_deep_dive",
    "run_summary",
    "run_triage",
]
