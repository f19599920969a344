"""Diagnostic engine: drives a session through its phases with checkpointing.

A checkpoint is written before every phase, recording the phase about to
run, and once more when the run finishes.  If a phase fails, the latest
checkpoint still names that phase, so ``resume`` re-enters it with the state
it started from.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog

from kubehealth.cluster.base import ClusterClient
from kubehealth.engine.deep_dive import run_deep_dive
from kubehealth.engine.phases import PhaseError, advance, next_phase
from kubehealth.engine.summary import run_summary
from kubehealth.engine.triage import run_triage
from kubehealth.llm.analyzer import LLMAnalyzer
from kubehealth.models.config import KubeHealthConfig
from kubehealth.models.diagnosis import Phase, SessionState
from kubehealth.models.report import DiagnosticReport
from kubehealth.persistence.checkpointer import (
    FileCheckpointer,
    record_to_state,
    state_to_record,
    validate_session_id,
)

_log = structlog.get_logger(component="engine.runner")


class SessionNotFoundError(Exception):
    """Raised when resuming a session id that has no checkpoint."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"No checkpoint found for session '{session_id}'")
        self.session_id = session_id


@dataclass
class DiagnosticOutcome:
    """Result of a completed run."""

    session_id: str
    state: SessionState
    report: DiagnosticReport


def new_session_id(namespace: str) -> str:
    """Return a fresh session id such as ``payments-20250101-120000-a1b2c3``."""
    stamp = datetime.now(tz=UTC).strftime("%Y%m%d-%H%M%S")
    return f"{namespace}-{stamp}-{uuid.uuid4().hex[:6]}"


class DiagnosticEngine:
    """Runs triage, the optional deep dive and summary for one namespace.

    The engine owns the session state for the duration of a run; the
    checkpointer owns everything on disk.
    """

    def __init__(
        self,
        cluster: ClusterClient,
        checkpointer: FileCheckpointer,
        config: KubeHealthConfig,
        llm: LLMAnalyzer | None = None,
    ) -> None:
        self._cluster = cluster
        self._checkpointer = checkpointer
        self._config = config
        self._llm = llm

    def _checkpoint(self, session_id: str, state: SessionState) -> None:
        self._checkpointer.save(session_id, state_to_record(state))
        _log.debug("checkpoint_written", phase=state.phase.value)

    async def _run_phase(self, phase: Phase, state: SessionState) -> tuple[SessionState, DiagnosticReport | None]:
        match phase:
            case Phase.TRIAGE:
                state = await run_triage(
                    state,
                    self._cluster,
                    self._config.triage,
                    deep_dive_enabled=self._config.deep_dive.enabled,
                )
            case Phase.DEEP_DIVE:
                if not state.needs_deep_dive:
                    _log.info("deep_dive_skipped", reason="not needed")
                    return state, None
                state = await run_deep_dive(state, self._cluster, self._config.deep_dive)
            case Phase.SUMMARY:
                return state, await run_summary(state, self._llm)
        return state, None

    async def run(self, state: SessionState, session_id: str) -> DiagnosticOutcome:
        """Run *state* from its current phase to the end.

        Raises:
            PhaseError: if a phase fails; the checkpoint names the failed phase.
        """
        validate_session_id(session_id)
        report: DiagnosticReport | None = None
        phase: Phase | None = state.phase

        with structlog.contextvars.bound_contextvars(session_id=session_id, namespace=state.namespace):
            while phase is not None:
                state = advance(state, phase)
                self._checkpoint(session_id, state)
                _log.info("phase_started", phase=phase.value)
                try:
                    state, phase_report = await self._run_phase(phase, state)
                except Exception as exc:
                    _log.error("phase_failed", phase=phase.value, error=str(exc))
                    raise PhaseError(phase, exc) from exc
                if phase_report is not None:
                    report = phase_report
                phase = next_phase(phase, state)

            self._checkpoint(session_id, state)
            _log.info("diagnosis_complete", issues=len(state.issues))

        if report is None:
            raise RuntimeError(f"Session '{session_id}' finished without a report")
        return DiagnosticOutcome(session_id=session_id, state=state, report=report)

    async def start(self, namespace: str, session_id: str | None = None) -> DiagnosticOutcome:
        """Run a fresh session for *namespace*."""
        session_id = validate_session_id(session_id) if session_id else new_session_id(namespace)
        _log.info("session_started", session_id=session_id, namespace=namespace)
        return await self.run(SessionState(namespace=namespace), session_id)

    async def resume(self, session_id: str) -> DiagnosticOutcome:
        """Re-enter *session_id* at its recorded phase.

        Raises:
            SessionNotFoundError: if the session has no readable checkpoint.
        """
        record = self._checkpointer.load(session_id)
        if record is None:
            raise SessionNotFoundError(session_id)
        state = record_to_state(record)
        _log.info("session_resumed", session_id=session_id, namespace=state.namespace, phase=state.phase.value)
        return await self.run(state, session_id)
