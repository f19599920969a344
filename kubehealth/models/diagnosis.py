"""Diagnostic session data structures and enumerations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class Phase(StrEnum):
    """Phase of a diagnostic session, in execution order."""

    TRIAGE = "triage"
    DEEP_DIVE = "deep_dive"
    SUMMARY = "summary"


class NodeStatus(StrEnum):
    """Aggregate health of the cluster's nodes."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


class IssueSeverity(StrEnum):
    """Severity of a diagnostic issue."""

    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


# Report sections are rendered in this order.
SEVERITY_ORDER: tuple[IssueSeverity, ...] = (
    IssueSeverity.CRITICAL,
    IssueSeverity.WARNING,
    IssueSeverity.INFO,
)


@dataclass(frozen=True)
class ResourceRef:
    """The Kubernetes resource an issue is attached to."""

    kind: str
    name: str
    namespace: str | None = None


@dataclass(frozen=True)
class DiagnosticIssue:
    """One detected problem.

    Titles follow ``"<Reason>: <ResourceLabel>"``; the reason is the text
    before the first colon and is what the report aggregator groups on.
    Immutable: aggregation builds new issues instead of editing these.
    """

    severity: IssueSeverity
    title: str
    description: str
    resource: ResourceRef
    affected_pods: list[str] | None = None
    suggested_commands: list[str] | None = None
    next_steps: list[str] | None = None


@dataclass(frozen=True)
class EventSummary:
    """A namespace event recorded during triage."""

    type: str
    reason: str
    message: str


@dataclass
class SessionState:
    """Working state of one diagnostic session.

    ``namespace`` is fixed for the life of the session.  ``phase`` is the
    phase to run next, or ``summary`` once the run has finished.
    """

    namespace: str
    phase: Phase = Phase.TRIAGE
    issues: list[DiagnosticIssue] = field(default_factory=list)
    healthy_pods: list[str] = field(default_factory=list)
    node_status: NodeStatus = NodeStatus.UNKNOWN
    events_summary: list[EventSummary] = field(default_factory=list)
    deep_dive_findings: list[str] = field(default_factory=list)
    needs_deep_dive: bool = False


@dataclass
class TriageResult:
    """Triage output as persisted in a checkpoint."""

    issues: list[DiagnosticIssue] = field(default_factory=list)
    healthy_pods: list[str] = field(default_factory=list)
    node_status: NodeStatus = NodeStatus.UNKNOWN
    events_summary: list[EventSummary] = field(default_factory=list)


@dataclass
class CheckpointMetadata:
    """Control-flow fields persisted alongside triage output."""

    needs_deep_dive: bool = False
    phase: Phase = Phase.TRIAGE


@dataclass
class CheckpointRecord:
    """Durable projection of a SessionState.

    One record exists per session id and is replaced in full on every save.
    """

    namespace: str
    timestamp: str  # ISO-8601 UTC
    triage_result: TriageResult | None = None
    deep_dive_findings: list[str] | None = None
    metadata: CheckpointMetadata | None = None
