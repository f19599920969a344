"""Final diagnostic report data structures."""

from __future__ import annotations

from dataclasses import dataclass, field

from kubehealth.models.diagnosis import DiagnosticIssue


@dataclass(frozen=True)
class HealthyResource:
    kind: str
    name: str
    status: str


@dataclass
class DiagnosticReport:
    """Output of the summary phase.

    ``issues`` are already collapsed by the report aggregator.
    ``llm_analysis`` is None when no language model was configured or the
    model call failed.
    """

    namespace: str
    timestamp: str  # ISO-8601 UTC
    summary: str
    issues: list[DiagnosticIssue] = field(default_factory=list)
    healthy_resources: list[HealthyResource] = field(default_factory=list)
    deep_dive_findings: list[str] = field(default_factory=list)
    llm_analysis: str | None = None
