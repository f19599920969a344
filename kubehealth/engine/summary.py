"""Summary phase: build the DiagnosticReport from the session state."""

from __future__ import annotations

from datetime import UTC, datetime

import structlog

from kubehealth.llm.analyzer import LLMAnalyzer
from kubehealth.llm.prompts import USER_PROMPT_TEMPLATE
from kubehealth.models.diagnosis import IssueSeverity, SessionState
from kubehealth.models.report import DiagnosticReport, HealthyResource
from kubehealth.report.aggregation import collapse_repeated_issues

_log = structlog.get_logger(component="engine.summary")


def _utcnow_iso() -> str:
    """Return the current UTC time as an ISO-8601 string with milliseconds."""
    now = datetime.now(tz=UTC)
    return now.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def summary_line(state: SessionState) -> str:
    """One-line overview: issue counts, healthy pods and node status."""
    critical = sum(1 for i in state.issues if i.severity == IssueSeverity.CRITICAL)
    warnings = sum(1 for i in state.issues if i.severity == IssueSeverity.WARNING)
    return (
        f"{_plural(critical, 'critical issue')}, {_plural(warnings, 'warning')}, "
        f"{_plural(len(state.healthy_pods), 'healthy pod')}; node status: {state.node_status}"
    )


def build_prompt(state: SessionState) -> str:
    """Fill the analysis prompt from triage and deep-dive output."""
    issues = collapse_repeated_issues(state.issues)
    formatted_issues = "\n".join(
        f"- [{i.severity.upper()}] {i.title}: {i.description.splitlines()[0] if i.description else ''}"
        for i in issues
    )
    formatted_events = "\n".join(f"- {e.reason}: {e.message}" for e in state.events_summary)
    return USER_PROMPT_TEMPLATE.format(
        namespace=state.namespace,
        node_status=state.node_status,
        formatted_issues=formatted_issues or "None",
        formatted_events=formatted_events or "None",
        formatted_findings="\n\n".join(state.deep_dive_findings) or "None",
        healthy_pods=", ".join(state.healthy_pods) or "None",
    )


async def run_summary(state: SessionState, llm: LLMAnalyzer | None = None) -> DiagnosticReport:
    """Aggregate issues and, when a model is configured, attach its analysis.

    A model failure leaves ``llm_analysis`` as None; it never fails the phase.
    """
    llm_analysis: str | None = None
    if llm is not None and state.issues:
        try:
            result = await llm.analyze(build_prompt(state))
        except Exception as exc:
            _log.warning("llm_analysis_failed", error=str(exc))
        else:
            if result.success:
                llm_analysis = result.text
            else:
                _log.warning("llm_analysis_failed", error=result.error, retries=result.retries_used)

    report = DiagnosticReport(
        namespace=state.namespace,
        timestamp=_utcnow_iso(),
        summary=summary_line(state),
        issues=collapse_repeated_issues(state.issues),
        healthy_resources=[HealthyResource(kind="Pod", name=name, status="Healthy") for name in state.healthy_pods],
        deep_dive_findings=list(state.deep_dive_findings),
        llm_analysis=llm_analysis,
    )
    _log.info("summary_complete", issues=len(report.issues), llm_analysis=llm_analysis is not None)
    return report
