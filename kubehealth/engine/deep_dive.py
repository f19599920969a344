"""Deep-dive phase: targeted investigation of the issues found by triage.

For each critical or warning issue with affected pods, the first affected
pod is inspected: the tail of its container log is scanned for error lines
and, for resource-related reasons, its usage is compared with its requests
and limits.  The phase only appends to ``deep_dive_findings``.
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Any

import structlog

from kubehealth.analysis.resources import analyze_resources, format_recommendation
from kubehealth.cluster.base import ClusterClient
from kubehealth.models.config import DeepDiveConfig
from kubehealth.models.diagnosis import DiagnosticIssue, IssueSeverity, SessionState
from kubehealth.models.resources import (
    ContainerMetrics,
    ContainerResources,
    PodMetricsData,
    PodResourceData,
)
from kubehealth.report.aggregation import extract_reason

_log = structlog.get_logger(component="engine.deep_dive")

_ERROR_LINE_RE = re.compile(
    r"\b(error|exception|fatal|panic|traceback|fail(?:ed|ure)?|refused|denied|timed? ?out|killed)\b",
    re.IGNORECASE,
)

# Containers in these states never started, so there is no log to read.
_NO_LOG_REASONS = frozenset(
    {"ImagePullBackOff", "ErrImagePull", "CreateContainerConfigError", "InvalidImageName", "Pending"}
)
_PREVIOUS_LOG_REASONS = frozenset({"CrashLoopBackOff", "OOMKilled", "HighRestartCount"})
_RESOURCE_REASONS = frozenset({"OOMKilled", "HighRestartCount", "NotReady"})

_FALLBACK_TAIL = 5


def extract_error_lines(log_text: str, limit: int) -> list[str]:
    """Return up to *limit* error-looking lines, latest last.

    Falls back to the last few lines when nothing matches.
    """
    lines = [line.rstrip() for line in log_text.splitlines() if line.strip()]
    matches = [line for line in lines if _ERROR_LINE_RE.search(line)]
    return (matches or lines[-_FALLBACK_TAIL:])[-limit:]


def _problem_container(pod: dict[str, Any]) -> tuple[str | None, int]:
    """Return the first not-ready container and its restart count."""
    statuses = (pod.get("status") or {}).get("containerStatuses") or []
    for cs in statuses:
        if not cs.get("ready", False):
            return cs.get("name"), int(cs.get("restartCount") or 0)
    if statuses:
        return statuses[0].get("name"), int(statuses[0].get("restartCount") or 0)
    containers = (pod.get("spec") or {}).get("containers") or []
    return (containers[0].get("name") if containers else None), 0


def pod_resource_data(pod: dict[str, Any]) -> PodResourceData:
    """Build PodResourceData from a pod's spec."""
    containers = []
    for c in (pod.get("spec") or {}).get("containers") or []:
        resources = c.get("resources") or {}
        containers.append(
            ContainerResources(
                name=c.get("name", ""),
                requests=dict(resources.get("requests") or {}),
                limits=dict(resources.get("limits") or {}),
            )
        )
    return PodResourceData(name=(pod.get("metadata") or {}).get("name", ""), containers=containers)


def pod_metrics_data(pod_name: str, metrics: dict[str, Any] | None) -> PodMetricsData:
    """Build PodMetricsData from a metrics.k8s.io PodMetrics object."""
    if not metrics:
        return PodMetricsData(name=pod_name)
    return PodMetricsData(
        name=pod_name,
        containers=[
            ContainerMetrics(name=c.get("name", ""), usage=dict(c.get("usage") or {}))
            for c in metrics.get("containers") or []
        ],
    )


async def _log_finding(
    cluster: ClusterClient,
    namespace: str,
    reason: str,
    pod_name: str,
    pod: dict[str, Any],
    config: DeepDiveConfig,
) -> str:
    container, restarts = _problem_container(pod)
    previous = reason in _PREVIOUS_LOG_REASONS and restarts > 0
    log_text = await cluster.read_pod_log(
        namespace,
        pod_name,
        container=container,
        tail_lines=config.log_tail_lines,
        previous=previous,
    )
    source = "previous container logs" if previous else "container logs"
    header = f"{reason} in pod {pod_name} (container {container or '<unknown>'}), {source}:"
    lines = extract_error_lines(log_text, config.max_error_lines)
    if not lines:
        return f"{header}\n  (no log output)"
    return "\n".join([header, *(f"  {line}" for line in lines)])


async def _resource_finding(cluster: ClusterClient, namespace: str, pod_name: str, pod: dict[str, Any]) -> str:
    metrics = await cluster.get_pod_metrics(namespace, pod_name)
    analysis = analyze_resources(pod_resource_data(pod), pod_metrics_data(pod_name, metrics))
    lines = [f"Resource analysis for pod {pod_name} (container {analysis.container_name}): {analysis.status}"]
    lines.extend(f"  Warning: {w}" for w in analysis.warnings)
    for rec in analysis.recommendations:
        lines.extend(f"  {line}" for line in format_recommendation(rec).splitlines())
    return "\n".join(lines)


def _needs_investigation(issue: DiagnosticIssue) -> bool:
    return issue.severity in (IssueSeverity.CRITICAL, IssueSeverity.WARNING) and bool(issue.affected_pods)


async def run_deep_dive(state: SessionState, cluster: ClusterClient, config: DeepDiveConfig) -> SessionState:
    """Investigate triage issues and return the state with findings appended."""
    targets = [i for i in state.issues if _needs_investigation(i)]
    if not targets:
        return state

    pods = {(p.get("metadata") or {}).get("name", ""): p for p in await cluster.list_pods(state.namespace)}

    findings: list[str] = []
    for issue in targets:
        reason = extract_reason(issue.title)
        pod_name = (issue.affected_pods or [])[0]
        pod = pods.get(pod_name)
        if pod is None:
            findings.append(f"{reason}: pod {pod_name} no longer exists; it may have been rescheduled.")
            continue
        if reason not in _NO_LOG_REASONS:
            findings.append(await _log_finding(cluster, state.namespace, reason, pod_name, pod, config))
        if reason in _RESOURCE_REASONS:
            findings.append(await _resource_finding(cluster, state.namespace, pod_name, pod))

    _log.info("deep_dive_complete", investigated=len(targets), findings=len(findings))
    return replace(state, deep_dive_findings=[*state.deep_dive_findings, *findings])
