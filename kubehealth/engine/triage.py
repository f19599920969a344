"""Triage phase: a broad, low-cost scan of pods, nodes and events.

Produces the issue list, the healthy-pod list, the aggregate node status,
a summary of recent warning events, and the deep-dive decision.

Pod findings are grouped per (reason, owning workload) so that three
crash-looping replicas of one Deployment become one issue listing three
pods.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any

import structlog

from kubehealth.cluster.base import ClusterClient
from kubehealth.models.config import TriageConfig
from kubehealth.models.diagnosis import (
    DiagnosticIssue,
    EventSummary,
    IssueSeverity,
    NodeStatus,
    ResourceRef,
    SessionState,
)

_log = structlog.get_logger(component="engine.triage")

CRITICAL_WAITING_REASONS = frozenset(
    {
        "CrashLoopBackOff",
        "ImagePullBackOff",
        "ErrImagePull",
        "CreateContainerConfigError",
        "InvalidImageName",
    }
)

_PRESSURE_CONDITIONS = ("MemoryPressure", "DiskPressure", "PIDPressure")

# ReplicaSet names are "<deployment>-<pod-template-hash>"; the hash uses a
# vowel-free alphabet so ordinary name segments rarely match.
_RS_HASH_RE = re.compile(r"^(?P<deployment>.+)-[bcdfghjklmnpqrstvwxz2456789]{5,10}$")

_DESCRIPTIONS: dict[str, str] = {
    "CrashLoopBackOff": "Container {container} keeps crashing and Kubernetes is backing off restarts.",
    "ImagePullBackOff": "Container {container} cannot start because its image cannot be pulled.",
    "ErrImagePull": "Container {container} cannot start because its image cannot be pulled.",
    "CreateContainerConfigError": "Container {container} cannot be created because its configuration is invalid.",
    "InvalidImageName": "Container {container} references an invalid image name.",
    "OOMKilled": "Container {container} was killed for exceeding its memory limit.",
    "Failed": "The pod terminated in the Failed phase.",
    "Pending": "The pod has not been scheduled or its containers have not started.",
    "HighRestartCount": "Container {container} has restarted {restarts} times.",
    "NotReady": "Container {container} is running but failing its readiness check.",
}

_NEXT_STEPS: dict[str, list[str]] = {
    "CrashLoopBackOff": [
        "Inspect the previous container logs for the crash cause",
        "Check recent changes to the image, command, or configuration",
    ],
    "ImagePullBackOff": [
        "Verify the image name and tag exist in the registry",
        "Check imagePullSecrets and registry credentials",
    ],
    "ErrImagePull": [
        "Verify the image name and tag exist in the registry",
        "Check imagePullSecrets and registry credentials",
    ],
    "CreateContainerConfigError": [
        "Verify referenced ConfigMaps and Secrets exist",
        "Check environment variable and volume references",
    ],
    "InvalidImageName": ["Fix the image reference in the workload spec"],
    "OOMKilled": [
        "Compare memory usage with the container's memory limit",
        "Raise the memory limit or reduce the application's memory footprint",
    ],
    "Failed": ["Inspect the pod's container exit codes and logs"],
    "Pending": [
        "Check scheduling events for insufficient resources, taints, or affinity rules",
        "Verify PersistentVolumeClaims are bound",
    ],
    "HighRestartCount": [
        "Inspect the previous container logs",
        "Check liveness probe configuration and resource limits",
    ],
    "NotReady": [
        "Check the readiness probe configuration",
        "Verify the application's dependencies are reachable",
    ],
}

_LOG_REASONS = frozenset({"CrashLoopBackOff", "OOMKilled", "HighRestartCount", "Failed", "NotReady"})


@dataclass
class PodFinding:
    reason: str
    severity: IssueSeverity
    container: str
    message: str = ""
    restarts: int = 0


@dataclass
class _WorkloadGroup:
    reason: str
    severity: IssueSeverity
    kind: str
    name: str
    findings: list[tuple[str, PodFinding]] = field(default_factory=list)


def _container_statuses(pod: dict[str, Any]) -> list[dict[str, Any]]:
    return list((pod.get("status") or {}).get("containerStatuses") or [])


def classify_pod(pod: dict[str, Any], restart_threshold: int) -> PodFinding | None:
    """Return the most severe finding for *pod*, or None if it is healthy."""
    status = pod.get("status") or {}
    pod_phase = status.get("phase", "")
    if pod_phase == "Succeeded":
        return None

    statuses = _container_statuses(pod)
    spec_containers = (pod.get("spec") or {}).get("containers") or [{}]
    default_container = statuses[0].get("name", "") if statuses else spec_containers[0].get("name", "")

    for cs in statuses:
        waiting = (cs.get("state") or {}).get("waiting") or {}
        if waiting.get("reason") in CRITICAL_WAITING_REASONS:
            return PodFinding(
                reason=waiting["reason"],
                severity=IssueSeverity.CRITICAL,
                container=cs.get("name", ""),
                message=waiting.get("message", ""),
                restarts=int(cs.get("restartCount") or 0),
            )

    for cs in statuses:
        terminated = (cs.get("state") or {}).get("terminated") or {}
        last_terminated = (cs.get("lastState") or {}).get("terminated") or {}
        if "OOMKilled" in (terminated.get("reason"), last_terminated.get("reason")):
            return PodFinding(
                reason="OOMKilled",
                severity=IssueSeverity.CRITICAL,
                container=cs.get("name", ""),
                message=f"exit code {(terminated or last_terminated).get('exitCode', 137)}",
                restarts=int(cs.get("restartCount") or 0),
            )

    if pod_phase == "Failed":
        return PodFinding(
            reason="Failed",
            severity=IssueSeverity.CRITICAL,
            container=default_container,
            message=status.get("message") or status.get("reason") or "",
        )

    if pod_phase == "Pending":
        message = ""
        for cond in status.get("conditions") or []:
            if cond.get("type") == "PodScheduled" and cond.get("status") == "False":
                message = cond.get("message") or cond.get("reason") or ""
        return PodFinding(
            reason="Pending",
            severity=IssueSeverity.WARNING,
            container=default_container,
            message=message,
        )

    for cs in statuses:
        restarts = int(cs.get("restartCount") or 0)
        if restarts >= restart_threshold:
            return PodFinding(
                reason="HighRestartCount",
                severity=IssueSeverity.WARNING,
                container=cs.get("name", ""),
                restarts=restarts,
            )

    if pod_phase == "Running":
        for cs in statuses:
            if not cs.get("ready", False):
                return PodFinding(
                    reason="NotReady",
                    severity=IssueSeverity.WARNING,
                    container=cs.get("name", ""),
                    restarts=int(cs.get("restartCount") or 0),
                )

    return None


def owning_workload(pod: dict[str, Any]) -> tuple[str, str]:
    """Return ``(kind, name)`` of the workload that owns *pod*."""
    metadata = pod.get("metadata") or {}
    owners = metadata.get("ownerReferences") or []
    if not owners:
        return "Pod", metadata.get("name", "")
    owner = owners[0]
    kind, name = owner.get("kind", ""), owner.get("name", "")
    if kind == "ReplicaSet":
        labels = metadata.get("labels") or {}
        pod_hash = labels.get("pod-template-hash")
        if pod_hash and name.endswith(f"-{pod_hash}"):
            return "Deployment", name[: -len(pod_hash) - 1]
        match = _RS_HASH_RE.match(name)
        if match:
            return "Deployment", match.group("deployment")
    return kind, name


def _build_issue(namespace: str, group: _WorkloadGroup) -> DiagnosticIssue:
    pods = [pod for pod, _ in group.findings]
    first_pod, first = group.findings[0]
    label = f"{group.kind}/{group.name}"
    title = f"{group.reason}: {label}"
    if len(pods) > 1:
        title += f" ({len(pods)} pods)"

    description = _DESCRIPTIONS.get(group.reason, "{reason} detected.").format(
        container=first.container or "<unknown>",
        restarts=first.restarts,
        reason=group.reason,
    )
    if first.message:
        description += f"\n\nLast message: {first.message}"

    commands = [f"kubectl describe pod {first_pod} -n {namespace}"]
    if group.reason in _LOG_REASONS:
        previous = " --previous" if first.restarts > 0 else ""
        container = f" -c {first.container}" if first.container else ""
        commands.append(f"kubectl logs {first_pod} -n {namespace}{container}{previous}")
    if group.reason == "Pending":
        commands.append(f"kubectl get events -n {namespace} --field-selector involvedObject.name={first_pod}")
    if group.kind != "Pod":
        commands.append(f"kubectl get {group.kind.lower()} {group.name} -n {namespace} -o yaml")

    return DiagnosticIssue(
        severity=group.severity,
        title=title,
        description=description,
        resource=ResourceRef(kind=group.kind, name=group.name, namespace=namespace),
        affected_pods=pods,
        suggested_commands=commands,
        next_steps=list(_NEXT_STEPS.get(group.reason, [])) or None,
    )


def _assess_nodes(nodes: list[dict[str, Any]]) -> tuple[NodeStatus, list[DiagnosticIssue]]:
    if not nodes:
        return NodeStatus.UNKNOWN, []

    issues: list[DiagnosticIssue] = []
    for node in nodes:
        name = (node.get("metadata") or {}).get("name", "")
        conditions = {c.get("type"): c for c in (node.get("status") or {}).get("conditions") or []}
        ready = conditions.get("Ready", {})
        if ready.get("status") != "True":
            issues.append(
                DiagnosticIssue(
                    severity=IssueSeverity.CRITICAL,
                    title=f"NodeNotReady: Node/{name}",
                    description=f"Node {name} is not Ready. {ready.get('message', '')}".strip(),
                    resource=ResourceRef(kind="Node", name=name),
                    suggested_commands=[f"kubectl describe node {name}"],
                    next_steps=["Check kubelet health and node connectivity"],
                )
            )
            continue
        pressures = [p for p in _PRESSURE_CONDITIONS if conditions.get(p, {}).get("status") == "True"]
        if pressures:
            issues.append(
                DiagnosticIssue(
                    severity=IssueSeverity.WARNING,
                    title=f"NodePressure: Node/{name}",
                    description=f"Node {name} reports {', '.join(pressures)}.",
                    resource=ResourceRef(kind="Node", name=name),
                    suggested_commands=[f"kubectl describe node {name}", f"kubectl top node {name}"],
                    next_steps=["Free node resources or move workloads to other nodes"],
                )
            )

    return (NodeStatus.UNHEALTHY if issues else NodeStatus.HEALTHY), issues


def _event_time(event: dict[str, Any]) -> str:
    metadata = event.get("metadata") or {}
    return str(
        event.get("lastTimestamp") or event.get("eventTime") or metadata.get("creationTimestamp") or ""
    )


def summarize_events(events: list[dict[str, Any]], limit: int) -> list[EventSummary]:
    """Return the most recent Warning events, newest first."""
    warnings = [e for e in events if e.get("type") == "Warning"]
    warnings.sort(key=_event_time, reverse=True)
    return [
        EventSummary(type=e.get("type", ""), reason=e.get("reason", ""), message=e.get("message", ""))
        for e in warnings[:limit]
    ]


async def run_triage(
    state: SessionState,
    cluster: ClusterClient,
    config: TriageConfig,
    deep_dive_enabled: bool = True,
) -> SessionState:
    """Scan the namespace and return the state with triage fields set."""
    namespace = state.namespace
    pods = await cluster.list_pods(namespace)
    nodes = await cluster.list_nodes()
    events = await cluster.list_events(namespace)

    groups: dict[tuple[str, str, str], _WorkloadGroup] = {}
    healthy_pods: list[str] = []
    for pod in pods:
        pod_name = (pod.get("metadata") or {}).get("name", "")
        finding = classify_pod(pod, config.restart_threshold)
        if finding is None:
            healthy_pods.append(pod_name)
            continue
        kind, name = owning_workload(pod)
        group = groups.setdefault(
            (finding.reason, kind, name),
            _WorkloadGroup(reason=finding.reason, severity=finding.severity, kind=kind, name=name),
        )
        group.findings.append((pod_name, finding))

    issues = [_build_issue(namespace, group) for group in groups.values()]
    node_status, node_issues = _assess_nodes(nodes)
    issues.extend(node_issues)

    needs_deep_dive = deep_dive_enabled and any(
        i.severity in (IssueSeverity.CRITICAL, IssueSeverity.WARNING) and i.affected_pods for i in issues
    )

    _log.info(
        "triage_complete",
        pods=len(pods),
        issues=len(issues),
        healthy_pods=len(healthy_pods),
        node_status=node_status.value,
        needs_deep_dive=needs_deep_dive,
    )

    return replace(
        state,
        issues=issues,
        healthy_pods=healthy_pods,
        node_status=node_status,
        events_summary=summarize_events(events, config.max_events),
        needs_deep_dive=needs_deep_dive,
    )
