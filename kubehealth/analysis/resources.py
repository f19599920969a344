"""Container resource sizing analysis.

Compares observed usage against declared requests and limits for one
workload and produces a verdict plus reduce/increase recommendations.

Only the first declared container is analyzed.  Its usage sample is the
metrics entry with the same name, falling back to the first metrics entry.
Multi-container pods are therefore sized by their first container only.
"""

from __future__ import annotations

import math

import structlog

from kubehealth.analysis.quantity import format_cpu, format_memory, parse_quantity
from kubehealth.models.resources import (
    ContainerResources,
    PodMetricsData,
    PodResourceData,
    RecommendationType,
    ResourceAnalysis,
    ResourceMetrics,
    ResourceRecommendation,
    SizingStatus,
)

_log = structlog.get_logger(component="analysis.resources")

OVER_PROVISIONED_THRESHOLD = 0.3  # usage below 30% of request
UNDER_PROVISIONED_THRESHOLD = 0.8  # usage above 80% of limit
HEADROOM_MULTIPLIER = 1.5


def _ceil(value: float) -> int:
    # Round away binary float noise first: 0.1 * 1.5 * 1000 is 150.00000000000003.
    return math.ceil(round(value, 6))


def _quantity(values: dict[str, str], key: str) -> float | None:
    raw = values.get(key)
    return parse_quantity(raw) if raw else None


def _recommend(
    rec_type: RecommendationType,
    resource: str,
    container: ContainerResources,
    usage: float,
    reason: str,
) -> ResourceRecommendation:
    if resource == "cpu":
        suggested_cores = _ceil(usage * 1000 * HEADROOM_MULTIPLIER) / 1000
        suggested_request = format_cpu(suggested_cores)
        suggested_limit = format_cpu(suggested_cores * 2)
    else:
        suggested_bytes = _ceil(usage * HEADROOM_MULTIPLIER)
        suggested_request = format_memory(suggested_bytes)
        suggested_limit = format_memory(suggested_bytes * 2)
    return ResourceRecommendation(
        type=rec_type,
        resource=resource,
        container_name=container.name,
        reason=reason,
        current_request=container.requests.get(resource),
        current_limit=container.limits.get(resource),
        suggested_request=suggested_request,
        suggested_limit=suggested_limit,
    )


def analyze_resources(resources: PodResourceData, metrics: PodMetricsData) -> ResourceAnalysis:
    """Analyze one workload's first container against its usage sample.

    Never raises on missing data: no container or no usage sample yields an
    ``unknown`` verdict with a single warning.
    """
    container = resources.containers[0] if resources.containers else None
    container_metrics = None
    if container is not None:
        container_metrics = next((m for m in metrics.containers if m.name == container.name), None)
    if container_metrics is None and metrics.containers:
        container_metrics = metrics.containers[0]

    if container is None or container_metrics is None:
        _log.debug("resource_analysis_no_data", pod=resources.name)
        return ResourceAnalysis(
            pod_name=resources.name,
            container_name=container.name if container is not None else "unknown",
            status=SizingStatus.UNKNOWN,
            warnings=["Could not find container data"],
        )

    cpu_usage = parse_quantity(container_metrics.usage.get("cpu", "0"))
    memory_usage = parse_quantity(container_metrics.usage.get("memory", "0"))

    cpu_request = _quantity(container.requests, "cpu")
    cpu_limit = _quantity(container.limits, "cpu")
    memory_request = _quantity(container.requests, "memory")
    memory_limit = _quantity(container.limits, "memory")

    warnings: list[str] = []
    if not cpu_request:
        warnings.append(f'Container "{container.name}" has no CPU request set')
    if not memory_request:
        warnings.append(f'Container "{container.name}" has no memory request set')
    if not cpu_limit:
        warnings.append(f'Container "{container.name}" has no CPU limit set')
    if not memory_limit:
        warnings.append(f'Container "{container.name}" has no memory limit set')

    status = SizingStatus.RIGHT_SIZED
    recommendations: list[ResourceRecommendation] = []

    if cpu_request and cpu_usage / cpu_request < OVER_PROVISIONED_THRESHOLD:
        status = SizingStatus.OVER_PROVISIONED
        recommendations.append(
            _recommend(
                RecommendationType.REDUCE,
                "cpu",
                container,
                cpu_usage,
                f"Using only {format_cpu(cpu_usage)} of {container.requests['cpu']} requested",
            )
        )
    elif cpu_limit and cpu_usage / cpu_limit > UNDER_PROVISIONED_THRESHOLD:
        status = SizingStatus.UNDER_PROVISIONED
        recommendations.append(
            _recommend(
                RecommendationType.INCREASE,
                "cpu",
                container,
                cpu_usage,
                f"Using {format_cpu(cpu_usage)} which is {round(cpu_usage / cpu_limit * 100)}% of limit",
            )
        )

    # Memory is evaluated second: over-provisioning only fills a right-sized
    # verdict, under-provisioning always wins.
    if memory_request and memory_usage / memory_request < OVER_PROVISIONED_THRESHOLD:
        if status == SizingStatus.RIGHT_SIZED:
            status = SizingStatus.OVER_PROVISIONED
        recommendations.append(
            _recommend(
                RecommendationType.REDUCE,
                "memory",
                container,
                memory_usage,
                f"Using only {format_memory(memory_usage)} of {container.requests['memory']} requested",
            )
        )
    elif memory_limit and memory_usage / memory_limit > UNDER_PROVISIONED_THRESHOLD:
        status = SizingStatus.UNDER_PROVISIONED
        recommendations.append(
            _recommend(
                RecommendationType.INCREASE,
                "memory",
                container,
                memory_usage,
                f"Using {format_memory(memory_usage)} which is {round(memory_usage / memory_limit * 100)}% of limit",
            )
        )

    _log.debug(
        "resource_analysis_complete",
        pod=resources.name,
        container=container.name,
        status=status.value,
        recommendations=len(recommendations),
    )

    return ResourceAnalysis(
        pod_name=resources.name,
        container_name=container.name,
        status=status,
        recommendations=recommendations,
        warnings=warnings,
        metrics=ResourceMetrics(
            cpu_usage=cpu_usage,
            memory_usage=memory_usage,
            cpu_request=cpu_request,
            cpu_limit=cpu_limit,
            memory_request=memory_request,
            memory_limit=memory_limit,
        ),
    )


def format_recommendation(rec: ResourceRecommendation) -> str:
    """Render a recommendation as a short multi-line text block."""
    action = {
        RecommendationType.INCREASE: "Increase",
        RecommendationType.REDUCE: "Reduce",
        RecommendationType.ADD: "Add",
    }[rec.type]
    text = f'{action} {rec.resource} for container "{rec.container_name}": {rec.reason}'
    if rec.suggested_request:
        text += f"\n  Suggested request: {rec.suggested_request}"
    if rec.suggested_limit:
        text += f"\n  Suggested limit: {rec.suggested_limit}"
    return text
