"""Container resource sizing data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class SizingStatus(StrEnum):
    """Verdict of a resource analysis."""

    RIGHT_SIZED = "right-sized"
    OVER_PROVISIONED = "over-provisioned"
    UNDER_PROVISIONED = "under-provisioned"
    UNKNOWN = "unknown"


class RecommendationType(StrEnum):
    """Direction of a sizing recommendation."""

    INCREASE = "increase"
    REDUCE = "reduce"
    ADD = "add"


@dataclass
class ContainerResources:
    """Declared requests and limits of one container.

    Both maps use the Kubernetes keys ``cpu`` and ``memory`` with quantity
    strings as values (e.g. ``{"cpu": "250m", "memory": "256Mi"}``).
    """

    name: str
    requests: dict[str, str] = field(default_factory=dict)
    limits: dict[str, str] = field(default_factory=dict)


@dataclass
class ContainerMetrics:
    """Observed usage of one container, as reported by metrics-server."""

    name: str
    usage: dict[str, str] = field(default_factory=dict)


@dataclass
class PodResourceData:
    name: str
    containers: list[ContainerResources] = field(default_factory=list)


@dataclass
class PodMetricsData:
    name: str
    containers: list[ContainerMetrics] = field(default_factory=list)


@dataclass
class ResourceRecommendation:
    """A single sizing recommendation for one resource of one container."""

    type: RecommendationType
    resource: str  # "cpu" | "memory"
    container_name: str
    reason: str
    current_request: str | None = None
    current_limit: str | None = None
    suggested_request: str | None = None
    suggested_limit: str | None = None


@dataclass
class ResourceMetrics:
    """Canonical numbers behind an analysis: cores for CPU, bytes for memory."""

    cpu_usage: float = 0.0
    memory_usage: float = 0.0
    cpu_request: float | None = None
    cpu_limit: float | None = None
    memory_request: float | None = None
    memory_limit: float | None = None


@dataclass
class ResourceAnalysis:
    """Sizing verdict and recommendations for one workload."""

    pod_name: str
    container_name: str
    status: SizingStatus
    recommendations: list[ResourceRecommendation] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    metrics: ResourceMetrics = field(default_factory=ResourceMetrics)
