"""Core data structures for kubehealth."""

from kubehealth.models.config import KubeHealthConfig
from kubehealth.models.diagnosis import (
    CheckpointMetadata,
    CheckpointRecord,
    DiagnosticIssue,
    EventSummary,
    IssueSeverity,
    NodeStatus,
    Phase,
    ResourceRef,
    SessionState,
    TriageResult,
)
from kubehealth.models.report import DiagnosticReport, HealthyResource
from kubehealth.models.resources import (
    ContainerMetrics,
    ContainerResources,
    PodMetricsData,
    PodResourceData,
    RecommendationType,
    ResourceAnalysis,
    ResourceMetrics,
    ResourceRecommendation,
    SizingStatus,
)

__all__ = [
    "CheckpointMetadata",
    "CheckpointRecord",
    "ContainerMetrics",
    "ContainerResources",
    "DiagnosticIssue",
    "DiagnosticReport",
    "EventSummary",
    "HealthyResource",
    "IssueSeverity",
    "KubeHealthConfig",
    "NodeStatus",
    "Phase",
    "PodMetricsData",
    "PodResourceData",
    "RecommendationType",
    "ResourceAnalysis",
    "ResourceMetrics",
    "ResourceRecommendation",
    "ResourceRef",
    "SessionState",
    "SizingStatus",
    "TriageResult",
]
