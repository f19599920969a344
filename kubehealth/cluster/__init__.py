"""Cluster access: the ClusterClient interface, kubeconfig contexts, and the
kubernetes-asyncio implementation.

Submodules:
    base       -- ClusterClient protocol used by the diagnostic phases.
    context    -- Kubeconfig context listing and validation.
    kubernetes -- KubernetesClusterClient (kubernetes-asyncio).
"""

from kubehealth.cluster.base import ClusterClient
from kubehealth.cluster.context import ContextNotFoundError, list_contexts, resolve_context
from kubehealth.cluster.kubernetes import ClusterConfigError, KubernetesClusterClient

__all__ = [
    "ClusterClient",
    "ClusterConfigError",
    "ContextNotFoundError",
    "KubernetesClusterClient",
    "list_contexts",
    "resolve_context",
]
