"""Shared fixtures for kubehealth integration tests.

Provides an in-memory ClusterClient and Kubernetes object factories so the
engine can run full triage -> deep dive -> summary passes without a cluster.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from kubehealth.models.config import CheckpointConfig, DeepDiveConfig, KubeHealthConfig, TriageConfig
from kubehealth.persistence.checkpointer import FileCheckpointer

# ---------------------------------------------------------------------------
# Kubernetes object factories
# ---------------------------------------------------------------------------


def make_container_status(
    name: str = "app",
    ready: bool = True,
    restarts: int = 0,
    waiting: str | None = None,
    last_terminated: str | None = None,
) -> dict[str, Any]:
    """Create a containerStatuses entry in Kubernetes API shape."""
    state: dict[str, Any] = {"waiting": {"reason": waiting}} if waiting else {"running": {}}
    status: dict[str, Any] = {"name": name, "ready": ready, "restartCount": restarts, "state": state}
    if last_terminated:
        status["lastState"] = {"terminated": {"reason": last_terminated, "exitCode": 137}}
    return status


def make_pod(
    name: str = "web-6f7d8c9b5-x2kjq",
    namespace: str = "shop",
    phase: str = "Running",
    statuses: list[dict[str, Any]] | None = None,
    replicaset: str | None = "web-6f7d8c9b5",
    requests: dict[str, str] | None = None,
    limits: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Create a pod owned by *replicaset* (or unowned when None)."""
    metadata: dict[str, Any] = {"name": name, "namespace": namespace}
    if replicaset:
        metadata["ownerReferences"] = [{"kind": "ReplicaSet", "name": replicaset}]
    return {
        "metadata": metadata,
        "spec": {
            "containers": [
                {
                    "name": "app",
                    "resources": {
                        "requests": requests or {"cpu": "250m", "memory": "256Mi"},
                        "limits": limits or {"cpu": "500m", "memory": "512Mi"},
                    },
                }
            ]
        },
        "status": {
            "phase": phase,
            "containerStatuses": statuses if statuses is not None else [make_container_status()],
        },
    }


def make_crash_looping_pod(name: str = "web-6f7d8c9b5-x2kjq", **kwargs: Any) -> dict[str, Any]:
    """Create a pod whose container is in CrashLoopBackOff after several restarts."""
    return make_pod(
        name=name,
        statuses=[make_container_status(ready=False, restarts=6, waiting="CrashLoopBackOff")],
        **kwargs,
    )


def make_healthy_pod(name: str = "api-7c9d6b8f4-abcde") -> dict[str, Any]:
    return make_pod(name=name, replicaset="api-7c9d6b8f4")


def make_node(name: str = "node-1", ready: bool = True) -> dict[str, Any]:
    return {
        "metadata": {"name": name},
        "status": {"conditions": [{"type": "Ready", "status": "True" if ready else "False"}]},
    }


def make_warning_event(reason: str = "BackOff", message: str = "Back-off restarting failed container") -> dict[str, Any]:
    return {"type": "Warning", "reason": reason, "message": message, "lastTimestamp": "2026-01-01T10:00:00Z"}


# ---------------------------------------------------------------------------
# In-memory cluster
# ---------------------------------------------------------------------------


class FakeClusterClient:
    """ClusterClient backed by plain lists, with call recording and fault injection."""

    def __init__(
        self,
        pods: list[dict[str, Any]] | None = None,
        nodes: list[dict[str, Any]] | None = None,
        events: list[dict[str, Any]] | None = None,
        logs: dict[str, str] | None = None,
        metrics: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        self.pods = pods or []
        self.nodes = nodes if nodes is not None else [make_node()]
        self.events = events or []
        self.logs = logs or {}
        self.metrics = metrics or {}
        self.calls: list[str] = []
        self.failures: dict[str, Exception] = {}
        self.closed = False

    def _record(self, method: str) -> None:
        self.calls.append(method)
        if method in self.failures:
            raise self.failures[method]

    async def list_pods(self, namespace: str) -> list[dict[str, Any]]:
        self._record("list_pods")
        return [p for p in self.pods if p["metadata"].get("namespace") == namespace]

    async def list_nodes(self) -> list[dict[str, Any]]:
        self._record("list_nodes")
        return self.nodes

    async def list_events(self, namespace: str) -> list[dict[str, Any]]:
        self._record("list_events")
        return self.events

    async def read_pod_log(
        self,
        namespace: str,
        pod: str,
        container: str | None = None,
        tail_lines: int = 50,
        previous: bool = False,
    ) -> str:
        self._record("read_pod_log")
        return self.logs.get(pod, "")

    async def get_pod_metrics(self, namespace: str, pod: str) -> dict[str, Any] | None:
        self._record("get_pod_metrics")
        return self.metrics.get(pod)

    async def aclose(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def checkpoint_dir(tmp_path: Path) -> Path:
    return tmp_path / "checkpoints"


@pytest.fixture()
def checkpointer(checkpoint_dir: Path) -> FileCheckpointer:
    return FileCheckpointer(checkpoint_dir)


@pytest.fixture()
def config(checkpoint_dir: Path) -> KubeHealthConfig:
    return KubeHealthConfig(
        checkpoint=CheckpointConfig(dir=str(checkpoint_dir)),
        triage=TriageConfig(restart_threshold=5, max_events=20),
        deep_dive=DeepDiveConfig(enabled=True, log_tail_lines=50, max_error_lines=10),
    )
