"""Cluster access interface consumed by the diagnostic phases.

All listings are plain dicts in Kubernetes API (camelCase) shape so the
phases never depend on a particular client library's model classes.
"""

from __future__ import annotations

from typing import Any, Protocol


class ClusterClient(Protocol):
    """Minimal cluster interface required by triage and deep dive."""

    async def list_pods(self, namespace: str) -> list[dict[str, Any]]: ...

    async def list_nodes(self) -> list[dict[str, Any]]: ...

    async def list_events(self, namespace: str) -> list[dict[str, Any]]: ...

    async def read_pod_log(
        self,
        namespace: str,
        pod: str,
        container: str | None = None,
        tail_lines: int = 50,
        previous: bool = False,
    ) -> str: ...

    async def get_pod_metrics(self, namespace: str, pod: str) -> dict[str, Any] | None: ...
