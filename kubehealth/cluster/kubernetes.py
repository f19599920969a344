"""ClusterClient implementation backed by kubernetes-asyncio.

Calls are not retried here; a failed API call propagates to the phase that
made it.  The only tolerated failure is a missing metrics-server, which
``get_pod_metrics`` reports as None.
"""

from __future__ import annotations

from typing import Any

import structlog

from kubehealth.cluster.context import resolve_context

_log = structlog.get_logger(component="cluster.kubernetes")

_METRICS_GROUP = "metrics.k8s.io"
_METRICS_VERSION = "v1beta1"


class ClusterConfigError(Exception):
    """Raised when no usable kubeconfig or in-cluster configuration is found."""


class KubernetesClusterClient:
    """Thin async wrapper over CoreV1Api and the metrics.k8s.io API."""

    def __init__(self, api_client: Any, context: str | None = None) -> None:
        from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

        self._api_client = api_client
        self._core = k8s_client.CoreV1Api(api_client)
        self._custom = k8s_client.CustomObjectsApi(api_client)
        self.context = context

    @classmethod
    async def create(cls, context: str | None = None) -> KubernetesClusterClient:
        """Build a client from kubeconfig (optionally a named context) or in-cluster config.

        Raises:
            ContextNotFoundError: if *context* is not defined in the kubeconfig.
            ClusterConfigError: if neither kubeconfig nor in-cluster config can be loaded.
        """
        import kubernetes_asyncio.config as k8s_config  # type: ignore[import-untyped]
        from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

        context = resolve_context(context)
        configuration = k8s_client.Configuration()
        if context is None:
            try:
                # load_incluster_config() is synchronous in kubernetes-asyncio
                k8s_config.load_incluster_config(client_configuration=configuration)
                _log.info("k8s client configured from in-cluster service account")
                return cls(k8s_client.ApiClient(configuration=configuration))
            except k8s_config.ConfigException:
                pass

        # load_kube_config() is async in kubernetes-asyncio
        try:
            await k8s_config.load_kube_config(context=context, client_configuration=configuration)
        except k8s_config.ConfigException as exc:
            raise ClusterConfigError(f"Cannot configure Kubernetes client: {exc}") from exc
        _log.info("k8s client configured from kubeconfig", context=context or "<current>")
        return cls(k8s_client.ApiClient(configuration=configuration), context=context)

    def _to_dicts(self, items: Any) -> list[dict[str, Any]]:
        return [self._api_client.sanitize_for_serialization(item) for item in items or []]

    async def list_pods(self, namespace: str) -> list[dict[str, Any]]:
        result = await self._core.list_namespaced_pod(namespace)
        return self._to_dicts(result.items)

    async def list_nodes(self) -> list[dict[str, Any]]:
        result = await self._core.list_node()
        return self._to_dicts(result.items)

    async def list_events(self, namespace: str) -> list[dict[str, Any]]:
        result = await self._core.list_namespaced_event(namespace)
        return self._to_dicts(result.items)

    async def read_pod_log(
        self,
        namespace: str,
        pod: str,
        container: str | None = None,
        tail_lines: int = 50,
        previous: bool = False,
    ) -> str:
        kwargs: dict[str, Any] = {"tail_lines": tail_lines, "previous": previous}
        if container:
            kwargs["container"] = container
        return str(await self._core.read_namespaced_pod_log(pod, namespace, **kwargs))

    async def get_pod_metrics(self, namespace: str, pod: str) -> dict[str, Any] | None:
        from kubernetes_asyncio.client.exceptions import ApiException  # type: ignore[import-untyped]

        try:
            result = await self._custom.get_namespaced_custom_object(
                _METRICS_GROUP, _METRICS_VERSION, namespace, "pods", pod
            )
        except ApiException as exc:
            if exc.status in (404, 503):
                _log.debug("pod_metrics_unavailable", namespace=namespace, pod=pod, status=exc.status)
                return None
            raise
        return dict(result)

    async def aclose(self) -> None:
        await self._api_client.close()
