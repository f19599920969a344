"""Tests for the kubernetes-asyncio ClusterClient wrapper.

The generated API classes are replaced with AsyncMocks; no cluster is used.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from kubernetes_asyncio.client.exceptions import ApiException
from kubernetes_asyncio.config import ConfigException

from kubehealth.cluster.kubernetes import ClusterConfigError, KubernetesClusterClient


@pytest.fixture()
def client() -> KubernetesClusterClient:
    api_client = MagicMock()
    api_client.sanitize_for_serialization = MagicMock(side_effect=lambda obj: obj)
    api_client.close = AsyncMock()
    k8s = KubernetesClusterClient(api_client, context="dev")
    k8s._core = MagicMock()
    k8s._custom = MagicMock()
    return k8s


class TestListings:
    async def test_list_pods_returns_dicts(self, client: KubernetesClusterClient) -> None:
        pod = {"metadata": {"name": "web-1"}}
        client._core.list_namespaced_pod = AsyncMock(return_value=SimpleNamespace(items=[pod]))

        pods = await client.list_pods("shop")

        assert pods == [pod]
        client._core.list_namespaced_pod.assert_awaited_once_with("shop")

    async def test_empty_listing(self, client: KubernetesClusterClient) -> None:
        client._core.list_node = AsyncMock(return_value=SimpleNamespace(items=None))
        assert await client.list_nodes() == []


class TestReadPodLog:
    async def test_passes_container_and_previous(self, client: KubernetesClusterClient) -> None:
        client._core.read_namespaced_pod_log = AsyncMock(return_value="line 1\nline 2\n")

        text = await client.read_pod_log("shop", "web-1", container="app", tail_lines=20, previous=True)

        assert text == "line 1\nline 2\n"
        client._core.read_namespaced_pod_log.assert_awaited_once_with(
            "web-1", "shop", tail_lines=20, previous=True, container="app"
        )

    async def test_omits_container_when_unknown(self, client: KubernetesClusterClient) -> None:
        client._core.read_namespaced_pod_log = AsyncMock(return_value="")

        await client.read_pod_log("shop", "web-1")

        assert "container" not in client._core.read_namespaced_pod_log.await_args.kwargs


class TestGetPodMetrics:
    async def test_returns_metrics(self, client: KubernetesClusterClient) -> None:
        metrics = {"containers": [{"name": "app", "usage": {"cpu": "5m", "memory": "20Mi"}}]}
        client._custom.get_namespaced_custom_object = AsyncMock(return_value=metrics)

        assert await client.get_pod_metrics("shop", "web-1") == metrics

    @pytest.mark.parametrize("status", [404, 503])
    async def test_missing_metrics_server_is_none(self, client: KubernetesClusterClient, status: int) -> None:
        client._custom.get_namespaced_custom_object = AsyncMock(side_effect=ApiException(status=status))

        assert await client.get_pod_metrics("shop", "web-1") is None

    async def test_other_errors_propagate(self, client: KubernetesClusterClient) -> None:
        client._custom.get_namespaced_custom_object = AsyncMock(side_effect=ApiException(status=403))

        with pytest.raises(ApiException):
            await client.get_pod_metrics("shop", "web-1")


async def test_aclose_closes_api_client(client: KubernetesClusterClient) -> None:
    await client.aclose()
    client._api_client.close.assert_awaited_once()


async def test_create_without_any_config_raises_cluster_config_error() -> None:
    no_config = ConfigException("Invalid kube-config file. No configuration found.")
    with (
        patch("kubernetes_asyncio.config.load_incluster_config", side_effect=ConfigException("not in a pod")),
        patch("kubernetes_asyncio.config.load_kube_config", new_callable=AsyncMock, side_effect=no_config),
    ):
        with pytest.raises(ClusterConfigError, match="No configuration found") as exc_info:
            await KubernetesClusterClient.create()

    assert exc_info.value.__cause__ is no_config
