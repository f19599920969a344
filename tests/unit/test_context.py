"""Tests for kubeconfig context discovery."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from kubernetes_asyncio.config import ConfigException

from kubehealth.cluster.context import ContextNotFoundError, list_contexts, resolve_context

_CONTEXTS = (
    [{"name": "dev", "context": {}}, {"name": "prod", "context": {}}],
    {"name": "dev", "context": {}},
)


class TestListContexts:
    def test_returns_names_and_active(self) -> None:
        with patch("kubernetes_asyncio.config.list_kube_config_contexts", return_value=_CONTEXTS):
            names, active = list_contexts()

        assert names == ["dev", "prod"]
        assert active == "dev"

    def test_missing_kubeconfig_is_empty(self) -> None:
        with patch("kubernetes_asyncio.config.list_kube_config_contexts", side_effect=ConfigException("no config")):
            assert list_contexts() == ([], None)


class TestResolveContext:
    def test_empty_means_active(self) -> None:
        assert resolve_context("") is None
        assert resolve_context(None) is None

    def test_known_context(self) -> None:
        with patch("kubernetes_asyncio.config.list_kube_config_contexts", return_value=_CONTEXTS):
            assert resolve_context("prod") == "prod"

    def test_unknown_context_lists_available(self) -> None:
        with patch("kubernetes_asyncio.config.list_kube_config_contexts", return_value=_CONTEXTS):
            with pytest.raises(ContextNotFoundError) as exc_info:
                resolve_context("staging")

        assert exc_info.value.available == ["dev", "prod"]
        assert 'Context "staging" not found. Available contexts: dev, prod' in str(exc_info.value)
