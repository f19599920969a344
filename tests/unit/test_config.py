"""Tests for environment-based configuration loading."""

from __future__ import annotations

import os

import pytest

from kubehealth.config import load_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("KUBEHEALTH_"):
            monkeypatch.delenv(key)


class TestLoadConfig:
    def test_defaults(self) -> None:
        config = load_config()

        assert config.context == ""
        assert config.checkpoint.dir.endswith(os.path.join(".kubehealth", "checkpoints"))
        assert config.triage.restart_threshold == 5
        assert config.triage.max_events == 20
        assert config.deep_dive.enabled is True
        assert config.deep_dive.log_tail_lines == 50
        assert config.llm.enabled is False
        assert config.llm.endpoint == "http://localhost:11434"
        assert config.log.level == "info"

    def test_overrides(self, monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
        monkeypatch.setenv("KUBEHEALTH_CONTEXT", "staging")
        monkeypatch.setenv("KUBEHEALTH_CHECKPOINT_DIR", str(tmp_path))
        monkeypatch.setenv("KUBEHEALTH_TRIAGE_RESTART_THRESHOLD", "3")
        monkeypatch.setenv("KUBEHEALTH_DEEP_DIVE_ENABLED", "false")
        monkeypatch.setenv("KUBEHEALTH_LLM_ENABLED", "yes")
        monkeypatch.setenv("KUBEHEALTH_LLM_MODEL", "llama3.1:8b")
        monkeypatch.setenv("KUBEHEALTH_LLM_TEMPERATURE", "0.5")
        monkeypatch.setenv("KUBEHEALTH_LOG_LEVEL", "DEBUG")

        config = load_config()

        assert config.context == "staging"
        assert config.checkpoint.dir == str(tmp_path)
        assert config.triage.restart_threshold == 3
        assert config.deep_dive.enabled is False
        assert config.llm.enabled is True
        assert config.llm.model == "llama3.1:8b"
        assert config.llm.temperature == 0.5
        assert config.log.level == "debug"

    def test_integers_are_clamped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBEHEALTH_LLM_TIMEOUT", "1")
        monkeypatch.setenv("KUBEHEALTH_LLM_MAX_RETRIES", "50")
        monkeypatch.setenv("KUBEHEALTH_TRIAGE_RESTART_THRESHOLD", "0")

        config = load_config()

        assert config.llm.timeout_seconds == 10
        assert config.llm.max_retries == 5
        assert config.triage.restart_threshold == 1

    def test_invalid_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KUBEHEALTH_LOG_LEVEL", "verbose")
        with pytest.raises(ValueError, match="Invalid log level"):
            load_config()
