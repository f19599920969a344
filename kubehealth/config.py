"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from kubehealth.models.config import (
    CheckpointConfig,
    DeepDiveConfig,
    KubeHealthConfig,
    LLMConfig,
    LogConfig,
    TriageConfig,
)


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"KUBEHEALTH_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _env_float(key: str, default: float) -> float:
    return float(_env(key, str(default)))


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def load_config() -> KubeHealthConfig:
    """Load configuration from KUBEHEALTH_* environment variables."""
    return KubeHealthConfig(
        context=_env("CONTEXT", ""),
        checkpoint=CheckpointConfig(
            dir=os.path.expanduser(_env("CHECKPOINT_DIR", "")) or CheckpointConfig().dir,
        ),
        triage=TriageConfig(
            restart_threshold=_env_int("TRIAGE_RESTART_THRESHOLD", 5, min_val=1, max_val=1000),
            max_events=_env_int("TRIAGE_MAX_EVENTS", 20, min_val=0, max_val=500),
        ),
        deep_dive=DeepDiveConfig(
            enabled=_env_bool("DEEP_DIVE_ENABLED", True),
            log_tail_lines=_env_int("DEEP_DIVE_LOG_TAIL_LINES", 50, min_val=1, max_val=1000),
            max_error_lines=_env_int("DEEP_DIVE_MAX_ERROR_LINES", 10, min_val=1, max_val=100),
        ),
        llm=LLMConfig(
            enabled=_env_bool("LLM_ENABLED", False),
            endpoint=_env("LLM_ENDPOINT", "http://localhost:11434"),
            model=_env("LLM_MODEL", "qwen2.5:7b"),
            api_key=_env("LLM_API_KEY", ""),
            timeout_seconds=_env_int("LLM_TIMEOUT", 60, min_val=10, max_val=300),
            max_retries=_env_int("LLM_MAX_RETRIES", 2, min_val=0, max_val=5),
            temperature=_env_float("LLM_TEMPERATURE", 0.2),
            max_tokens=_env_int("LLM_MAX_TOKENS", 2048),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
