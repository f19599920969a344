"""Configuration data structures."""

from __future__ import annotations

import os
from dataclasses import dataclass, field


def _default_checkpoint_dir() -> str:
    return os.path.join(os.path.expanduser("~"), ".kubehealth", "checkpoints")


@dataclass
class CheckpointConfig:
    """Checkpoint store configuration."""

    dir: str = field(default_factory=_default_checkpoint_dir)


@dataclass
class TriageConfig:
    """Triage phase configuration."""

    restart_threshold: int = 5
    max_events: int = 20


@dataclass
class DeepDiveConfig:
    """Deep-dive phase configuration."""

    enabled: bool = True
    log_tail_lines: int = 50
    max_error_lines: int = 10


@dataclass
class LLMConfig:
    """OpenAI-compatible chat completions endpoint (Ollama by default)."""

    enabled: bool = False
    endpoint: str = "http://localhost:11434"
    model: str = "qwen2.5:7b"
    api_key: str = ""
    timeout_seconds: int = 60
    max_retries: int = 2
    temperature: float = 0.2
    max_tokens: int = 2048


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class KubeHealthConfig:
    """Top-level kubehealth configuration."""

    context: str = ""
    checkpoint: CheckpointConfig = field(default_factory=CheckpointConfig)
    triage: TriageConfig = field(default_factory=TriageConfig)
    deep_dive: DeepDiveConfig = field(default_factory=DeepDiveConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    log: LogConfig = field(default_factory=LogConfig)
