"""Language-model client for the summary phase.

Talks to any OpenAI-compatible ``/v1/chat/completions`` endpoint (Ollama by
default).  ``analyze`` never raises for transport or response-shape
failures: it returns an unsuccessful LLMResult and the caller leaves the
analysis section out of the report.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx
import structlog

from kubehealth.llm.prompts import SYSTEM_PROMPT
from kubehealth.models.config import LLMConfig

_log = structlog.get_logger(component="llm.analyzer")

_COMPLETIONS_PATH = "/v1/chat/completions"


@dataclass
class LLMResult:
    """Outcome of one analysis request."""

    success: bool
    text: str = ""
    error: str = ""
    retries_used: int = 0


class LLMAnalyzer:
    """Async chat-completions client with bounded retries on transient errors.

    Timeouts, connection errors and 5xx responses are retried up to
    ``config.max_retries`` times.  4xx responses and malformed bodies are
    not retried.
    """

    def __init__(self, config: LLMConfig) -> None:
        self._config = config
        headers = {"Authorization": f"Bearer {config.api_key}"} if config.api_key else {}
        self._client = httpx.AsyncClient(
            base_url=config.endpoint.rstrip("/"),
            timeout=float(config.timeout_seconds),
            headers=headers,
        )

    async def analyze(self, prompt: str) -> LLMResult:
        """Send *prompt* with the system prompt and return the model's reply."""
        payload = {
            "model": self._config.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self._config.temperature,
            "max_tokens": self._config.max_tokens,
            "stream": False,
        }

        last_error = ""
        for attempt in range(self._config.max_retries + 1):
            try:
                response = await self._client.post(_COMPLETIONS_PATH, json=payload)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                last_error = f"HTTP {exc.response.status_code}"
                if exc.response.status_code < 500:
                    _log.warning("llm_request_rejected", status_code=exc.response.status_code)
                    return LLMResult(success=False, error=last_error, retries_used=attempt)
                _log.warning("llm_server_error", status_code=exc.response.status_code, attempt=attempt)
                continue
            except httpx.TimeoutException:
                last_error = "timeout"
                _log.warning("llm_request_timeout", attempt=attempt, timeout=self._config.timeout_seconds)
                continue
            except httpx.HTTPError as exc:
                last_error = str(exc) or type(exc).__name__
                _log.warning("llm_http_error", error=last_error, attempt=attempt)
                continue

            try:
                content = response.json()["choices"][0]["message"]["content"]
            except (ValueError, KeyError, IndexError, TypeError) as exc:
                _log.warning("llm_malformed_response", error=str(exc))
                return LLMResult(success=False, error=f"malformed response: {exc}", retries_used=attempt)

            text = str(content or "").strip()
            if not text:
                return LLMResult(success=False, error="empty response", retries_used=attempt)
            _log.info("llm_analysis_complete", model=self._config.model, retries=attempt, chars=len(text))
            return LLMResult(success=True, text=text, retries_used=attempt)

        return LLMResult(success=False, error=last_error, retries_used=self._config.max_retries)

    async def aclose(self) -> None:
        await self._client.aclose()
