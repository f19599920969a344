"""LLM analyzer package: chat-completions client and prompt templates."""

from kubehealth.llm.analyzer import LLMAnalyzer, LLMResult
from kubehealth.llm.prompts import SYSTEM_PROMPT, USER_PROMPT_TEMPLATE

__all__ = [
    "LLMAnalyzer",
    "LLMResult",
    "SYSTEM_PROMPT",
    "USER_PROMPT_TEMPLATE",
]
