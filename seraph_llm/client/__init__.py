"""LLM client module: dispatch, payloads and calling conventions."""

from seraph_llm.client.adapters import GenerationResult
from seraph_llm.client.core import LLMClient, PreparedRequest

__all__ = ["LLMClient", "PreparedRequest", "GenerationResult"]
