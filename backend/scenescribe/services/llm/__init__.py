"""LLM provider abstraction layer.

Provides a unified async interface for structured text generation across
providers (Vertex AI and Ollama).

Usage:
    from scenescribe.services.llm import get_adapter, LLMAdapter

    adapter = get_adapter("gemini-2.5-flash")
    result = await adapter.complete_json(prompt, MySchema)

    adapter = get_adapter("ollama/llama3.1")
    result = await adapter.complete_json(prompt, MySchema)
"""

from scenescribe.services.llm.base import LLMAdapter
from scenescribe.services.llm.registry import get_adapter

__all__ = ["LLMAdapter", "get_adapter"]
