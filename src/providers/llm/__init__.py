"""LLM provider adapters.

    - OpenAILLMProvider -- gpt-4o-mini (also supports OpenAI-compatible APIs)

The LLM is optional: main.py only wires it into the answer service when
OPENAI_API_KEY is set, and it is only called when a caller asks for the
assembled answer to be rendered as prose.
"""

from src.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider"]
