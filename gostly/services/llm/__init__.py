from gostly.services.llm.base import LLMProvider, LLMProviderError, LLMResponse
from gostly.services.llm.openai_provider import OpenAIProvider

__all__ = ["LLMProvider", "LLMProviderError", "LLMResponse", "OpenAIProvider"]
