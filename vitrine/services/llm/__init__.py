from vitrine.services.llm.base import LLMError, LLMProvider, LLMResponse
from vitrine.services.llm.openai_provider import OpenAIProvider, build_image_message

__all__ = ["LLMError", "LLMProvider", "LLMResponse", "OpenAIProvider", "build_image_message"]
