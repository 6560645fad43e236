import base64
from typing import List, Optional

import httpx

from vitrine.logging_config import get_logger
from vitrine.services.llm.base import LLMError, LLMProvider, LLMResponse

logger = get_logger("llm.openai")


def image_data_url(image_bytes: bytes, mime_type: str) -> str:
    """Inline an image as a data: URL accepted by vision models."""
    encoded = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def build_image_message(text: str, image_bytes: bytes, mime_type: str) -> dict:
    return {
        "role": "user",
        "content": [
            {"type": "text", "text": text},
            {"type": "image_url", "image_url": {"url": image_data_url(image_bytes, mime_type)}},
        ],
    }


class OpenAIProvider(LLMProvider):
    """OpenAI chat completions provider (text and vision)."""

    def __init__(
        self,
        api_key: str,
        default_model: str = "gpt-4o-mini",
        default_timeout: float = 30.0,
        base_url: str = "https://api.openai.com/v1/chat/completions",
    ):
        self.api_key = api_key
        self.default_model = default_model
        self.default_timeout = default_timeout
        self.base_url = base_url

    def generate(
        self,
        messages: List[dict],
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: int = 1000,
        timeout_seconds: Optional[float] = None,
    ) -> LLMResponse:
        """Generate response from OpenAI."""

        model = model or self.default_model

        payload = {
            "model": model,
            "messages": messages,
            "max_completion_tokens": max_tokens,
        }
        if temperature is not None:
            payload["temperature"] = temperature
        logger.debug(f"OpenAI request: model={model}, messages_count={len(messages)}")

        timeout = timeout_seconds if timeout_seconds is not None else self.default_timeout
        try:
            with httpx.Client(timeout=timeout) as client:
                response = client.post(
                    self.base_url,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                )
        except httpx.HTTPError as e:
            logger.error(f"OpenAI transport error: {e}")
            raise LLMError(f"OpenAI unreachable: {e}") from e

        logger.debug(f"OpenAI response status: {response.status_code}")

        if response.status_code != 200:
            logger.error(f"OpenAI error: {response.text[:500]}")
            raise LLMError(
                f"OpenAI API error: {response.status_code} - {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
            content = ""
            if data.get("choices"):
                message = data["choices"][0].get("message") or {}
                content = message.get("content") or ""
        except (ValueError, AttributeError, IndexError, KeyError, TypeError) as e:
            logger.error(f"OpenAI returned an unreadable body: {response.text[:200]}")
            raise LLMError(f"OpenAI returned an invalid response: {e}", status_code=response.status_code) from e

        logger.debug(f"OpenAI content: {content[:100] if content else 'EMPTY'}")

        return LLMResponse(
            content=content,
            model=data.get("model", model),
            usage=data.get("usage"),
        )
