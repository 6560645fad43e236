from typing import Iterable, List, Optional

from vitrine.logging_config import get_logger
from vitrine.services.llm import LLMError, LLMProvider
from vitrine.services.result import AI_EMPTY_REPLY, AI_ERROR, AI_NOT_CONFIGURED, Result

logger = get_logger("chat_service")

ALLOWED_ROLES = {"user", "assistant", "system"}


def build_chat_messages(message: str, history: Iterable = (), system: Optional[str] = None) -> List[dict]:
    """Assemble completion messages: optional system prompt, prior turns, then the new message."""
    messages: List[dict] = []
    if system and system.strip():
        messages.append({"role": "system", "content": system.strip()})
    for turn in history or []:
        role = turn.role if turn.role in ALLOWED_ROLES else "user"
        messages.append({"role": role, "content": turn.content})
    messages.append({"role": "user", "content": message})
    return messages


def generate_chat_reply(
    provider: Optional[LLMProvider],
    messages: List[dict],
    *,
    model: str,
    timeout_seconds: float,
) -> Result[str]:
    if provider is None:
        return Result.failure("OPENAI_API_KEY not set", AI_NOT_CONFIGURED)

    try:
        response = provider.generate(messages, model=model, timeout_seconds=timeout_seconds)
    except LLMError as e:
        logger.error(f"Chat completion failed: {e.message}")
        return Result.failure(e.message, AI_ERROR)

    text = response.content.strip()
    if not text:
        return Result.failure("Chat model returned an empty reply", AI_EMPTY_REPLY)
    return Result.success(text)
