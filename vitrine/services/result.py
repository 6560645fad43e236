from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

# Error codes shared by AI-backed services
AI_ERROR = "ai_error"
AI_NOT_CONFIGURED = "ai_not_configured"
AI_EMPTY_REPLY = "ai_empty_reply"


@dataclass
class Result(Generic[T]):
    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @staticmethod
    def success(value: T) -> "Result[T]":
        return Result(ok=True, value=value)

    @staticmethod
    def failure(error: str, code: str = "unknown") -> "Result[T]":
        return Result(ok=False, error=error, error_code=code)
