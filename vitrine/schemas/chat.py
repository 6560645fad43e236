from typing import List, Optional

from pydantic import BaseModel, Field

from vitrine.schemas.product import ProductOut


class ChatTurn(BaseModel):
    role: str = "user"
    content: str = ""


class ChatRequest(BaseModel):
    message: str = ""
    sessionId: Optional[str] = None
    history: List[ChatTurn] = Field(default_factory=list)
    system: Optional[str] = None


class ChatResponse(BaseModel):
    ok: bool = True
    reply: str
    product: Optional[ProductOut] = None
    awaiting_price: bool = False
