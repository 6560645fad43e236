from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from vitrine.config import Settings, get_settings
from vitrine.database import get_db
from vitrine.dependencies import get_llm_provider, get_pending_store
from vitrine.logging_config import get_logger
from vitrine.schemas.chat import ChatRequest, ChatResponse
from vitrine.schemas.product import ProductOut
from vitrine.services.chat_service import build_chat_messages, generate_chat_reply
from vitrine.services.llm import LLMProvider
from vitrine.services.pending_product_store import PendingProductStore
from vitrine.services.product_intake_service import MSG_PRICE_REPROMPT, build_product_reply, try_commit
from vitrine.services.result import AI_NOT_CONFIGURED

logger = get_logger("chat")

router = APIRouter(tags=["chat"])


@router.post("/chat", response_model=ChatResponse)
def chat(
    request: ChatRequest,
    db: Session = Depends(get_db),
    store: PendingProductStore = Depends(get_pending_store),
    provider: Optional[LLMProvider] = Depends(get_llm_provider),
    settings: Settings = Depends(get_settings),
):
    message = request.message.strip()
    if not message:
        raise HTTPException(status_code=400, detail="message required")

    session_id = (request.sessionId or "").strip()

    # An open pending product turns this message into a price answer
    if store.get(session_id) is not None:
        product, committed = try_commit(db, store, session_id, message)
        if committed:
            return ChatResponse(
                reply=build_product_reply(product),
                product=ProductOut.model_validate(product),
            )
        if store.get(session_id) is not None:
            return ChatResponse(reply=MSG_PRICE_REPROMPT, awaiting_price=True)
        logger.info(f"Pending product for {session_id} was taken by a concurrent request")

    result = generate_chat_reply(
        provider,
        build_chat_messages(message, request.history, request.system),
        model=settings.text_model,
        timeout_seconds=settings.ai_timeout_seconds,
    )
    if not result.ok:
        if result.error_code == AI_NOT_CONFIGURED:
            raise HTTPException(status_code=500, detail=result.error)
        raise HTTPException(status_code=502, detail=f"openai error: {result.error}")
    return ChatResponse(reply=result.value)
