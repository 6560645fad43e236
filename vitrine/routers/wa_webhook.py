import asyncio

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session
from starlette.requests import ClientDisconnect

from vitrine.config import Settings, get_settings
from vitrine.database import get_db
from vitrine.logging_config import get_logger
from vitrine.services.webhook_forwarder import (
    ForwardContext,
    forward_event,
    log_webhook_event,
    resolve_forward_context,
)

logger = get_logger("wa_webhook")

router = APIRouter(tags=["webhooks"])


def _record_and_resolve(db: Session, instance_id: str, body: bytes) -> ForwardContext:
    log_webhook_event(db, instance_id, body)
    return resolve_forward_context(db, instance_id)


@router.post("/webhooks/wa/{instance}", status_code=202)
async def receive_wa_webhook(
    instance: str,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Inbound provider event. Acknowledged with 202 whatever happens downstream."""
    instance = (instance or "").strip()
    if not instance:
        raise HTTPException(status_code=400, detail="missing instance")

    try:
        body = await request.body()
    except ClientDisconnect:
        logger.warning(f"Client disconnected while sending webhook for {instance}")
        body = b""

    context = await asyncio.to_thread(_record_and_resolve, db, instance, body)

    background_tasks.add_task(
        forward_event,
        settings.agent_webhook_base,
        context,
        body,
        request.headers.get("content-type"),
        settings.agent_forward_timeout_seconds,
    )
    return PlainTextResponse("queued", status_code=202)
