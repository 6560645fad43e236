from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from vitrine.database import get_db
from vitrine.dependencies import get_provider_gateway, get_tenant
from vitrine.logging_config import get_logger
from vitrine.schemas.instance import CreateInstanceRequest, SendTextRequest, SetWebhookRequest
from vitrine.services.instance_service import (
    InstanceTokenMissingError,
    create_instance,
    get_qr,
    get_status,
    send_text,
    set_webhook,
)
from vitrine.services.provider_gateway import ProviderError, ProviderGateway, ProviderUnavailableError
from vitrine.services.tenant_service import Tenant

logger = get_logger("instances")

router = APIRouter(prefix="/wa/instances", tags=["instances"])


def _require_instance(instance: str) -> str:
    instance = (instance or "").strip()
    if not instance:
        raise HTTPException(status_code=400, detail="missing instance")
    return instance


def _provider_http_error(e: ProviderError) -> HTTPException:
    if isinstance(e, ProviderUnavailableError):
        return HTTPException(status_code=503, detail=e.message)
    return HTTPException(status_code=502, detail=e.message)


@router.post("", status_code=201)
def create_instance_endpoint(
    request: Optional[CreateInstanceRequest] = None,
    tenant: Tenant = Depends(get_tenant),
    gateway: ProviderGateway = Depends(get_provider_gateway),
    db: Session = Depends(get_db),
):
    name = request.name if request else ""
    try:
        result = create_instance(db, gateway, tenant, name)
        db.commit()
    except InstanceTokenMissingError as e:
        db.rollback()
        raise HTTPException(status_code=422, detail=e.message)
    except ProviderError as e:
        db.rollback()
        logger.error(f"Instance creation failed: {e.message}")
        raise _provider_http_error(e)
    return result


@router.get("/{instance}/status")
def instance_status_endpoint(
    instance: str,
    token: str = Query(default=""),
    gateway: ProviderGateway = Depends(get_provider_gateway),
    db: Session = Depends(get_db),
):
    instance = _require_instance(instance)
    try:
        return get_status(db, gateway, instance, token)
    except ProviderError as e:
        raise _provider_http_error(e)


@router.get("/{instance}/qr")
@router.get("/{instance}/qrcode")
def instance_qr_endpoint(
    instance: str,
    token: str = Query(default=""),
    gateway: ProviderGateway = Depends(get_provider_gateway),
    db: Session = Depends(get_db),
):
    instance = _require_instance(instance)
    reply = get_qr(db, gateway, instance, token)
    return Response(content=reply.body, media_type=reply.content_type)


@router.post("/{instance}/webhook")
def instance_webhook_endpoint(
    instance: str,
    request: SetWebhookRequest,
    tenant: Tenant = Depends(get_tenant),
    gateway: ProviderGateway = Depends(get_provider_gateway),
    db: Session = Depends(get_db),
):
    instance = _require_instance(instance)
    if not request.url.strip():
        raise HTTPException(status_code=400, detail="url required")
    try:
        return set_webhook(db, gateway, tenant, instance, request.model_dump(exclude_none=True))
    except ProviderError as e:
        logger.warning(f"Webhook saved locally but provider registration failed for {instance}: {e.message}")
        raise _provider_http_error(e)


@router.post("/{instance}/send/text")
def instance_send_text_endpoint(
    instance: str,
    request: SendTextRequest,
    gateway: ProviderGateway = Depends(get_provider_gateway),
    db: Session = Depends(get_db),
):
    instance = _require_instance(instance)
    to = request.to.strip()
    if not to or not request.text.strip():
        raise HTTPException(status_code=400, detail="to and text are required")
    try:
        return send_text(db, gateway, instance, request.token, to, request.text)
    except ProviderError as e:
        raise _provider_http_error(e)
