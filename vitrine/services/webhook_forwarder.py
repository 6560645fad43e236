"""Inbound provider events: audit log, tenant resolution, relay to the AI agent.

Nothing in here may raise into the request path. The provider must always get
its acknowledgment, so every failure is logged and dropped.
"""

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote, urlparse

import httpx
from sqlalchemy.orm import Session

from vitrine.logging_config import bind_logger, get_logger
from vitrine.models import WebhookLog
from vitrine.services.instance_registry import get_instance
from vitrine.services.tenant_service import ANONYMOUS_TENANT, Tenant

logger = get_logger("webhook_forwarder")

WEBHOOK_SOURCE = "uazapi"
DEFAULT_CONTENT_TYPE = "application/json"

# n8n-style bases that already point at a concrete hook, e.g. /webhook/abc123
_CONCRETE_WEBHOOK_PATH = re.compile(r"/webhook(?:-test)?/[^/]+")


@dataclass(frozen=True)
class ForwardContext:
    instance_id: str
    token: str
    tenant: Tenant


def log_webhook_event(db: Session, instance_id: str, payload: bytes, source: str = WEBHOOK_SOURCE) -> bool:
    """Append the raw event to webhooks_log. Returns False when the write failed."""
    try:
        db.add(WebhookLog(source=source, instance_id=instance_id, payload=payload or b""))
        db.commit()
        return True
    except Exception as e:
        logger.warning(f"Webhook audit log failed for {instance_id}: {e}")
        try:
            db.rollback()
        except Exception as rollback_error:
            logger.warning(f"Rollback after audit failure also failed: {rollback_error}")
        return False


def resolve_forward_context(db: Session, instance_id: str) -> ForwardContext:
    """Look up the owning tenant. Unknown instances get the anonymous tenant."""
    try:
        instance = get_instance(db, instance_id)
    except Exception as e:
        logger.warning(f"Instance lookup failed for {instance_id}: {e}")
        instance = None

    if instance is None:
        return ForwardContext(instance_id=instance_id, token="", tenant=ANONYMOUS_TENANT)

    return ForwardContext(
        instance_id=instance_id,
        token=instance.token or "",
        tenant=Tenant(org_id=int(instance.org_id or 0), flow_id=int(instance.flow_id or 0)),
    )


def build_forward_url(base_url: str, instance_id: str) -> str:
    """Use the base as-is when it names a concrete hook, else append the instance id."""
    base = (base_url or "").strip().rstrip("/")
    if _CONCRETE_WEBHOOK_PATH.search(urlparse(base).path):
        return base
    return f"{base}/{quote(instance_id, safe='')}"


def build_forward_headers(context: ForwardContext, content_type: Optional[str] = None) -> dict:
    headers = {
        "Content-Type": content_type or DEFAULT_CONTENT_TYPE,
        "X-Instance-ID": context.instance_id,
        "X-Org-ID": str(context.tenant.org_id),
        "X-Flow-ID": str(context.tenant.flow_id),
    }
    if context.token:
        headers["X-Instance-Token"] = context.token
    return headers


def forward_event(
    base_url: str,
    context: ForwardContext,
    body: bytes,
    content_type: Optional[str] = None,
    timeout_seconds: float = 20.0,
) -> bool:
    """Relay the raw event to the agent. Returns False on any failure, never raises."""
    log = bind_logger(
        "webhook_forwarder",
        instance_id=context.instance_id,
        org_id=context.tenant.org_id,
        flow_id=context.tenant.flow_id,
    )
    try:
        url = build_forward_url(base_url, context.instance_id)
        headers = build_forward_headers(context, content_type)
        with httpx.Client(timeout=timeout_seconds) as client:
            response = client.post(url, content=body or b"", headers=headers)
    except Exception as e:
        log.warning("Webhook forward failed", context={"error": str(e)})
        return False

    if response.status_code >= 400:
        log.warning(
            "Agent rejected forwarded webhook",
            context={"status": response.status_code, "body": response.text[:200]},
        )
        return False

    log.info("Webhook forwarded", context={"status": response.status_code})
    return True
