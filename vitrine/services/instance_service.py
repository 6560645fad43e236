"""Instance lifecycle: provisioning, status polling, QR retrieval, webhook registration and text sends."""

import json
import re
import secrets
import string
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vitrine.logging_config import get_logger
from vitrine.services.instance_registry import get_instance, update_status_snapshot, upsert_instance
from vitrine.services.provider_gateway import (
    STATUS_PATHS,
    STATUS_WAITING_QR,
    ProviderError,
    ProviderGateway,
    ProviderReply,
    ProviderUnavailableError,
    extract_instance_credentials,
    mock_connect_payload,
    mock_qr_payload,
    mock_status_payload,
    pick_str,
)
from vitrine.services.tenant_service import Tenant

logger = get_logger("instance_service")

DEFAULT_INSTANCE_NAME = "instance"
MOCK_SUFFIX_LENGTH = 6
FALLBACK_SUFFIX_LENGTH = 4
MOCK_TOKEN_LENGTH = 32

_ID_ALPHABET = string.ascii_lowercase + string.digits
_TOKEN_ALPHABET = string.ascii_letters + string.digits


class InstanceTokenMissingError(Exception):
    """Provider created an instance but returned no token to authenticate with."""

    def __init__(self, instance_id: str):
        self.instance_id = instance_id
        self.message = f"provider returned no token for instance {instance_id}"
        super().__init__(self.message)


def random_token(length: int, alphabet: str = _TOKEN_ALPHABET) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))


def slugify_instance_name(name: str) -> str:
    slug = re.sub(r"\s+", "-", (name or "").strip().lower())
    slug = re.sub(r"[^a-z0-9_-]", "", slug).strip("-")
    return slug or DEFAULT_INSTANCE_NAME


def generate_instance_id(name: str, suffix_length: int) -> str:
    return f"{slugify_instance_name(name)}-{random_token(suffix_length, _ID_ALPHABET)}"


def _resolve_token(db: Session, instance_id: str, token: Optional[str]) -> str:
    token = (token or "").strip()
    if token:
        return token
    instance = get_instance(db, instance_id)
    return instance.token if instance and instance.token else ""


def create_instance(db: Session, gateway: ProviderGateway, tenant: Tenant, name: str) -> dict:
    """Provision an instance for the tenant and record it in the registry.

    Returns the provider payload normalized to always carry instanceId/token.
    """
    name = (name or "").strip() or DEFAULT_INSTANCE_NAME

    if not gateway.configured:
        instance_id = generate_instance_id(name, MOCK_SUFFIX_LENGTH)
        token = random_token(MOCK_TOKEN_LENGTH)
        upsert_instance(
            db, instance_id=instance_id, token=token, org_id=tenant.org_id, flow_id=tenant.flow_id
        )
        logger.info(f"Mock instance created: {instance_id}")
        return {
            "instanceId": instance_id,
            "token": token,
            "connect": mock_connect_payload(instance_id),
        }

    reply = gateway.create_instance(name)
    if not reply.ok:
        raise ProviderError(reply.error_message("provider rejected instance creation"), reply.status_code)

    data = reply.json()
    instance_id, token = extract_instance_credentials(data)
    if not instance_id:
        instance_id = generate_instance_id(name, FALLBACK_SUFFIX_LENGTH)
        logger.warning(f"Provider omitted instance id, generated {instance_id}")
    if not token:
        raise InstanceTokenMissingError(instance_id)

    upsert_instance(db, instance_id=instance_id, token=token, org_id=tenant.org_id, flow_id=tenant.flow_id)

    data["instanceId"] = instance_id
    data["token"] = token
    return data


def normalize_status(instance_id: str, data: dict) -> dict:
    """Guarantee `instance` and `status` keys without dropping provider fields."""
    data.setdefault("instance", instance_id)
    if data.get("status") in (None, ""):
        data["status"] = pick_str(data, *STATUS_PATHS) or "unknown"
    return data


def get_status(db: Session, gateway: ProviderGateway, instance_id: str, token: Optional[str] = None) -> dict:
    if not gateway.configured:
        return mock_status_payload(instance_id)

    reply = gateway.instance_status(instance_id, _resolve_token(db, instance_id, token))
    if not reply.ok:
        raise ProviderError(reply.error_message("provider status lookup failed"), reply.status_code)

    data = normalize_status(instance_id, reply.json())
    try:
        update_status_snapshot(db, instance_id, data)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Failed to store status snapshot for {instance_id}: {e}")
    return data


def get_qr(db: Session, gateway: ProviderGateway, instance_id: str, token: Optional[str] = None) -> ProviderReply:
    """Fetch the pairing payload. Never fails: falls back to a waiting-qr placeholder."""
    if not gateway.configured:
        return _json_reply(mock_qr_payload(instance_id))

    reply = gateway.instance_qr(instance_id, _resolve_token(db, instance_id, token))
    if reply is not None:
        return reply

    logger.info(f"No QR available yet for {instance_id}")
    return _json_reply({"instance": instance_id, "status": STATUS_WAITING_QR})


def _json_reply(payload: dict) -> ProviderReply:
    return ProviderReply(status_code=200, body=json.dumps(payload).encode("utf-8"))


def set_webhook(db: Session, gateway: ProviderGateway, tenant: Tenant, instance_id: str, body: dict) -> dict:
    """Persist the webhook URL locally, then register it with the provider.

    The local row is committed first and stays even when the provider call fails.
    """
    webhook_url = str(body.get("url") or "").strip()
    token = str(body.get("token") or "").strip()

    upsert_instance(
        db,
        instance_id=instance_id,
        token=token,
        org_id=tenant.org_id,
        flow_id=tenant.flow_id,
        webhook_url=webhook_url,
    )
    db.commit()

    if not gateway.configured:
        return {"ok": True, "message": "webhook saved (mock)"}

    reply = gateway.set_webhook(instance_id, body)
    if not reply.ok:
        raise ProviderError(reply.error_message("provider rejected webhook registration"), reply.status_code)
    return reply.json() or {"ok": True}


def send_text(
    db: Session,
    gateway: ProviderGateway,
    instance_id: str,
    token: Optional[str],
    to: str,
    text: str,
) -> dict:
    if not gateway.configured:
        return {"ok": True, "mock": True, "message": "Simulated message (UAZAPI_BASE not configured)"}

    reply = gateway.send_text(instance_id, _resolve_token(db, instance_id, token), to, text)
    if reply.status_code >= 400:
        raise ProviderUnavailableError(
            reply.error_message("disconnected or provider error"), reply.status_code
        )
    return reply.json() or {"ok": True}
