"""Persistent registry of messaging-provider instances, one row per instance id."""

from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from vitrine.logging_config import get_logger
from vitrine.models import WaInstance

logger = get_logger("instance_registry")


def upsert_instance(
    db: Session,
    *,
    instance_id: str,
    token: str,
    org_id: int,
    flow_id: int,
    webhook_url: Optional[str] = None,
) -> None:
    """Insert or refresh an instance row keyed by instance_id.

    An empty token or webhook URL never overwrites a stored value.
    """
    token = (token or "").strip()
    webhook_url = (webhook_url or "").strip() or None

    stmt = insert(WaInstance).values(
        instance_id=instance_id,
        token=token,
        org_id=org_id,
        flow_id=flow_id,
        webhook_url=webhook_url,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[WaInstance.instance_id],
        set_={
            "token": func.coalesce(func.nullif(stmt.excluded.token, ""), WaInstance.token),
            "org_id": stmt.excluded.org_id,
            "flow_id": stmt.excluded.flow_id,
            "webhook_url": func.coalesce(stmt.excluded.webhook_url, WaInstance.webhook_url),
            "updated_at": func.now(),
        },
    )
    db.execute(stmt)
    logger.info(
        "Instance upserted",
        extra={
            "context": {
                "instance_id": instance_id,
                "org_id": org_id,
                "flow_id": flow_id,
                "has_webhook": webhook_url is not None,
            }
        },
    )


def get_instance(db: Session, instance_id: str) -> Optional[WaInstance]:
    return db.query(WaInstance).filter(WaInstance.instance_id == instance_id).first()


def update_status_snapshot(db: Session, instance_id: str, snapshot: dict) -> bool:
    """Store the latest provider status. Returns False for unknown instances."""
    result = db.execute(
        update(WaInstance)
        .where(WaInstance.instance_id == instance_id)
        .values(status=snapshot, updated_at=func.now())
    )
    return bool(result.rowcount)
