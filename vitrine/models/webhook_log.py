from sqlalchemy import BigInteger, Column, LargeBinary, Text
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.sql import func

from vitrine.database import Base


class WebhookLog(Base):
    """Append-only audit of inbound provider events, payload kept verbatim."""

    __tablename__ = "webhooks_log"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    source = Column(Text, nullable=False)
    instance_id = Column(Text)
    payload = Column(LargeBinary, nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
