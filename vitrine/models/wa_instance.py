from sqlalchemy import BigInteger, Column, Text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP
from sqlalchemy.sql import func

from vitrine.database import Base


class WaInstance(Base):
    __tablename__ = "wa_instances"

    instance_id = Column(Text, primary_key=True)
    token = Column(Text, nullable=False)
    org_id = Column(BigInteger, nullable=False, default=1, server_default="1")
    flow_id = Column(BigInteger, nullable=False, default=1, server_default="1")
    webhook_url = Column(Text)
    status = Column(JSONB)  # last normalized provider status snapshot
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
