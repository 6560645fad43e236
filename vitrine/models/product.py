from sqlalchemy import BigInteger, Column, Text
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.sql import func

from vitrine.database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    org_id = Column(BigInteger, nullable=False)
    flow_id = Column(BigInteger, nullable=False)
    title = Column(Text, nullable=False)
    slug = Column(Text)
    category = Column(Text)
    price_cents = Column(BigInteger, nullable=False, default=0)
    stock = Column(BigInteger, nullable=False, default=0)
    status = Column(Text, nullable=False, default="active")  # active, inactive
    image_url = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
