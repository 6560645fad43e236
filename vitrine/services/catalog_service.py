from sqlalchemy.orm import Session

from vitrine.logging_config import get_logger
from vitrine.models import Product
from vitrine.services.tenant_service import Tenant

logger = get_logger("catalog_service")


def create_product(
    db: Session,
    *,
    tenant: Tenant,
    title: str,
    slug: str,
    image_url: str,
    price_cents: int,
    category: str,
    stock: int = 0,
    status: str = "active",
) -> Product:
    """Insert a catalog row for the tenant."""
    product = Product(
        org_id=tenant.org_id,
        flow_id=tenant.flow_id,
        title=title,
        slug=slug,
        status=status,
        image_url=image_url,
        price_cents=price_cents,
        stock=stock,
        category=category,
    )
    db.add(product)
    db.flush()
    logger.info(
        "Product created",
        extra={"context": {"org_id": tenant.org_id, "flow_id": tenant.flow_id, "price_cents": price_cents}},
    )
    return product
