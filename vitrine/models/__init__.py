from vitrine.models.product import Product
from vitrine.models.wa_instance import WaInstance
from vitrine.models.webhook_log import WebhookLog

__all__ = [
    "WaInstance",
    "WebhookLog",
    "Product",
]
