from vitrine.services.instance_service import (
    InstanceTokenMissingError,
    create_instance,
    get_qr,
    get_status,
    send_text,
    set_webhook,
)
from vitrine.services.pending_product_store import PendingProduct, PendingProductStore
from vitrine.services.price_parser import parse_price_to_cents
from vitrine.services.product_intake_service import analyze_and_stage, try_commit
from vitrine.services.provider_gateway import ProviderError, ProviderGateway, ProviderUnavailableError
from vitrine.services.webhook_forwarder import forward_event, log_webhook_event, resolve_forward_context

__all__ = [
    "InstanceTokenMissingError",
    "PendingProduct",
    "PendingProductStore",
    "ProviderError",
    "ProviderGateway",
    "ProviderUnavailableError",
    "analyze_and_stage",
    "create_instance",
    "forward_event",
    "get_qr",
    "get_status",
    "log_webhook_event",
    "parse_price_to_cents",
    "resolve_forward_context",
    "send_text",
    "set_webhook",
    "try_commit",
]
