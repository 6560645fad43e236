"""FastAPI dependencies shared by the routers."""

from typing import Optional

from fastapi import Depends, Header

from vitrine.config import Settings, get_settings, settings
from vitrine.services.llm import LLMProvider, OpenAIProvider
from vitrine.services.pending_product_store import PendingProductStore
from vitrine.services.provider_gateway import ProviderGateway
from vitrine.services.tenant_service import Tenant, tenant_from_headers

# Process-wide: pending products must survive between the upload and the price message.
pending_products = PendingProductStore(ttl_seconds=settings.pending_product_ttl_seconds)


def get_tenant(
    x_org_id: Optional[str] = Header(default=None, alias="X-Org-ID"),
    x_flow_id: Optional[str] = Header(default=None, alias="X-Flow-ID"),
) -> Tenant:
    return tenant_from_headers(x_org_id, x_flow_id)


def get_provider_gateway(settings: Settings = Depends(get_settings)) -> ProviderGateway:
    return ProviderGateway(settings)


def get_llm_provider(settings: Settings = Depends(get_settings)) -> Optional[LLMProvider]:
    """None when OPENAI_API_KEY is missing; callers decide how to degrade."""
    if not settings.openai_api_key.strip():
        return None
    return OpenAIProvider(
        api_key=settings.openai_api_key,
        default_model=settings.text_model,
        default_timeout=settings.ai_timeout_seconds,
    )


def get_pending_store() -> PendingProductStore:
    return pending_products
