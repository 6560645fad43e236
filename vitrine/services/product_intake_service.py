"""Conversational product intake: image -> suggested metadata -> price -> catalog row."""

import re
from dataclasses import dataclass
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from vitrine.config import Settings
from vitrine.logging_config import get_logger
from vitrine.models import Product
from vitrine.schemas.product import ProductSuggestion
from vitrine.services.catalog_service import create_product
from vitrine.services.llm import LLMError, LLMProvider, build_image_message
from vitrine.services.media_service import (
    guess_image_extension,
    normalize_image_mime,
    public_upload_url,
    store_image,
)
from vitrine.services.pending_product_store import PendingProduct, PendingProductStore
from vitrine.services.price_parser import parse_price_to_cents
from vitrine.services.result import AI_EMPTY_REPLY, AI_ERROR, AI_NOT_CONFIGURED, Result
from vitrine.services.tenant_service import Tenant

logger = get_logger("product_intake")

TITLE_MAX_CHARS = 60
SLUG_MAX_CHARS = 300
CATEGORY_MAX_CHARS = 80
REPLY_DESCRIPTION_MAX_CHARS = 280

FALLBACK_TITLE = "Produto"
FALLBACK_DESCRIPTION = "Produto cadastrado automaticamente."
FALLBACK_CATEGORY = "Geral"

VISION_PROMPT = (
    "Você é um assistente de catalogação de e-commerce. Gere APENAS um JSON com os campos: "
    '{"title": string (máx 60 chars), "description": string (150-300 chars), '
    '"category": string, "tags": string[]}. '
    "Sem comentários, sem markdown, sem texto extra. Se a imagem não for clara, dê um título genérico."
)

MSG_ASK_PRICE = (
    "Sugeri **{title}**.\n"
    "Descrição: {description}\n"
    "Categoria: {category}\n"
    "Me diga o preço (ex.: 129,90) que eu já cadastro."
)
MSG_PRODUCT_CREATED = "✅ Produto **{title}** cadastrado por R$ {price}.\nCategoria: {category}\nImagem: {image_url}"
MSG_PRICE_REPROMPT = "Por favor, informe o preço no formato 12,34 ou 12.34 (ex.: 129,90)."

_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


@dataclass
class StagedProduct:
    image_url: str
    suggestion: ProductSuggestion
    reply: str


def limit_chars(value: Optional[str], limit: int) -> str:
    return (value or "").strip()[:limit]


def fallback_suggestion(hint: str, partial: Optional[ProductSuggestion] = None) -> ProductSuggestion:
    category = partial.category.strip() if partial and partial.category else ""
    return ProductSuggestion(
        title=(hint or "").strip() or FALLBACK_TITLE,
        description=FALLBACK_DESCRIPTION,
        category=category or FALLBACK_CATEGORY,
        tags=list(partial.tags) if partial else [],
    )


def parse_suggestion(raw_text: str, hint: str = "") -> ProductSuggestion:
    """Read the model's JSON reply; anything unusable becomes the fallback suggestion."""
    text = _CODE_FENCE_RE.sub("", (raw_text or "").strip())
    try:
        suggestion = ProductSuggestion.model_validate_json(text)
    except (ValidationError, ValueError):
        logger.warning(f"Vision reply is not valid suggestion JSON: {text[:200]!r}")
        return fallback_suggestion(hint)

    if not suggestion.title.strip():
        return fallback_suggestion(hint, suggestion)
    return suggestion


def request_suggestion(
    provider: Optional[LLMProvider],
    image_bytes: bytes,
    mime_type: str,
    hint: str,
    *,
    model: str,
    timeout_seconds: float,
) -> Result[str]:
    if provider is None:
        return Result.failure("OPENAI_API_KEY not set", AI_NOT_CONFIGURED)

    prompt = f"{VISION_PROMPT}\nDica: {hint}" if hint else VISION_PROMPT
    message = build_image_message(prompt, image_bytes, mime_type)
    try:
        response = provider.generate(
            [message],
            model=model,
            temperature=0.2,
            timeout_seconds=timeout_seconds,
        )
    except LLMError as e:
        return Result.failure(e.message, AI_ERROR)

    if not response.content.strip():
        return Result.failure("Vision model returned an empty reply", AI_EMPTY_REPLY)
    return Result.success(response.content)


def build_suggestion_reply(suggestion: ProductSuggestion) -> str:
    return MSG_ASK_PRICE.format(
        title=limit_chars(suggestion.title, TITLE_MAX_CHARS),
        description=limit_chars(suggestion.description, REPLY_DESCRIPTION_MAX_CHARS),
        category=limit_chars(suggestion.category, CATEGORY_MAX_CHARS),
    )


def analyze_and_stage(
    *,
    image_bytes: bytes,
    mime_type: Optional[str],
    session_id: str,
    tenant: Tenant,
    hint: str,
    store: PendingProductStore,
    provider: Optional[LLMProvider],
    settings: Settings,
    request_base_url: str = "",
) -> StagedProduct:
    """Suggest metadata for an image, save it and open the pending product for the session.

    PUBLIC_BASE_URL wins over `request_base_url` when building the image link.
    """
    mime = normalize_image_mime(mime_type)
    hint = (hint or "").strip()

    result = request_suggestion(
        provider,
        image_bytes,
        mime,
        hint,
        model=settings.vision_model,
        timeout_seconds=settings.ai_timeout_seconds,
    )
    if result.ok:
        suggestion = parse_suggestion(result.value, hint)
    else:
        logger.warning(
            "Vision suggestion unavailable, using fallback",
            extra={"context": {"error_code": result.error_code, "error": result.error}},
        )
        suggestion = fallback_suggestion(hint)

    image_path = store_image(image_bytes, settings.upload_dir, guess_image_extension(mime), prefix="prod_")
    image_url = public_upload_url(image_path.name, settings.public_base_url or request_base_url)

    store.set(
        session_id,
        PendingProduct(tenant=tenant, image_path=str(image_path), image_url=image_url, suggestion=suggestion),
    )

    return StagedProduct(image_url=image_url, suggestion=suggestion, reply=build_suggestion_reply(suggestion))


def format_price(price_cents: int) -> str:
    return f"{price_cents / 100:.2f}"


def build_product_reply(product: Product) -> str:
    return MSG_PRODUCT_CREATED.format(
        title=product.title,
        price=format_price(product.price_cents),
        category=product.category,
        image_url=product.image_url,
    )


def try_commit(
    db: Session,
    store: PendingProductStore,
    session_id: str,
    raw_price_text: str,
) -> tuple[Optional[Product], bool]:
    """Turn the session's pending product into a catalog row if the text is a price.

    On a parse failure the pending product stays untouched so the user can retry.
    """
    pending = store.get(session_id)
    if pending is None:
        return None, False

    price_cents = parse_price_to_cents(raw_price_text)
    if price_cents is None:
        return None, False

    if not store.take(session_id, pending):
        # another request committed or replaced it first
        return None, False

    suggestion = pending.suggestion
    slug = suggestion.description if suggestion.description.strip() else ", ".join(suggestion.tags)
    try:
        product = create_product(
            db,
            tenant=pending.tenant,
            title=limit_chars(suggestion.title, TITLE_MAX_CHARS),
            slug=limit_chars(slug, SLUG_MAX_CHARS),
            image_url=pending.image_url,
            price_cents=price_cents,
            category=limit_chars(suggestion.category, CATEGORY_MAX_CHARS),
        )
        db.commit()
    except Exception:
        db.rollback()
        store.restore(session_id, pending)
        raise

    logger.info(
        "Pending product committed",
        extra={"context": {"session_id": session_id, "price_cents": price_cents}},
    )
    return product, True

