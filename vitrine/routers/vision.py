import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile

from vitrine.config import Settings, get_settings
from vitrine.dependencies import get_llm_provider, get_pending_store, get_tenant
from vitrine.logging_config import get_logger
from vitrine.schemas.vision import UploadResponse, VisionUploadResponse
from vitrine.services.llm import LLMProvider
from vitrine.services.media_service import extension_from_filename, public_upload_url, store_image
from vitrine.services.pending_product_store import PendingProductStore
from vitrine.services.product_intake_service import analyze_and_stage
from vitrine.services.tenant_service import Tenant

logger = get_logger("vision")

router = APIRouter(tags=["vision"])


async def _read_upload(upload: Optional[UploadFile], settings: Settings) -> bytes:
    if upload is None:
        raise HTTPException(status_code=400, detail="image file required")
    data = await upload.read()
    if not data:
        raise HTTPException(status_code=400, detail="image file is empty")
    if len(data) > settings.max_upload_mb * 1024 * 1024:
        raise HTTPException(status_code=413, detail=f"file too large (max {settings.max_upload_mb}MB)")
    return data


@router.post("/vision/upload", response_model=VisionUploadResponse)
async def vision_upload(
    request: Request,
    image: Optional[UploadFile] = File(default=None),
    session_id: str = Form(default="", alias="sessionId"),
    prompt: str = Form(default=""),
    tenant: Tenant = Depends(get_tenant),
    store: PendingProductStore = Depends(get_pending_store),
    provider: Optional[LLMProvider] = Depends(get_llm_provider),
    settings: Settings = Depends(get_settings),
):
    image_bytes = await _read_upload(image, settings)

    staged = await asyncio.to_thread(
        analyze_and_stage,
        image_bytes=image_bytes,
        mime_type=image.content_type,
        session_id=session_id.strip(),
        tenant=tenant,
        hint=prompt,
        store=store,
        provider=provider,
        settings=settings,
        request_base_url=str(request.base_url),
    )
    logger.info(
        "Image staged for pricing",
        extra={"context": {"session_id": session_id, "org_id": tenant.org_id, "flow_id": tenant.flow_id}},
    )
    return VisionUploadResponse(reply=staged.reply, image_url=staged.image_url, suggest=staged.suggestion)


@router.post("/upload", response_model=UploadResponse)
async def upload_file(
    request: Request,
    image: Optional[UploadFile] = File(default=None),
    settings: Settings = Depends(get_settings),
):
    """Store a file as-is and return its public URL."""
    data = await _read_upload(image, settings)
    path = await asyncio.to_thread(
        store_image, data, settings.upload_dir, extension_from_filename(image.filename)
    )
    return UploadResponse(url=public_upload_url(path.name, settings.public_base_url or str(request.base_url)))
