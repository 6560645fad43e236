from pydantic import BaseModel

from vitrine.schemas.product import ProductSuggestion


class VisionUploadResponse(BaseModel):
    ok: bool = True
    reply: str
    image_url: str
    suggest: ProductSuggestion


class UploadResponse(BaseModel):
    url: str
