from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProductSuggestion(BaseModel):
    """Catalog metadata proposed by the vision model for an uploaded image."""

    title: str = ""
    description: str = ""
    category: str = ""
    tags: List[str] = Field(default_factory=list)


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    org_id: int
    flow_id: int
    title: str
    slug: Optional[str] = None
    status: str
    image_url: Optional[str] = None
    price_cents: int
    stock: int = 0
    category: Optional[str] = None
