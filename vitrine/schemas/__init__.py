from vitrine.schemas.chat import ChatRequest, ChatResponse, ChatTurn
from vitrine.schemas.instance import CreateInstanceRequest, SendTextRequest, SetWebhookRequest
from vitrine.schemas.product import ProductOut, ProductSuggestion
from vitrine.schemas.vision import UploadResponse, VisionUploadResponse

__all__ = [
    "ChatRequest",
    "ChatResponse",
    "ChatTurn",
    "CreateInstanceRequest",
    "ProductOut",
    "ProductSuggestion",
    "SendTextRequest",
    "SetWebhookRequest",
    "UploadResponse",
    "VisionUploadResponse",
]
