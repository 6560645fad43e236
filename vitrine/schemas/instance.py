from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class CreateInstanceRequest(BaseModel):
    name: str = ""


class SetWebhookRequest(BaseModel):
    """Webhook registration body. Extra keys are passed through to the provider."""

    model_config = ConfigDict(extra="allow")

    url: str = ""
    token: str = ""
    events: Optional[List[str]] = None


class SendTextRequest(BaseModel):
    token: str = ""
    to: str = ""
    text: str = ""
