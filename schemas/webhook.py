# schemas/webhook.py
from typing import Any, Dict

from pydantic import BaseModel, Field


class WebhookEvent(BaseModel):
    """Identity-provider event envelope: {"type": "user.created", "data": {...}}."""
    type: str
    data: Dict[str, Any] = Field(default_factory=dict)
