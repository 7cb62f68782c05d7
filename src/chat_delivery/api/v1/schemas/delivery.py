from __future__ import annotations

from pydantic import BaseModel


class DeliveryRunResponse(BaseModel):
    due: int
    delivered: int
    skipped: int
    conversations: int
    committed: bool

    model_config = {"from_attributes": True}
