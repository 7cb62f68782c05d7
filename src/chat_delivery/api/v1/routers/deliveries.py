from __future__ import annotations

from fastapi import APIRouter

from chat_delivery.api.deps import ClockDep, UoWDep
from chat_delivery.api.v1.schemas.delivery import DeliveryRunResponse
from chat_delivery.services import delivery_service

router = APIRouter(prefix="/internal/v1/scheduled-messages", tags=["deliveries"])


@router.post("/run", response_model=DeliveryRunResponse)
async def run_delivery(uow: UoWDep, clock: ClockDep) -> DeliveryRunResponse:
    """Run one delivery pass. Meant for an external scheduler."""
    report = await delivery_service.process_scheduled_messages(uow, clock)
    return DeliveryRunResponse.model_validate(report, from_attributes=True)
