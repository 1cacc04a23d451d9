from typing import List

from fastapi import APIRouter, Body, Depends

from ewaste.core.guards import require_operation
from ewaste.core.security import get_current_principal
from ewaste.deps import get_pickup_service
from ewaste.models.pickup import (
    AgentPickupView,
    Feedback,
    FeedbackChange,
    PickupCreate,
    PickupRequest,
    parse_change,
)
from ewaste.models.schemas import Principal
from ewaste.services.pickups import PickupService

router = APIRouter(prefix="/api/pickups", tags=["pickups"])


# static paths first so they are not swallowed by /{pickup_id}
@router.get("/available", response_model=List[AgentPickupView])
async def list_available(
    principal: Principal = Depends(require_operation("list_available")),
    svc: PickupService = Depends(get_pickup_service),
):
    return await svc.with_requester_contacts(await svc.list_available(principal))


@router.get("/accepted", response_model=List[AgentPickupView])
async def list_accepted(
    principal: Principal = Depends(require_operation("list_assigned")),
    svc: PickupService = Depends(get_pickup_service),
):
    return await svc.with_requester_contacts(await svc.list_assigned(principal))


@router.get("", response_model=List[PickupRequest])
async def list_mine(
    principal: Principal = Depends(get_current_principal),
    svc: PickupService = Depends(get_pickup_service),
):
    return await svc.list_mine(principal)


@router.post("", response_model=PickupRequest, status_code=201)
async def create_pickup(
    data: PickupCreate,
    principal: Principal = Depends(require_operation("create_request")),
    svc: PickupService = Depends(get_pickup_service),
):
    return await svc.create_request(principal, data)


@router.get("/{pickup_id}", response_model=PickupRequest)
async def get_pickup(
    pickup_id: str,
    principal: Principal = Depends(get_current_principal),
    svc: PickupService = Depends(get_pickup_service),
):
    return await svc.get_request(principal, pickup_id)


@router.put("/{pickup_id}", response_model=PickupRequest)
async def update_pickup(
    pickup_id: str,
    payload: dict = Body(...),
    principal: Principal = Depends(get_current_principal),
    svc: PickupService = Depends(get_pickup_service),
):
    """Claim, start, complete, cancel or rate a pickup; ``action`` selects which."""
    return await svc.apply_change(principal, pickup_id, parse_change(payload))


@router.post("/{pickup_id}/feedback", response_model=PickupRequest)
async def submit_feedback(
    pickup_id: str,
    body: Feedback,
    principal: Principal = Depends(require_operation("feedback")),
    svc: PickupService = Depends(get_pickup_service),
):
    return await svc.apply_change(principal, pickup_id, FeedbackChange(action="feedback", **body.model_dump()))
