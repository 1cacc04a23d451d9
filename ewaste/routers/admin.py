from typing import List

from fastapi import APIRouter, Depends, Query

from ewaste.core.guards import require_operation
from ewaste.deps import get_pickup_service
from ewaste.models.pickup import PickupRequest, Status
from ewaste.models.schemas import Principal
from ewaste.services.pickups import PickupService

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/pickups", response_model=List[PickupRequest])
async def list_pickups_by_status(
    status: Status = Query("pending"),
    principal: Principal = Depends(require_operation("list_by_status")),
    svc: PickupService = Depends(get_pickup_service),
):
    return await svc.list_by_status(principal, status)
