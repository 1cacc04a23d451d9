from typing import Iterable

from fastapi import Depends

from ewaste.core.errors import Forbidden
from ewaste.core.policy import roles_for
from ewaste.core.security import get_current_principal, has_role
from ewaste.models.pickup import PickupRequest
from ewaste.models.schemas import Principal


def authorize(principal: Principal, required_roles: Iterable[str]) -> Principal:
    required = set(required_roles)
    if required and not has_role(principal, required):
        raise Forbidden()
    return principal


def require_roles(*roles: str):
    async def checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        return authorize(principal, roles)
    return checker


def require_operation(operation: str):
    return require_roles(*roles_for(operation))


def can_read(principal: Principal, pickup: PickupRequest) -> bool:
    return principal.id in (pickup.owner_id, pickup.assigned_agent_id)


def ensure_can_read(principal: Principal, pickup: PickupRequest) -> None:
    if not can_read(principal, pickup):
        raise Forbidden("Not authorized to view this pickup request")
