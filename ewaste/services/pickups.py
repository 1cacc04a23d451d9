import logging
from typing import Dict, List, Optional, Union

from ewaste.core.errors import Conflict, IllegalTransition, NotFound
from ewaste.core.events import (
    PICKUP_CREATED,
    PICKUP_FEEDBACK_SUBMITTED,
    PICKUP_STATUS_CHANGED,
    EventSink,
    LoggingEventSink,
)
from ewaste.core.guards import authorize, ensure_can_read
from ewaste.core.policy import roles_for
from ewaste.core.states import PENDING
from ewaste.models.pickup import (
    AgentPickupView,
    FeedbackChange,
    PickupChange,
    PickupCreate,
    PickupRequest,
    RequesterContact,
    parse_change,
)
from ewaste.models.schemas import Principal
from ewaste.repos.base import PickupRepository, UserRepository
from ewaste.services.lifecycle import LifecycleEngine


class PickupService:
    """Operations offered to the HTTP layer.

    Each call resolves its role gate first, then loads, transitions and
    issues exactly one conditional write. Nothing here retries: a lost
    write race is reported as ``IllegalTransition`` and storage failures
    propagate unchanged.
    """

    def __init__(self, repo: PickupRepository, sink: Optional[EventSink] = None,
                 engine: Optional[LifecycleEngine] = None, logger: Optional[logging.Logger] = None,
                 users: Optional[UserRepository] = None):
        self.repo = repo
        self.users = users
        self.sink = sink or LoggingEventSink()
        self.engine = engine or LifecycleEngine()
        self.log = logger or logging.getLogger(__name__)

    async def create_request(self, principal: Principal, payload: Union[PickupCreate, dict]) -> PickupRequest:
        authorize(principal, roles_for("create_request"))
        pickup = self.engine.create(principal, payload)
        await self.repo.insert(pickup)
        self.log.info("pickup %s created by %s", pickup.id, principal.id)
        await self.sink.emit(PICKUP_CREATED, {"pickup_id": pickup.id, "owner_id": pickup.owner_id})
        return pickup

    async def list_mine(self, principal: Principal) -> List[PickupRequest]:
        authorize(principal, roles_for("list_mine"))
        return await self.repo.find_by_owner(principal.id)

    async def list_available(self, principal: Principal) -> List[PickupRequest]:
        authorize(principal, roles_for("list_available"))
        return await self.repo.find_by_status(PENDING)

    async def list_assigned(self, principal: Principal) -> List[PickupRequest]:
        authorize(principal, roles_for("list_assigned"))
        pickups = await self.repo.find_by_assigned_agent(principal.id)
        return sorted(pickups, key=lambda p: p.updated_at, reverse=True)

    async def with_requester_contacts(self, pickups: List[PickupRequest]) -> List[AgentPickupView]:
        """Attach each owner's name, email and phone for the agent listings."""
        contacts: Dict[str, Optional[RequesterContact]] = {}
        for owner_id in {p.owner_id for p in pickups}:
            user = await self.users.find_by_id(owner_id) if self.users else None
            contacts[owner_id] = (
                RequesterContact(name=user.name, email=user.email, phone=user.phone) if user else None
            )
        return [AgentPickupView(**p.model_dump(), requester=contacts[p.owner_id]) for p in pickups]

    async def list_by_status(self, principal: Principal, status: str) -> List[PickupRequest]:
        authorize(principal, roles_for("list_by_status"))
        return await self.repo.find_by_status(status)

    async def get_request(self, principal: Principal, pickup_id: str) -> PickupRequest:
        authorize(principal, roles_for("get_request"))
        pickup = await self._load(pickup_id)
        ensure_can_read(principal, pickup)
        return pickup

    async def apply_change(self, principal: Principal, pickup_id: str,
                           change: Union[PickupChange, dict]) -> PickupRequest:
        if isinstance(change, dict):
            change = parse_change(change)
        authorize(principal, roles_for(change.action))

        current = await self._load(pickup_id)
        updated = self.engine.transition(principal, current, change)
        try:
            await self.repo.save(updated, expected_version=current.version)
        except Conflict as exc:
            self.log.info("pickup %s: %s by %s lost a write race", pickup_id, change.action, principal.id)
            raise IllegalTransition("Pickup request was changed by someone else; reload and retry") from exc

        if updated.status != current.status:
            self.log.info("pickup %s: %s -> %s by %s", pickup_id, current.status, updated.status, principal.id)
            await self.sink.emit(PICKUP_STATUS_CHANGED, {
                "pickup_id": pickup_id,
                "from": current.status,
                "to": updated.status,
                "by_user": principal.id,
            })
        if isinstance(change, FeedbackChange):
            await self.sink.emit(PICKUP_FEEDBACK_SUBMITTED, {
                "pickup_id": pickup_id,
                "rating": change.rating,
                "by_user": principal.id,
            })
        return updated

    async def submit_feedback(self, principal: Principal, pickup_id: str, rating: int,
                              comment: Optional[str] = None) -> PickupRequest:
        change = parse_change({"action": "feedback", "rating": rating, "comment": comment})
        return await self.apply_change(principal, pickup_id, change)

    async def _load(self, pickup_id: str) -> PickupRequest:
        pickup = await self.repo.find_by_id(pickup_id)
        if pickup is None:
            raise NotFound("Pickup request not found")
        return pickup
